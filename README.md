# lenet5

LeNet-5 inference on the MNIST test set, written with NumPy.

The network has two convolutions and two fully connected layers:

| stage  | operation                           | output shape      |
|--------|-------------------------------------|-------------------|
| input  |                                     | (N, 1, 28, 28)    |
| conv1  | 5×5, 6 maps, ReLU                   | (N, 6, 24, 24)    |
| pool1  | 2×2 average                         | (N, 6, 12, 12)    |
| conv2  | 5×5, 16 maps, ReLU                  | (N, 16, 8, 8)     |
| pool2  | 2×2 average                         | (N, 16, 4, 4)     |
| fc1    | 256 → 120, ReLU                     | (N, 120)          |
| fc2    | 120 → 10, softmax                   | (N, 10)           |

The convolutions can be computed in several ways, selected with
`lenet5.model.Variant`:

* `baseline`: a general convolution with stride, padding and bounds checks.
* `unroll`: a convolution specialised to 5×5 kernels, stride 1, no padding.
* `neon`: the same arithmetic as `unroll`.
* `gemm`: conv1 as in `unroll`; conv2 unfolded with im2col and computed as a
  matrix product, with the ReLU fused in.

## Installation

```
pip install .
```

NumPy is the only runtime dependency. Install with the `test` extra to get
pytest for running the tests.

## Input files

* **Weights**: a flat little-endian float32 file holding, in this order:
  conv1 weights (6×1×5×5), conv1 bias (6), conv2 weights (16×6×5×5),
  conv2 bias (16), fc1 weights (120×256), fc1 bias (120),
  fc2 weights (10×120), fc2 bias (10). Values after the last bias are ignored.
* **Images and labels**: MNIST IDX files (magic numbers 2051 and 2049). Pixels
  are scaled to the range 0–1. A file with a wrong magic number or too few
  bytes raises `lenet5.idx.MnistFormatError`.

## Command line

```
lenet5
```

By default the command reads the weights from `weight/lenet5_fp32.bin`, the
images from `data/t10k-images-idx3-ubyte` and the labels from
`data/t10k-labels-idx1-ubyte`, and classifies the images 64 at a time. It
prints the size of the loaded weights, the number of test images, the accuracy,
the inference time and the precision used (FP32 or FP16).

Options:

* `--weights PATH`, `--images PATH`, `--labels PATH`: input files.
* `--batch-size N`: images per batch (default 64).
* `--variant {baseline,unroll,neon,gemm}`: how the convolutions are computed
  (default `baseline`).
* `--fp16`: load weights and images as half-precision values.
* `--profile`: after the run, print a performance summary with throughput,
  latency per image, GFLOPS and a per-layer time breakdown.

On a missing or malformed file the command prints the error and exits with
status 1.

## Library use

```python
from lenet5.idx import load_mnist_images, load_mnist_labels
from lenet5.params import load_weights, params_from_flat
from lenet5.model import Variant, make_workspace, forward_batch
from lenet5.profiler import Profile
from lenet5.cli import evaluate

flat = load_weights("weight/lenet5_fp32.bin", "float32")
params = params_from_flat(flat)          # a LeNetParams
images = load_mnist_images("data/t10k-images-idx3-ubyte")
labels = load_mnist_labels("data/t10k-labels-idx1-ubyte")

workspace = make_workspace(64)
preds = forward_batch(images[:64], params, Variant.GEMM, workspace, None)
probs = workspace.x7[:64]                # class probabilities of that batch

profile = Profile()
correct, elapsed_ms = evaluate(images, labels, params, 64, Variant.UNROLL, profile)
print(profile.report(len(images)))
```

`forward_batch` accepts either a `LeNetParams` or a flat parameter vector, and
leaves every layer's activations in the workspace buffers `x1` … `x7`.
`Profile.stage(name)` is a context manager that adds the time spent in its block
to the named stage.

The single operators (`conv2d`, `conv2d_5x5`, `avgpool2d`, `relu`, `linear`,
`softmax`, `argmax`) are in `lenet5.ops`. The im2col and matrix-product
operators (`im2col_5x5`, `sgemm`, `conv2d_5x5_gemm`) are in `lenet5.gemm`.
`lenet5.params.load_file` returns a file's bytes and `now_ms` reads a monotonic
clock in milliseconds.

## What it does not do

The package only runs inference. It does not train the network or produce
weight files, and it does not download the MNIST data; both must be supplied.
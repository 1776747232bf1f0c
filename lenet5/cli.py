"""Command line entry point: classify the MNIST test set and report accuracy."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import numpy as np

from .idx import MnistFormatError, load_mnist_images, load_mnist_labels
from .model import Variant, forward_batch, make_workspace
from .params import LeNetParams, load_weights, now_ms, params_from_flat
from .profiler import Profile

DEFAULT_WEIGHTS = "weight/lenet5_fp32.bin"
DEFAULT_IMAGES = "data/t10k-images-idx3-ubyte"
DEFAULT_LABELS = "data/t10k-labels-idx1-ubyte"
DEFAULT_BATCH = 64


def evaluate(
    images,
    labels,
    params,
    batch_size: int = DEFAULT_BATCH,
    variant=Variant.BASELINE,
    profile: Optional[Profile] = None,
) -> tuple[int, float]:
    """Classify ``images`` in batches and compare with ``labels``.

    Returns the number of correct predictions and the elapsed time in
    milliseconds. One workspace of ``batch_size`` images is reused for every
    batch; the last batch may be smaller.
    """
    if batch_size < 1:
        raise ValueError("batch size must be at least 1")
    images = np.asarray(images)
    labels = np.asarray(labels)
    if labels.ndim != 1 or labels.shape[0] != images.shape[0]:
        raise ValueError(
            f"{labels.shape[0] if labels.ndim else 0} labels for {images.shape[0]} images"
        )
    if not isinstance(params, LeNetParams):
        params = params_from_flat(params)

    workspace = make_workspace(batch_size)
    correct = 0
    start = now_ms()
    for first in range(0, images.shape[0], batch_size):
        batch = images[first : first + batch_size]
        preds = forward_batch(batch, params, variant, workspace, profile)
        correct += int(np.count_nonzero(preds == labels[first : first + len(batch)]))
    return correct, now_ms() - start


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lenet5", description="Run LeNet-5 on the MNIST test set."
    )
    parser.add_argument("--weights", default=DEFAULT_WEIGHTS, help="flat float32 weight file")
    parser.add_argument("--images", default=DEFAULT_IMAGES, help="IDX3 image file")
    parser.add_argument("--labels", default=DEFAULT_LABELS, help="IDX1 label file")
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH)
    parser.add_argument(
        "--variant",
        choices=[v.value for v in Variant],
        default=Variant.BASELINE.value,
        help="how the convolutions are computed",
    )
    parser.add_argument("--fp16", action="store_true", help="compute in half precision")
    parser.add_argument("--profile", action="store_true", help="print a per-layer timing report")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the evaluation and print its results; return the exit status."""
    args = _parser().parse_args(argv)
    if args.batch_size < 1:
        print("lenet5: batch size must be at least 1", file=sys.stderr)
        return 1
    dtype = np.float16 if args.fp16 else np.float32
    dtype_str = "FP16" if args.fp16 else "FP32"

    try:
        flat = load_weights(args.weights, dtype)
        print(f"Loaded weights: {flat.nbytes / 1024.0:.1f} KB")
        params = params_from_flat(flat)
        images = load_mnist_images(args.images).astype(dtype, copy=False)
        labels = load_mnist_labels(args.labels)
    except (OSError, MnistFormatError, ValueError) as exc:
        print(f"lenet5: {exc}", file=sys.stderr)
        return 1

    n_test = images.shape[0]
    print(f"Test images: {n_test}")
    if n_test == 0:
        print("lenet5: no test images", file=sys.stderr)
        return 1

    profile = Profile() if args.profile else None
    try:
        correct, elapsed = evaluate(
            images, labels, params, args.batch_size, Variant(args.variant), profile
        )
    except ValueError as exc:
        print(f"lenet5: {exc}", file=sys.stderr)
        return 1

    print(f"Accuracy      : {100.0 * correct / n_test:.2f}%")
    print(f"Inference time: {elapsed:.2f} ms")
    print(f"== Running LeNet5 ({dtype_str}) ==")

    if profile is not None and profile.total > 0:
        print(profile.report(n_test), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
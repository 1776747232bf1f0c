"""Neural-network operators on NCHW float tensors."""

from __future__ import annotations

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def _out_dtype(x: np.ndarray) -> np.dtype:
    if x.dtype in (np.float16, np.float32):
        return x.dtype
    return np.dtype(np.float32)


def _as_acc(a) -> np.ndarray:
    return np.asarray(a, dtype=np.float32)


def conv2d(x, weight, bias, stride: int = 1, pad: int = 0) -> np.ndarray:
    """2-D convolution of x (N, C, H, W) with weight (OC, C, KH, KW) plus bias (OC,)."""
    x = np.asarray(x)
    xa, w, b = _as_acc(x), _as_acc(weight), _as_acc(bias)
    if xa.ndim != 4 or w.ndim != 4:
        raise ValueError("conv2d expects 4-D input and weight")
    if stride < 1 or pad < 0:
        raise ValueError("stride must be >= 1 and pad >= 0")
    n, c, h, wd = xa.shape
    oc, ic, kh, kw = w.shape
    if ic != c:
        raise ValueError(f"weight has {ic} input channels, input has {c}")
    if b.shape != (oc,):
        raise ValueError(f"bias must have shape ({oc},)")
    oh = (h + 2 * pad - kh) // stride + 1
    ow = (wd + 2 * pad - kw) // stride + 1
    if oh <= 0 or ow <= 0:
        raise ValueError("kernel larger than padded input")
    if pad:
        xa = np.pad(xa, ((0, 0), (0, 0), (pad, pad), (pad, pad)))
    windows = sliding_window_view(xa, (kh, kw), axis=(2, 3))[:, :, ::stride, ::stride]
    out = np.einsum("nchwij,ocij->nohw", windows, w, dtype=np.float32)
    out += b[None, :, None, None]
    return out.astype(_out_dtype(x), copy=False)


def conv2d_5x5(x, weight, bias) -> np.ndarray:
    """Convolution specialised to 5x5 kernels, stride 1 and no padding."""
    w = np.asarray(weight)
    if w.ndim != 4 or w.shape[2:] != (5, 5):
        raise ValueError("conv2d_5x5 requires a (OC, IC, 5, 5) weight")
    return conv2d(x, w, bias, 1, 0)


def avgpool2d(x, k: int) -> np.ndarray:
    """Non-overlapping k x k average pooling over the last two axes."""
    x = np.asarray(x)
    if k < 1:
        raise ValueError("pool size must be >= 1")
    n, c, h, w = x.shape
    oh, ow = h // k, w // k
    if oh == 0 or ow == 0:
        raise ValueError("pool size larger than input")
    blocks = _as_acc(x)[:, :, : oh * k, : ow * k].reshape(n, c, oh, k, ow, k)
    out = blocks.sum(axis=(3, 5), dtype=np.float32) * np.float32(1.0 / (k * k))
    return out.astype(_out_dtype(x), copy=False)


def relu(x) -> np.ndarray:
    """Return a copy of x with negative entries replaced by zero."""
    x = np.asarray(x)
    return np.maximum(x, x.dtype.type(0))


def linear(x, weight, bias) -> np.ndarray:
    """Fully connected layer: flattens each sample of x and returns (N, out_dim)."""
    x = np.asarray(x)
    xa = _as_acc(x)
    n = xa.shape[0]
    flat = xa.reshape(n, -1)
    b = _as_acc(bias).ravel()
    out_dim = b.shape[0]
    w = _as_acc(weight).reshape(out_dim, -1)
    if w.shape[1] != flat.shape[1]:
        raise ValueError(
            f"weight expects {w.shape[1]} inputs, got {flat.shape[1]}"
        )
    out = flat @ w.T + b
    return out.astype(_out_dtype(x), copy=False)


def argmax(x):
    """Index of the first largest value along the last axis."""
    x = np.asarray(x)
    if x.size == 0:
        raise ValueError("argmax of an empty sequence")
    result = np.argmax(x, axis=-1)
    return int(result) if result.ndim == 0 else result


def softmax(x) -> np.ndarray:
    """Numerically stable softmax along the last axis."""
    x = np.asarray(x)
    if x.size == 0:
        raise ValueError("softmax of an empty sequence")
    xa = _as_acc(x)
    e = np.exp(xa - xa.max(axis=-1, keepdims=True))
    out = e * (np.float32(1.0) / e.sum(axis=-1, keepdims=True, dtype=np.float32))
    return out.astype(_out_dtype(x), copy=False)
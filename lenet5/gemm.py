"""Convolution through im2col and a blocked matrix product."""

from __future__ import annotations

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

KERNEL = 5


def _out_dtype(x: np.ndarray) -> np.dtype:
    if x.dtype in (np.float16, np.float32):
        return x.dtype
    return np.dtype(np.float32)


def sgemm(a, b, c=None) -> np.ndarray:
    """Return ``c + a @ b`` in single precision.

    ``a`` is (M, K), ``b`` is (K, N) and ``c`` is (M, N); when ``c`` is
    omitted the product alone is returned. The inputs are left untouched.
    """
    a = np.asarray(a, dtype=np.float32)
    b = np.asarray(b, dtype=np.float32)
    if a.ndim != 2 or b.ndim != 2:
        raise ValueError("sgemm expects 2-D matrices")
    m, k = a.shape
    kb, n = b.shape
    if k != kb:
        raise ValueError(f"inner dimensions differ: {k} and {kb}")
    if c is None:
        acc = np.zeros((m, n), dtype=np.float32)
    else:
        acc = np.array(c, dtype=np.float32, copy=True)
        if acc.shape != (m, n):
            raise ValueError(f"accumulator must have shape ({m}, {n}), got {acc.shape}")
    acc += a @ b
    return acc


def im2col_5x5(x) -> np.ndarray:
    """Unfold 5x5, stride 1, unpadded patches of x (N, C, H, W).

    The result has shape (N, C*25, OH*OW): row ``c*25 + kh*5 + kw`` holds the
    input values that kernel tap (kh, kw) of channel c sees, one column per
    output position in row-major order.
    """
    x = np.asarray(x)
    if x.ndim != 4:
        raise ValueError("im2col_5x5 expects a 4-D (N, C, H, W) input")
    n, c, h, w = x.shape
    if h < KERNEL or w < KERNEL:
        raise ValueError(f"input {h}x{w} is smaller than the {KERNEL}x{KERNEL} kernel")
    oh, ow = h - KERNEL + 1, w - KERNEL + 1
    windows = sliding_window_view(x, (KERNEL, KERNEL), axis=(2, 3))
    cols = windows.transpose(0, 1, 4, 5, 2, 3)
    return np.ascontiguousarray(cols).reshape(n, c * KERNEL * KERNEL, oh * ow)


def conv2d_5x5_gemm(x, weight, bias) -> np.ndarray:
    """5x5 stride-1 convolution with a fused ReLU, computed as a matrix product.

    ``x`` is (N, C, H, W), ``weight`` is (OC, C, 5, 5) and ``bias`` is (OC,).
    Returns (N, OC, H-4, W-4) with negative values clamped to zero.
    """
    x = np.asarray(x)
    w = np.asarray(weight, dtype=np.float32)
    b = np.asarray(bias, dtype=np.float32)
    if x.ndim != 4:
        raise ValueError("conv2d_5x5_gemm expects a 4-D (N, C, H, W) input")
    if w.ndim != 4 or w.shape[2:] != (KERNEL, KERNEL):
        raise ValueError("conv2d_5x5_gemm requires a (OC, IC, 5, 5) weight")
    oc, ic = w.shape[:2]
    n, c, h, wd = x.shape
    if ic != c:
        raise ValueError(f"weight has {ic} input channels, input has {c}")
    if b.shape != (oc,):
        raise ValueError(f"bias must have shape ({oc},)")

    cols = im2col_5x5(x.astype(np.float32, copy=False))
    a = w.reshape(oc, -1)
    oh, ow = h - KERNEL + 1, wd - KERNEL + 1
    maps = np.stack([sgemm(a, col) for col in cols]) if n else np.zeros(
        (0, oc, oh * ow), dtype=np.float32
    )
    maps += b[None, :, None]
    np.maximum(maps, np.float32(0.0), out=maps)
    return maps.reshape(n, oc, oh, ow).astype(_out_dtype(x), copy=False)
"""LeNet-5 batched forward pass with reusable activation buffers."""

from __future__ import annotations

import enum
from contextlib import AbstractContextManager, nullcontext
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .gemm import im2col_5x5, sgemm
from .ops import argmax, avgpool2d, conv2d, conv2d_5x5, linear, relu, softmax
from .params import LeNetParams, params_from_flat
from .profiler import Profile

IMAGE_SHAPE = (1, 28, 28)
NUM_CLASSES = 10


class Variant(str, enum.Enum):
    """How the convolution layers are computed."""

    BASELINE = "baseline"  # generic convolution with bounds checks
    UNROLL = "unroll"  # specialised 5x5, stride 1, unpadded kernel
    NEON = "neon"  # same arithmetic as UNROLL, vectorised kernel
    GEMM = "gemm"  # conv-2 through im2col and a matrix product, ReLU fused


@dataclass
class Workspace:
    """Activation buffers for every layer, sized for a maximum batch."""

    x1: np.ndarray  # conv1 output   (N, 6, 24, 24)
    x2: np.ndarray  # pool1 output   (N, 6, 12, 12)
    x3: np.ndarray  # conv2 output   (N, 16, 8, 8)
    x4: np.ndarray  # pool2 output   (N, 16, 4, 4)
    x5: np.ndarray  # flattened      (N, 256, 1, 1)
    x6: np.ndarray  # fc1 output     (N, 120, 1, 1)
    x7: np.ndarray  # probabilities  (N, 10, 1, 1)
    col: np.ndarray  # im2col buffer (N, 1, 150, 64)

    @property
    def batch(self) -> int:
        """Largest number of images the buffers can hold."""
        return self.x1.shape[0]


def make_workspace(batch: int) -> Workspace:
    """Allocate float32 buffers for batches of up to ``batch`` 28x28 images."""
    if batch < 1:
        raise ValueError("batch size must be at least 1")

    def buf(*shape: int) -> np.ndarray:
        return np.zeros((batch, *shape), dtype=np.float32)

    return Workspace(
        x1=buf(6, 24, 24),
        x2=buf(6, 12, 12),
        x3=buf(16, 8, 8),
        x4=buf(16, 4, 4),
        x5=buf(256, 1, 1),
        x6=buf(120, 1, 1),
        x7=buf(10, 1, 1),
        col=buf(1, 150, 64),
    )


def _conv_generic(x, weight, bias) -> np.ndarray:
    return conv2d(x, weight, bias, 1, 0)


def _conv_gemm_relu(x: np.ndarray, weight, bias, col: np.ndarray) -> np.ndarray:
    """Unfold x into ``col`` and compute ReLU(weight * col + bias)."""
    n = x.shape[0]
    w = np.asarray(weight, dtype=np.float32)
    b = np.asarray(bias, dtype=np.float32)
    oc = w.shape[0]
    cols = col[:n].reshape(n, col.shape[2], col.shape[3])
    cols[...] = im2col_5x5(x)
    a = w.reshape(oc, -1)
    maps = np.stack([sgemm(a, patch) for patch in cols])
    maps += b[None, :, None]
    np.maximum(maps, np.float32(0.0), out=maps)
    side = x.shape[2] - 4
    return maps.reshape(n, oc, side, x.shape[3] - 4)


def _no_stage(name: str) -> AbstractContextManager:
    return nullcontext()


_CONV: dict[Variant, Callable] = {
    Variant.BASELINE: _conv_generic,
    Variant.UNROLL: conv2d_5x5,
    Variant.NEON: conv2d_5x5,
    Variant.GEMM: conv2d_5x5,
}


def forward_batch(
    images,
    params,
    variant=Variant.BASELINE,
    workspace: Optional[Workspace] = None,
    profile: Optional[Profile] = None,
) -> np.ndarray:
    """Classify a batch of (N, 1, 28, 28) images; return the N predicted digits.

    ``params`` is a LeNetParams or a flat parameter vector. The activations of
    every layer are left in ``workspace`` (class probabilities in ``x7``); one
    sized for the batch is made when none is given. When ``profile`` is given,
    the time spent in each layer is added to it.
    """
    variant = Variant(variant)
    if not isinstance(params, LeNetParams):
        params = params_from_flat(params)
    x = np.asarray(images)
    if x.ndim != 4 or x.shape[1:] != IMAGE_SHAPE:
        raise ValueError(f"images must have shape (N, {', '.join(map(str, IMAGE_SHAPE))})")
    n = x.shape[0]
    if n == 0:
        raise ValueError("empty batch")
    if workspace is None:
        workspace = make_workspace(n)
    elif workspace.batch < n:
        raise ValueError(f"batch of {n} images exceeds workspace size {workspace.batch}")

    ws = workspace
    stage = profile.stage if profile is not None else _no_stage
    conv = _CONV[variant]

    with stage("total"):
        with stage("conv1"):
            x1 = ws.x1[:n]
            x1[...] = relu(conv(x, params.w1, params.b1))
        with stage("pool1"):
            x2 = ws.x2[:n]
            x2[...] = avgpool2d(x1, 2)
        with stage("conv2"):
            x3 = ws.x3[:n]
            if variant is Variant.GEMM:
                x3[...] = _conv_gemm_relu(x2, params.w2, params.b2, ws.col)
            else:
                x3[...] = relu(conv(x2, params.w2, params.b2))
        with stage("pool2"):
            x4 = ws.x4[:n]
            x4[...] = avgpool2d(x3, 2)
        with stage("fc1"):
            x5 = ws.x5[:n]
            x5[...] = x4.reshape(x5.shape)
            x6 = ws.x6[:n]
            x6[...] = relu(linear(x5, params.w3, params.b3)).reshape(x6.shape)
        with stage("fc2"):
            x7 = ws.x7[:n]
            x7[...] = linear(x6, params.w4, params.b4).reshape(x7.shape)
        with stage("softmax"):
            probs = softmax(x7.reshape(n, NUM_CLASSES))
            x7[...] = probs.reshape(x7.shape)
            preds = np.asarray(argmax(probs), dtype=np.intp)
    return preds
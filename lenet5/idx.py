"""Readers for the MNIST IDX image and label files."""

from __future__ import annotations

import struct
from os import PathLike
from typing import BinaryIO, Union

import numpy as np

IMAGE_MAGIC = 2051
LABEL_MAGIC = 2049

PathType = Union[str, "PathLike[str]"]


class MnistFormatError(ValueError):
    """Raised when an IDX file has a wrong magic number or is truncated."""


def _read_u32s(stream: BinaryIO, count: int, path: PathType) -> tuple[int, ...]:
    raw = stream.read(4 * count)
    if len(raw) != 4 * count:
        raise MnistFormatError(f"{path}: truncated header")
    return struct.unpack(f">{count}I", raw)


def _read_payload(stream: BinaryIO, size: int, path: PathType) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise MnistFormatError(
            f"{path}: expected {size} bytes of data, found {len(data)}"
        )
    return data


def load_mnist_images(path: PathType) -> np.ndarray:
    """Load an IDX3 image file as a float32 array of shape (N, 1, H, W) scaled to [0, 1]."""
    with open(path, "rb") as stream:
        (magic,) = _read_u32s(stream, 1, path)
        if magic != IMAGE_MAGIC:
            raise MnistFormatError(f"{path}: bad magic {magic}, expected {IMAGE_MAGIC}")
        n, h, w = _read_u32s(stream, 3, path)
        payload = _read_payload(stream, n * h * w, path)
    pixels = np.frombuffer(payload, dtype=np.uint8)
    images = pixels.astype(np.float32) / np.float32(255.0)
    return images.reshape(n, 1, h, w)


def load_mnist_labels(path: PathType) -> np.ndarray:
    """Load an IDX1 label file as a uint8 array of shape (N,)."""
    with open(path, "rb") as stream:
        (magic,) = _read_u32s(stream, 1, path)
        if magic != LABEL_MAGIC:
            raise MnistFormatError(f"{path}: bad label magic {magic}, expected {LABEL_MAGIC}")
        (n,) = _read_u32s(stream, 1, path)
        payload = _read_payload(stream, n, path)
    return np.frombuffer(payload, dtype=np.uint8).copy()
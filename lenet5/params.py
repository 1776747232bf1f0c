"""LeNet-5 weight layout, weight-file loading and a millisecond clock."""

from __future__ import annotations

import time
from dataclasses import dataclass, fields
from os import PathLike
from typing import Union

import numpy as np

PathType = Union[str, "PathLike[str]"]

# Order and shapes of the parameters as they are stored in the flat weight file.
LAYOUT: tuple[tuple[str, tuple[int, ...]], ...] = (
    ("w1", (6, 1, 5, 5)),
    ("b1", (6,)),
    ("w2", (16, 6, 5, 5)),
    ("b2", (16,)),
    ("w3", (120, 256)),
    ("b3", (120,)),
    ("w4", (10, 120)),
    ("b4", (10,)),
)

PARAM_COUNT = sum(int(np.prod(shape)) for _, shape in LAYOUT)

_FILE_DTYPE = np.dtype("<f4")


@dataclass(frozen=True)
class LeNetParams:
    """Weights and biases of the two convolutions and two fully connected layers."""

    w1: np.ndarray
    b1: np.ndarray
    w2: np.ndarray
    b2: np.ndarray
    w3: np.ndarray
    b3: np.ndarray
    w4: np.ndarray
    b4: np.ndarray

    def __post_init__(self) -> None:
        expected = dict(LAYOUT)
        for field in fields(self):
            value = np.asarray(getattr(self, field.name))
            if value.shape != expected[field.name]:
                raise ValueError(
                    f"{field.name} must have shape {expected[field.name]}, got {value.shape}"
                )
            object.__setattr__(self, field.name, value)


def params_from_flat(flat) -> LeNetParams:
    """Slice a flat parameter vector into the LeNet-5 layers.

    Values past the last bias are ignored; a vector that is too short raises
    ValueError.
    """
    flat = np.asarray(flat).ravel()
    if flat.size < PARAM_COUNT:
        raise ValueError(f"need {PARAM_COUNT} parameters, got {flat.size}")
    parts = {}
    offset = 0
    for name, shape in LAYOUT:
        size = int(np.prod(shape))
        parts[name] = flat[offset : offset + size].reshape(shape)
        offset += size
    return LeNetParams(**parts)


def load_file(path: PathType) -> bytes:
    """Return the whole content of a file."""
    with open(path, "rb") as stream:
        return stream.read()


def load_weights(path: PathType, dtype=np.float32) -> np.ndarray:
    """Read a file of little-endian float32 values and convert them to ``dtype``.

    Trailing bytes that do not make up a whole float are ignored.
    """
    raw = load_file(path)
    count = len(raw) // _FILE_DTYPE.itemsize
    values = np.frombuffer(raw, dtype=_FILE_DTYPE, count=count)
    return values.astype(dtype)


def now_ms() -> float:
    """Monotonic clock reading in milliseconds."""
    return time.monotonic_ns() / 1e6
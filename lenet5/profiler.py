"""Per-layer timing of the forward pass and its summary report."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, fields
from typing import Iterator

from .params import now_ms

# LeNet-5 on 28x28 input: two convolutions and two fully connected layers.
FLOP_PER_IMAGE = 11.62e6

LAYER_STAGES = ("conv1", "pool1", "conv2", "pool2", "fc1", "fc2", "softmax")


@dataclass
class Profile:
    """Accumulated milliseconds spent in each stage of the network."""

    conv1: float = 0.0
    pool1: float = 0.0
    conv2: float = 0.0
    pool2: float = 0.0
    fc1: float = 0.0
    fc2: float = 0.0
    softmax: float = 0.0
    total: float = 0.0

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Add the time spent inside the block to the stage called ``name``."""
        if name not in {f.name for f in fields(self)}:
            raise ValueError(f"unknown stage {name!r}")
        start = now_ms()
        try:
            yield
        finally:
            setattr(self, name, getattr(self, name) + now_ms() - start)

    def report(self, n_images: int) -> str:
        """Return the performance summary for ``n_images`` processed images."""
        if n_images <= 0:
            raise ValueError("number of images must be positive")
        total = self.total
        if total <= 0:
            raise ValueError("no time recorded")
        fps = n_images * 1000.0 / total
        ms_img = total / n_images
        gflops = (FLOP_PER_IMAGE * n_images) / (total * 1e6)

        lines = [
            "",
            "=== Performance Summary ===",
            f"Images          : {n_images}",
            f"Total time      : {total:.2f} ms",
            f"Throughput      : {fps:.1f} imgs/s",
            f"Latency / image : {ms_img:.3f} ms",
            f"GFLOPS (actual) : {gflops:.2f}",
            "",
            "--- Layer breakdown (ms / % of total) ---",
        ]
        for name in LAYER_STAGES:
            value = getattr(self, name)
            lines.append(f"{name:<8} : {value:7.3f} ms  {100.0 * value / total:5.1f}%")
        lines.append("==========================================")
        return "\n".join(lines) + "\n"
"""LeNet-5 inference on MNIST with NumPy: IDX readers, operators, model, profiler and command."""

__version__ = "0.1.0"
__all__ = ["idx", "ops", "gemm", "params", "profiler", "model", "cli"]
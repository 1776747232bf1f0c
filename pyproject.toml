[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "lenet5"
version = "0.1.0"
description = "LeNet-5 inference on MNIST with NumPy, with reference, specialised 5x5 and im2col/GEMM convolution paths"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["lenet", "lenet-5", "mnist", "cnn", "inference", "im2col", "gemm"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lenet5 = "lenet5.cli:main"

[tool.setuptools.packages.find]
include = ["lenet5*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

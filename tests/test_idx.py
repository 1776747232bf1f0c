import struct

import numpy as np
import pytest

from lenet5.idx import MnistFormatError, load_mnist_images, load_mnist_labels


def _write_images(path, pixels, n, h, w, magic=2051):
    path.write_bytes(struct.pack(">IIII", magic, n, h, w) + bytes(pixels))


def _write_labels(path, labels, magic=2049):
    path.write_bytes(struct.pack(">II", magic, len(labels)) + bytes(labels))


def test_images_shape_and_dtype(tmp_path):
    f = tmp_path / "img"
    pixels = list(range(2 * 3 * 4))
    _write_images(f, pixels, 2, 3, 4)
    images = load_mnist_images(f)
    assert images.shape == (2, 1, 3, 4)
    assert images.dtype == np.float32


def test_images_are_scaled_to_unit_range(tmp_path):
    f = tmp_path / "img"
    pixels = [0, 255, 128, 64]
    _write_images(f, pixels, 1, 2, 2)
    images = load_mnist_images(f)
    assert images[0, 0, 0, 0] == 0.0
    assert images[0, 0, 0, 1] == 1.0
    np.testing.assert_allclose(images.ravel() * 255.0, pixels, rtol=1e-5)


def test_images_keep_row_major_order(tmp_path):
    f = tmp_path / "img"
    pixels = [10, 20, 30, 40, 50, 60]
    _write_images(f, pixels, 1, 2, 3)
    images = load_mnist_images(f)
    assert np.argmax(images.ravel()) == len(pixels) - 1
    assert images[0, 0, 1, 2] == images.max()


def test_images_bad_magic(tmp_path):
    f = tmp_path / "img"
    _write_images(f, [0] * 4, 1, 2, 2, magic=2049)
    with pytest.raises(MnistFormatError):
        load_mnist_images(f)


def test_images_truncated(tmp_path):
    f = tmp_path / "img"
    _write_images(f, [0] * 3, 1, 2, 2)
    with pytest.raises(MnistFormatError):
        load_mnist_images(f)


def test_images_short_header(tmp_path):
    f = tmp_path / "img"
    f.write_bytes(struct.pack(">II", 2051, 1))
    with pytest.raises(MnistFormatError):
        load_mnist_images(f)


def test_images_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_mnist_images(tmp_path / "absent")


def test_labels_round_trip(tmp_path):
    f = tmp_path / "lab"
    labels = [7, 2, 1, 0, 4, 1, 4, 9]
    _write_labels(f, labels)
    result = load_mnist_labels(f)
    assert result.dtype == np.uint8
    assert result.tolist() == labels


def test_labels_empty(tmp_path):
    f = tmp_path / "lab"
    _write_labels(f, [])
    assert load_mnist_labels(f).shape == (0,)


def test_labels_bad_magic(tmp_path):
    f = tmp_path / "lab"
    _write_labels(f, [1, 2], magic=2051)
    with pytest.raises(MnistFormatError):
        load_mnist_labels(f)


def test_labels_truncated(tmp_path):
    f = tmp_path / "lab"
    f.write_bytes(struct.pack(">II", 2049, 5) + bytes([1, 2]))
    with pytest.raises(MnistFormatError):
        load_mnist_labels(f)


def test_format_error_is_value_error(tmp_path):
    f = tmp_path / "lab"
    _write_labels(f, [1], magic=0)
    with pytest.raises(ValueError):
        load_mnist_labels(f)
"""
Tests for the Pillow-backed image codec and PixelBuffer validation.
"""

import io

import numpy as np
import pytest
from PIL import Image
from pydantic import ValidationError

from Extraction.codec import decode, encode, from_array, resize, rotate, to_array, to_image
from Extraction.schemas import PixelBuffer
from Extraction.utils import ImageDecodeError


def _png_bytes(img: Image.Image) -> bytes:
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


class TestPixelBuffer:
    def test_valid_buffer(self):
        buf = PixelBuffer(width=2, height=3, channels=1, pixels=bytes(6))
        assert buf.width == 2

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            PixelBuffer(width=2, height=3, channels=3, pixels=bytes(6))

    def test_unsupported_channels_rejected(self):
        with pytest.raises(ValidationError):
            PixelBuffer(width=2, height=2, channels=2, pixels=bytes(8))

    def test_zero_width_rejected(self):
        with pytest.raises(ValidationError):
            PixelBuffer(width=0, height=2, channels=1, pixels=b"")

    def test_frozen(self):
        buf = PixelBuffer(width=1, height=1, channels=1, pixels=b"\x00")
        with pytest.raises(ValidationError):
            buf.width = 5


class TestDecode:
    def test_decodes_png(self):
        arr = np.zeros((10, 20, 3), dtype=np.uint8)
        arr[:, :, 0] = 200
        buf = decode(_png_bytes(Image.fromarray(arr)))
        assert (buf.width, buf.height, buf.channels) == (20, 10, 3)
        assert np.array_equal(to_array(buf), arr)

    def test_palette_image_converted(self):
        img = Image.new("P", (8, 8))
        buf = decode(_png_bytes(img))
        assert buf.channels == 3

    def test_grayscale_kept(self):
        img = Image.new("L", (5, 4), color=90)
        buf = decode(_png_bytes(img))
        assert buf.channels == 1
        assert np.all(to_array(buf) == 90)

    def test_garbage_raises(self):
        with pytest.raises(ImageDecodeError):
            decode(b"definitely not an image")

    def test_empty_raises(self):
        with pytest.raises(ImageDecodeError):
            decode(b"")


class TestEncode:
    def test_encode_then_open(self):
        arr = np.full((6, 9), 40, dtype=np.uint8)
        data = encode(from_array(arr))
        assert data.startswith(b"\x89PNG")
        assert Image.open(io.BytesIO(data)).size == (9, 6)


class TestArrayBridge:
    def test_from_array_2d(self):
        buf = from_array(np.zeros((3, 4), dtype=np.uint8))
        assert (buf.width, buf.height, buf.channels) == (4, 3, 1)

    def test_from_array_clips(self):
        buf = from_array(np.array([[-5.0, 300.0]]))
        assert to_array(buf)[:, :, 0].tolist() == [[0, 255]]

    def test_from_array_rejects_1d(self):
        with pytest.raises(ValueError):
            from_array(np.zeros(5, dtype=np.uint8))

    def test_to_image_mode(self):
        assert to_image(from_array(np.zeros((3, 3), dtype=np.uint8))).mode == "L"
        assert to_image(from_array(np.zeros((3, 3, 4), dtype=np.uint8))).mode == "RGBA"


class TestRotate:
    def test_zero_rotation_keeps_size(self):
        buf = from_array(np.zeros((10, 20), dtype=np.uint8))
        result = rotate(buf, 0)
        assert (result.width, result.height) == (20, 10)

    def test_positive_angle_is_clockwise(self):
        arr = np.full((20, 10), 255, dtype=np.uint8)
        arr[0:5, 0:5] = 0  # top-left
        result = to_array(rotate(from_array(arr), 90))[:, :, 0]
        assert result.shape == (10, 20)
        assert np.all(result[0:5, 15:20] == 0)  # top-right
        assert np.all(result[5:, :] == 255)

    def test_expanded_corners_use_background(self):
        buf = from_array(np.zeros((50, 50), dtype=np.uint8))
        result = to_array(rotate(buf, 10, background=255))[:, :, 0]
        assert result.shape[0] > 50
        assert result[0, 0] == 255


class TestResize:
    def test_resize_dimensions(self):
        buf = from_array(np.zeros((10, 20, 3), dtype=np.uint8))
        result = resize(buf, 40, 25)
        assert (result.width, result.height, result.channels) == (40, 25, 3)

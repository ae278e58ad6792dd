"""
Tests for binary morphology on PixelBuffer masks.
"""

import numpy as np
import pytest

from Extraction.codec import from_array, to_array
from Extraction.morphology import close, dilate, erode, ink_mask, open_


def _make_blank(w=50, h=50, channels=1):
    """White canvas."""
    return np.full((h, w, channels), 255, dtype=np.uint8)


def _dark_count(buffer):
    return int(np.count_nonzero(to_array(buffer)[:, :, 0] == 0))


class TestDilate:
    def test_single_pixel_grows_to_square(self):
        arr = _make_blank()
        arr[25, 25] = 0
        result = dilate(from_array(arr), 3)
        assert _dark_count(result) == 9
        assert np.all(to_array(result)[24:27, 24:27, 0] == 0)

    def test_larger_kernel_grows_further(self):
        arr = _make_blank()
        arr[25, 25] = 0
        assert _dark_count(dilate(from_array(arr), 5)) == 25

    def test_even_kernel_uses_half_width(self):
        arr = _make_blank()
        arr[10, 10] = 0
        arr[30, 40] = 0
        buf = from_array(arr)
        assert to_array(dilate(buf, 2)).tobytes() == to_array(dilate(buf, 3)).tobytes()

    def test_kernel_one_is_identity(self):
        arr = _make_blank()
        arr[5:9, 5:20] = 0
        buf = from_array(arr)
        assert to_array(dilate(buf, 1)).tobytes() == to_array(buf).tobytes()

    def test_pixel_on_border_stays_in_bounds(self):
        arr = _make_blank()
        arr[0, 0] = 0
        result = dilate(from_array(arr), 3)
        assert _dark_count(result) == 4

    def test_invalid_kernel_rejected(self):
        with pytest.raises(ValueError):
            dilate(from_array(_make_blank()), 0)


class TestErode:
    def test_speck_removed(self):
        arr = _make_blank()
        arr[25, 25] = 0
        assert _dark_count(erode(from_array(arr), 3)) == 0

    def test_border_ink_erodes(self):
        arr = np.zeros((10, 10, 1), dtype=np.uint8)
        result = erode(from_array(arr), 3)
        out = to_array(result)[:, :, 0]
        assert _dark_count(result) == 64
        assert np.all(out[0, :] == 255)
        assert np.all(out[:, -1] == 255)

    def test_block_shrinks_by_half_width(self):
        arr = _make_blank()
        arr[10:20, 10:20] = 0
        result = erode(from_array(arr), 3)
        assert _dark_count(result) == 64


class TestCloseAndOpen:
    def test_opening_removes_isolated_speck(self):
        arr = _make_blank()
        arr[25, 25] = 0
        assert _dark_count(open_(from_array(arr), 3)) == 0

    def test_closing_bridges_one_pixel_gap(self):
        arr = _make_blank()
        arr[20:30, 10:25] = 0
        arr[20:30, 26:41] = 0
        result = close(from_array(arr), 3)
        assert np.all(to_array(result)[20:30, 25, 0] == 0)

    def test_close_then_open_preserves_clean_block(self):
        arr = _make_blank()
        arr[10:30, 10:30] = 0
        buf = from_array(arr)
        result = open_(close(buf, 3), 3)
        assert to_array(result).tobytes() == to_array(buf).tobytes()

    def test_output_is_binary(self):
        arr = _make_blank()
        arr[10:30, 10:30] = 90
        arr[35:40, 5:45] = 200
        result = close(from_array(arr), 3)
        assert set(np.unique(to_array(result))) <= {0, 255}

    def test_channels_replicated(self):
        arr = _make_blank(channels=3)
        arr[10:30, 10:30] = 0
        result = open_(from_array(arr), 3)
        out = to_array(result)
        assert result.channels == 3
        assert np.array_equal(out[:, :, 0], out[:, :, 1])
        assert np.array_equal(out[:, :, 0], out[:, :, 2])


class TestInkMask:
    def test_threshold_is_exclusive(self):
        arr = np.array([[127, 128, 0, 255]], dtype=np.uint8)
        mask = ink_mask(from_array(arr))
        assert mask.tolist() == [[True, False, True, False]]

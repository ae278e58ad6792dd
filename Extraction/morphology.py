"""
morphology.py

Binary morphology on PixelBuffer masks.

The first channel is read as a mask (dark = below DARK_PIXEL_THRESHOLD
means ink) and the result is written as 0 (ink) / 255 (background) to
every channel. Neighbourhoods are squares of radius kernel_size // 2.

- dilate: ink if any in-bounds neighbour is ink
- erode:  ink only if every neighbour is ink; neighbours outside the
          image count as background, so ink touching the border erodes
- close:  dilate then erode, reconnects broken strokes
- open_:  erode then dilate, removes specks and splits merged glyphs
"""

import logging

import numpy as np

from Extraction import config
from Extraction.codec import from_array, to_array
from Extraction.schemas import PixelBuffer

logger = logging.getLogger(__name__)


def ink_mask(buffer: PixelBuffer) -> np.ndarray:
    """Boolean (height, width) mask of dark pixels in the first channel."""
    return to_array(buffer)[:, :, 0] < config.DARK_PIXEL_THRESHOLD


def _mask_to_buffer(mask: np.ndarray, channels: int) -> PixelBuffer:
    gray = np.where(mask, 0, 255).astype(np.uint8)
    return from_array(np.repeat(gray[:, :, np.newaxis], channels, axis=2))


def _half_width(kernel_size: int) -> int:
    if kernel_size < 1:
        raise ValueError(f"Kernel size must be positive, got {kernel_size}")
    return kernel_size // 2


def _sweep(mask: np.ndarray, half: int, axis: int, combine) -> np.ndarray:
    """
    Combine every cell with its neighbours up to `half` steps away along
    one axis. Cells beyond the edge contribute False.
    """
    if half == 0:
        return mask.copy()

    pad = [(0, 0), (0, 0)]
    pad[axis] = (half, half)
    padded = np.pad(mask, pad, mode="constant", constant_values=False)

    length = mask.shape[axis]
    result = mask.copy()
    for offset in range(2 * half + 1):
        window = np.take(padded, range(offset, offset + length), axis=axis)
        result = combine(result, window)
    return result


def dilate(buffer: PixelBuffer, kernel_size: int = 3) -> PixelBuffer:
    """Grow ink by kernel_size // 2 pixels in every direction."""
    half = _half_width(kernel_size)
    mask = ink_mask(buffer)

    # A square window is separable: rows first, then columns
    grown = _sweep(mask, half, axis=1, combine=np.logical_or)
    grown = _sweep(grown, half, axis=0, combine=np.logical_or)

    return _mask_to_buffer(grown, buffer.channels)


def erode(buffer: PixelBuffer, kernel_size: int = 3) -> PixelBuffer:
    """Keep ink only where the whole square neighbourhood is ink."""
    half = _half_width(kernel_size)
    mask = ink_mask(buffer)

    shrunk = _sweep(mask, half, axis=1, combine=np.logical_and)
    shrunk = _sweep(shrunk, half, axis=0, combine=np.logical_and)

    return _mask_to_buffer(shrunk, buffer.channels)


def close(buffer: PixelBuffer, kernel_size: int = 3) -> PixelBuffer:
    """Morphological closing (dilation then erosion)."""
    logger.debug("Morphological closing (kernel=%d)", kernel_size)
    return erode(dilate(buffer, kernel_size), kernel_size)


def open_(buffer: PixelBuffer, kernel_size: int = 3) -> PixelBuffer:
    """Morphological opening (erosion then dilation)."""
    logger.debug("Morphological opening (kernel=%d)", kernel_size)
    return dilate(erode(buffer, kernel_size), kernel_size)

"""
threshold.py

Local-mean adaptive thresholding backed by a summed-area table.

Scanned and photographed pages rarely have even illumination, so each
pixel is compared with the mean of the square window around it instead
of one global cut-off. A pixel brighter than (local mean - C) becomes
255, anything else becomes 0; dark ink therefore stays dark, which is
what the morphology stages expect.
"""

import logging

import numpy as np

from Extraction.codec import from_array, to_array
from Extraction.schemas import PixelBuffer

logger = logging.getLogger(__name__)


def integral_image(gray: np.ndarray) -> np.ndarray:
    """
    Summed-area table with a leading zero row and column.

    table[y, x] is the sum of gray[:y, :x], so any rectangle sum is
    four lookups.
    """
    table = np.zeros((gray.shape[0] + 1, gray.shape[1] + 1), dtype=np.int64)
    table[1:, 1:] = gray.astype(np.int64).cumsum(axis=0).cumsum(axis=1)
    return table


def local_mean(gray: np.ndarray, block_size: int) -> np.ndarray:
    """Mean over a block_size window centred on each pixel, clipped at borders."""
    if block_size < 1:
        raise ValueError(f"Block size must be positive, got {block_size}")

    height, width = gray.shape
    half = block_size // 2
    table = integral_image(gray)

    ys = np.arange(height)
    xs = np.arange(width)
    y1 = np.clip(ys - half, 0, height - 1)
    y2 = np.clip(ys + half, 0, height - 1)
    x1 = np.clip(xs - half, 0, width - 1)
    x2 = np.clip(xs + half, 0, width - 1)

    # Broadcast row bounds against column bounds
    top, bottom = y1[:, None], (y2 + 1)[:, None]
    left, right = x1[None, :], (x2 + 1)[None, :]

    window_sum = (
        table[bottom, right]
        - table[bottom, left]
        - table[top, right]
        + table[top, left]
    )
    area = (bottom - top) * (right - left)
    return window_sum / area


def adaptive_threshold(
    buffer: PixelBuffer, block_size: int = 21, c: float = 8
) -> PixelBuffer:
    """
    Binarize the first channel against its local mean.

    Args:
        buffer: Input image; only channel 0 is read.
        block_size: Side of the averaging window.
        c: Constant subtracted from the local mean.

    Returns:
        New buffer of the same shape holding only 0 and 255, replicated
        across all channels.
    """
    gray = to_array(buffer)[:, :, 0]
    threshold = local_mean(gray, block_size) - c

    binary = np.where(gray > threshold, 255, 0).astype(np.uint8)
    logger.debug(
        "Adaptive threshold (block=%d, C=%s): %.1f%% foreground",
        block_size, c, 100.0 * np.count_nonzero(binary) / binary.size,
    )

    return from_array(np.repeat(binary[:, :, np.newaxis], buffer.channels, axis=2))

"""
skew.py

Projection-profile skew estimation.

Horizontal text lines give sharply alternating dark and light rows, so
the variance of per-row ink counts peaks when the page is straight. The
estimator rotates the page through a fixed set of integer candidate
angles and keeps the one with the highest variance.
"""

import logging
from typing import Iterable, Optional

import numpy as np

from Extraction import config
from Extraction.codec import rotate, to_array
from Extraction.schemas import PixelBuffer

logger = logging.getLogger(__name__)


def row_profile_variance(buffer: PixelBuffer) -> float:
    """Population variance of the number of dark pixels in each row."""
    gray = to_array(buffer)[:, :, 0]
    row_counts = np.count_nonzero(gray < config.DARK_PIXEL_THRESHOLD, axis=1)
    return float(np.var(row_counts))


def estimate_skew_angle(
    buffer: PixelBuffer, candidates: Optional[Iterable[float]] = None
) -> float:
    """
    Estimate the rotation (degrees, clockwise positive) that straightens
    the text lines of a page.

    Candidates are tried in ascending order and only a strictly larger
    variance replaces the current best, so ties keep the first candidate
    and a page without ink yields 0. Any failure also yields 0: skew
    correction is best-effort.
    """
    if candidates is None:
        candidates = config.SKEW_CANDIDATE_ANGLES

    try:
        best_angle = 0.0
        best_variance = 0.0

        for angle in sorted(candidates):
            rotated = rotate(buffer, angle, background=255)
            variance = row_profile_variance(rotated)
            logger.debug("Skew candidate %+d: variance=%.2f", angle, variance)

            if variance > best_variance:
                best_variance = variance
                best_angle = float(angle)

    except Exception as e:
        logger.error("Skew estimation failed: %s", e)
        return 0.0

    logger.info("Estimated skew angle: %.1f degrees", best_angle)
    return best_angle

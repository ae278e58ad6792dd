"""
preprocessor.py

Image preprocessing pipeline that turns an uploaded page into a clean
binary mask for the recognition engine.

Stages run in a fixed order and each one returns a new PixelBuffer:

    grayscale -> normalize -> contrast -> median -> sharpen -> upscale
    -> deskew -> adaptive threshold -> closing -> opening

Two parameter sets exist (PreprocessAttempt.FIRST / SECOND); the second
is used when the first pass produced no readable text. The pipeline
works on numpy arrays throughout, converting to OpenCV only for the
median and Gaussian filters.
"""

import logging

import cv2
import numpy as np

from Extraction import config
from Extraction.codec import decode, from_array, resize, rotate, to_array
from Extraction.morphology import close, open_
from Extraction.schemas import AttemptParameters, PixelBuffer, PreprocessAttempt
from Extraction.skew import estimate_skew_angle
from Extraction.threshold import adaptive_threshold

logger = logging.getLogger(__name__)


def attempt_parameters(attempt: PreprocessAttempt) -> AttemptParameters:
    """Look up the tunables for a preprocessing attempt."""
    return AttemptParameters(**config.ATTEMPT_SETTINGS[PreprocessAttempt(attempt).value])


def preprocess_image(
    raw_bytes: bytes, attempt: PreprocessAttempt = PreprocessAttempt.FIRST
) -> PixelBuffer:
    """
    Run the full preprocessing pipeline on encoded image bytes.

    Any failure inside the full sequence falls back to a minimal
    sequence (grayscale, normalize, sharpen), and if that fails too, to
    a plain grayscale conversion.

    Args:
        raw_bytes: Encoded image (PNG, JPEG, ...).
        attempt: Parameter set to use.

    Returns:
        Preprocessed PixelBuffer.

    Raises:
        ImageDecodeError: Only when the bytes cannot be decoded at all.
    """
    attempt = PreprocessAttempt(attempt)

    try:
        return _run_full_sequence(raw_bytes, attempt)
    except Exception as e:
        logger.error("Preprocessing error (attempt %d): %s", attempt.value, e)

    try:
        logger.info("Retrying with simplified preprocessing")
        return _run_minimal_sequence(raw_bytes)
    except Exception as e:
        logger.error("Simplified preprocessing also failed: %s", e)

    logger.info("Applying minimal preprocessing (grayscale only)")
    return to_grayscale(decode(raw_bytes))


def _run_full_sequence(raw_bytes: bytes, attempt: PreprocessAttempt) -> PixelBuffer:
    params = attempt_parameters(attempt)
    logger.info("Starting preprocessing pipeline (attempt %d)", attempt.value)

    buffer = decode(raw_bytes)
    logger.info("Original image: %dx%d", buffer.width, buffer.height)

    # 1-2. Grayscale and stretch to the full dynamic range
    buffer = to_grayscale(buffer)
    buffer = normalize_histogram(buffer)

    # 3. Linear contrast boost
    buffer = linear_contrast(buffer, params.contrast_multiplier, config.CONTRAST_OFFSET)
    logger.debug("Contrast applied (factor %.1f)", params.contrast_multiplier)

    # 4-5. Salt-and-pepper removal, then edge sharpening
    buffer = median_filter(buffer, config.MEDIAN_WINDOW)
    buffer = sharpen(buffer)

    # 6. Low-resolution inputs starve thresholding and morphology
    buffer = upscale_if_small(buffer)

    # 7. Rotation correction
    buffer = deskew(buffer)

    # 8. Local binarization
    buffer = adaptive_threshold(buffer, params.block_size, params.threshold_c)
    logger.debug(
        "Adaptive threshold done (block=%d, C=%s)", params.block_size, params.threshold_c
    )

    # 9. Reconnect broken strokes of connected script
    buffer = close(buffer, params.closing_kernel)

    # 10. Separate glyphs that bled together
    buffer = open_(buffer, params.opening_kernel)

    logger.info("Preprocessing complete: %dx%d", buffer.width, buffer.height)
    return buffer


def _run_minimal_sequence(raw_bytes: bytes) -> PixelBuffer:
    buffer = to_grayscale(decode(raw_bytes))
    buffer = normalize_histogram(buffer)
    return sharpen(buffer)


def to_grayscale(buffer: PixelBuffer) -> PixelBuffer:
    """Convert to a single luma channel (ITU-R 601 weights); alpha is ignored."""
    arr = to_array(buffer).astype(np.float64)

    if buffer.channels == 1:
        return from_array(arr[:, :, 0].astype(np.uint8))

    luma = 0.299 * arr[:, :, 0] + 0.587 * arr[:, :, 1] + 0.114 * arr[:, :, 2]
    return from_array(np.rint(luma).astype(np.uint8))


def normalize_histogram(buffer: PixelBuffer) -> PixelBuffer:
    """
    Stretch intensities so the low/high percentiles map to 0 and 255.

    A flat image (no spread between the percentiles) is returned as is.
    """
    arr = to_array(buffer).astype(np.float64)
    low_pct, high_pct = config.NORMALIZE_PERCENTILES
    low, high = np.percentile(arr[:, :, 0], [low_pct, high_pct])

    if high <= low:
        return from_array(arr.astype(np.uint8))

    stretched = (arr - low) * 255.0 / (high - low)
    return from_array(np.rint(np.clip(stretched, 0, 255)).astype(np.uint8))


def linear_contrast(
    buffer: PixelBuffer, multiplier: float, offset: float = config.CONTRAST_OFFSET
) -> PixelBuffer:
    """output = input * multiplier + offset, clamped to [0, 255]."""
    arr = to_array(buffer).astype(np.float64)
    boosted = arr * multiplier + offset
    return from_array(np.rint(np.clip(boosted, 0, 255)).astype(np.uint8))


def median_filter(buffer: PixelBuffer, window: int = 3) -> PixelBuffer:
    """Median filter over a window x window neighbourhood."""
    arr = to_array(buffer)
    if buffer.channels == 1:
        return from_array(cv2.medianBlur(arr[:, :, 0], window))
    return from_array(cv2.medianBlur(np.ascontiguousarray(arr), window))


def sharpen(
    buffer: PixelBuffer,
    sigma: float = config.SHARPEN_SIGMA,
    amount: float = config.SHARPEN_AMOUNT,
) -> PixelBuffer:
    """Unsharp mask: add back the difference between the image and its blur."""
    arr = to_array(buffer).astype(np.float64)
    blurred = cv2.GaussianBlur(arr, (0, 0), sigma)
    if blurred.ndim == 2:
        blurred = blurred[:, :, np.newaxis]

    sharpened = arr + amount * (arr - blurred)
    return from_array(np.rint(np.clip(sharpened, 0, 255)).astype(np.uint8))


def upscale_if_small(buffer: PixelBuffer) -> PixelBuffer:
    """
    Upscale with Lanczos resampling when either side is below
    MIN_DIMENSION, by max(MIN/width, MIN/height, MIN_UPSCALE_FACTOR).
    """
    w, h = buffer.width, buffer.height
    minimum = config.MIN_DIMENSION

    if w >= minimum and h >= minimum:
        return buffer

    scale = max(minimum / w, minimum / h, config.MIN_UPSCALE_FACTOR)
    new_w = int(round(w * scale))
    new_h = int(round(h * scale))

    logger.info("Upscaling image from %dx%d to %dx%d (%.2fx)", w, h, new_w, new_h, scale)
    return resize(buffer, new_w, new_h)


def deskew(buffer: PixelBuffer) -> PixelBuffer:
    """Rotate by the estimated skew angle unless it is below MIN_SKEW_CORRECTION."""
    angle = estimate_skew_angle(buffer)

    if abs(angle) < config.MIN_SKEW_CORRECTION:
        logger.info("No significant skew detected, skipping correction")
        return buffer

    logger.info("Deskewing by %.1f degrees", angle)
    return rotate(buffer, angle, background=255)

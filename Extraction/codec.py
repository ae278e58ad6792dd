"""
codec.py

Image codec bridge between encoded bytes, Pillow images, numpy arrays
and PixelBuffer.

Decoding, encoding, rotation and resampling are delegated to Pillow;
everything else in the pipeline works on PixelBuffer / numpy arrays.
"""

import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from Extraction.schemas import PixelBuffer
from Extraction.utils import ImageDecodeError

logger = logging.getLogger(__name__)


def decode(data: bytes) -> PixelBuffer:
    """Decode encoded image bytes (PNG, JPEG, TIFF, ...) into a PixelBuffer."""
    if not data:
        raise ImageDecodeError("Empty image data")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if img.mode not in ("L", "RGB", "RGBA"):
                img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
            buffer = from_image(img)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode image: {e}") from e

    logger.debug(
        "Decoded image: %dx%d, %d channel(s)",
        buffer.width, buffer.height, buffer.channels,
    )
    return buffer


def encode(buffer: PixelBuffer, fmt: str = "PNG") -> bytes:
    """Encode a PixelBuffer into the given Pillow format."""
    out = io.BytesIO()
    to_image(buffer).save(out, format=fmt)
    return out.getvalue()


def to_array(buffer: PixelBuffer) -> np.ndarray:
    """View a PixelBuffer as a (height, width, channels) uint8 array copy."""
    arr = np.frombuffer(buffer.pixels, dtype=np.uint8)
    return arr.reshape(buffer.height, buffer.width, buffer.channels).copy()


def from_array(arr: np.ndarray) -> PixelBuffer:
    """Build a PixelBuffer from a 2D (gray) or 3D (H, W, C) array."""
    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis]
    if arr.ndim != 3:
        raise ValueError(f"Expected 2D or 3D array, got {arr.ndim}D")

    height, width, channels = arr.shape
    data = np.ascontiguousarray(np.clip(arr, 0, 255).astype(np.uint8))
    return PixelBuffer(
        width=width,
        height=height,
        channels=channels,
        pixels=data.tobytes(),
    )


def to_image(buffer: PixelBuffer) -> Image.Image:
    """Convert a PixelBuffer to a Pillow image of the matching mode."""
    arr = to_array(buffer)
    if buffer.channels == 1:
        arr = arr[:, :, 0]
    return Image.fromarray(arr)


def from_image(img: Image.Image) -> PixelBuffer:
    """Convert a Pillow image (L, RGB or RGBA) to a PixelBuffer."""
    if img.mode not in ("L", "RGB", "RGBA"):
        img = img.convert("RGB")
    return from_array(np.asarray(img))


def rotate(
    buffer: PixelBuffer, angle_degrees: float, background: int = 255
) -> PixelBuffer:
    """
    Rotate clockwise by angle_degrees, expanding the canvas and filling
    the uncovered corners with the background gray level.
    """
    img = to_image(buffer)
    fill = background if buffer.channels == 1 else (background,) * buffer.channels
    rotated = img.rotate(
        -angle_degrees,
        resample=Image.BICUBIC,
        expand=True,
        fillcolor=fill,
    )
    return from_image(rotated)


def resize(
    buffer: PixelBuffer, width: int, height: int, resample: int = Image.LANCZOS
) -> PixelBuffer:
    """Resample a PixelBuffer to width x height (Lanczos by default)."""
    img = to_image(buffer)
    return from_image(img.resize((width, height), resample))

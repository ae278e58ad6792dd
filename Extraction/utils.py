"""
utils.py

File validation, security checks and error types for the extraction module.

Handles:
- File path sanitization against path traversal
- Extension and size enforcement
- Reading upload bytes and guessing their MIME type
"""

import logging
import mimetypes
from pathlib import Path
from typing import Tuple, Union

from Extraction import config

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Base class for extraction failures."""

    pass


class ExtractionFileError(ExtractionError):
    """Raised when a file cannot be validated or read."""

    pass


class ExtractionSecurityError(ExtractionError):
    """Raised when a security check fails (e.g., path traversal)."""

    pass


class ImageDecodeError(ExtractionError):
    """Raised when bytes cannot be decoded into an image."""

    pass


def sanitize_path(file_path: Union[str, Path]) -> Path:
    """
    Validate and sanitize a file path.

    Rejects paths containing '..', symlinks, and anything that is not
    an existing regular file.

    Raises:
        ExtractionSecurityError: If path traversal is detected.
        ExtractionFileError: If the file does not exist or is not a file.
    """
    raw = str(file_path)
    if ".." in raw:
        raise ExtractionSecurityError(f"Path traversal detected in: {raw}")

    unresolved = Path(file_path)
    if unresolved.is_symlink():
        raise ExtractionSecurityError(f"Symlinks are not allowed: {unresolved}")

    path = unresolved.resolve()

    if not path.exists():
        raise ExtractionFileError(f"File not found: {path}")

    if not path.is_file():
        raise ExtractionFileError(f"Not a regular file: {path}")

    return path


def validate_file(file_path: Path) -> None:
    """
    Validate file extension and size.

    Raises:
        ExtractionFileError: If validation fails.
    """
    ext = file_path.suffix.lower()
    if ext not in config.ALLOWED_EXTENSIONS:
        raise ExtractionFileError(
            f"Unsupported file extension '{ext}'. "
            f"Allowed: {config.ALLOWED_EXTENSIONS}"
        )

    size = file_path.stat().st_size
    if size == 0:
        raise ExtractionFileError(f"File is empty: {file_path}")

    size_mb = size / (1024 * 1024)
    if size_mb > config.MAX_FILE_SIZE_MB:
        raise ExtractionFileError(
            f"File too large: {size_mb:.1f}MB exceeds "
            f"limit of {config.MAX_FILE_SIZE_MB}MB"
        )


# Upload types some platforms' mimetypes tables lack
_EXTRA_MIME_TYPES = {
    ".md": "text/markdown",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".webp": "image/webp",
}


def guess_mime_type(file_path: Union[str, Path]) -> str:
    """Guess a MIME type from the file name, defaulting to octet-stream."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    if suffix in _EXTRA_MIME_TYPES:
        return _EXTRA_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def read_upload(file_path: Union[str, Path]) -> Tuple[bytes, str, str]:
    """
    Read a validated upload from disk.

    Returns:
        (raw bytes, MIME type, file name)
    """
    path = sanitize_path(file_path)
    validate_file(path)

    data = path.read_bytes()
    mime_type = guess_mime_type(path)
    logger.info("Loaded file: %s (%d bytes, %s)", path.name, len(data), mime_type)
    return data, mime_type, path.name

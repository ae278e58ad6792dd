"""
schemas.py

Pydantic models shared across the extraction pipeline.

Imaging stages exchange PixelBuffer instances; the recognition and
text-repair stages produce RecognitionResult, TextChunk and
StructuredDocument objects.
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PixelBuffer(BaseModel):
    """Decoded raster image: row-major, channel-interleaved 8-bit samples."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=1, description="Image width in pixels")
    height: int = Field(..., ge=1, description="Image height in pixels")
    channels: int = Field(..., description="Samples per pixel (1, 3 or 4)")
    pixels: bytes = Field(..., repr=False, description="width*height*channels bytes")

    @model_validator(mode="after")
    def _check_layout(self) -> "PixelBuffer":
        if self.channels not in (1, 3, 4):
            raise ValueError(f"Unsupported channel count: {self.channels}")
        expected = self.width * self.height * self.channels
        if len(self.pixels) != expected:
            raise ValueError(
                f"Pixel data has {len(self.pixels)} bytes, expected {expected}"
            )
        return self


class PreprocessAttempt(int, Enum):
    """Which parameter set the preprocessing pipeline runs with."""

    FIRST = 1
    SECOND = 2


class AttemptParameters(BaseModel):
    """Tunables selected by a PreprocessAttempt."""

    contrast_multiplier: float = Field(..., gt=0)
    block_size: int = Field(..., ge=1, description="Adaptive threshold window side")
    threshold_c: float = Field(..., description="Constant subtracted from the local mean")
    closing_kernel: int = Field(..., ge=1)
    opening_kernel: int = Field(..., ge=1)


class RecognizedText(BaseModel):
    """Raw output of a recognition engine for one image."""

    text: str = Field(default="", description="Recognized text, untrimmed")
    confidence: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Engine confidence when reported"
    )


class RecognitionResult(BaseModel):
    """Text accepted by the recognition adapter and the attempt that produced it."""

    model_config = ConfigDict(frozen=True)

    text: str
    attempt_used: PreprocessAttempt


class TextChunk(BaseModel):
    """Slice of a larger document's raw text, cut at a sentence/line break."""

    content: str
    is_first: bool = False
    is_last: bool = False


class DocumentSection(BaseModel):
    """One heading and the text that belongs to it."""

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal["main", "sub"] = Field(..., alias="type", description="Heading level")
    title: str = Field(default="", description="Heading text")
    content: str = Field(default="", description="Section body")


class StructuredDocument(BaseModel):
    """Sectioned view of a document plus its canonical flattened text."""

    sections: List[DocumentSection] = Field(default_factory=list)
    plain_text: str = Field(default="", description="Titles and contents joined in order")


class KeyPoolStatus(BaseModel):
    """Counts reported by a credential pool."""

    total: int = Field(default=0, ge=0)
    available: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)

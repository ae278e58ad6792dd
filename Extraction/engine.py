"""
engine.py

Recognition engine wrappers.

Two interchangeable engines are available, selected by
config.OCR_ENGINE:

- SuryaRecognitionEngine: Surya's detection + recognition predictors,
  loaded lazily on first use and cached for reuse.
- TesseractRecognitionEngine: Tesseract through pytesseract, driven by
  the "ara+eng" language set.

Both take a preprocessed PixelBuffer (usually a black/white mask) plus
a script hint and return RecognizedText.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from Extraction import config
from Extraction.codec import to_image
from Extraction.schemas import PixelBuffer, RecognizedText

logger = logging.getLogger(__name__)


class RecognitionEngine(ABC):
    """Uniform interface for OCR engines."""

    name: str = "base"

    @abstractmethod
    def recognize(self, buffer: PixelBuffer, script_hint: str) -> RecognizedText:
        """Recognize the text on one preprocessed page.

        Parameters
        ----------
        buffer:
            Preprocessed page, typically a binary mask.
        script_hint:
            Tesseract-style language set, e.g. ``"ara+eng"``.
        """
        ...

    def reset(self) -> None:
        """Release any loaded models."""


class SuryaRecognitionEngine(RecognitionEngine):
    """
    Wrapper around Surya's detection and recognition predictors.

    Surya's recognizer is multilingual and picks the script itself, so
    the script hint is only logged.
    """

    name = "surya"

    def __init__(self):
        self._det_predictor = None
        self._rec_predictor = None
        self._models_loaded = False

    def _load_models(self) -> None:
        """Lazy-load Surya predictors."""
        if self._models_loaded:
            return

        try:
            from surya.detection import DetectionPredictor
            from surya.foundation import FoundationPredictor
            from surya.recognition import RecognitionPredictor
        except ImportError:
            raise ImportError("surya-ocr is required. Install it with: pip install surya-ocr")

        logger.info("Loading Surya models...")
        self._det_predictor = DetectionPredictor()
        self._rec_predictor = RecognitionPredictor(FoundationPredictor())
        self._models_loaded = True
        logger.info("Surya models loaded successfully")

    def recognize(self, buffer: PixelBuffer, script_hint: str) -> RecognizedText:
        self._load_models()
        logger.debug("Surya recognition (hint=%s, %dx%d)", script_hint, buffer.width, buffer.height)

        image = to_image(buffer).convert("RGB")
        predictions = self._rec_predictor([image], det_predictor=self._det_predictor)

        if not predictions or not predictions[0].text_lines:
            return RecognizedText(text="", confidence=0.0)

        lines: List[Tuple[str, float]] = []
        for text_line in predictions[0].text_lines:
            text = (text_line.text or "").strip()
            if not text:
                continue
            lines.append((text, float(getattr(text_line, "confidence", 0.0) or 0.0)))

        return RecognizedText(
            text="\n".join(text for text, _ in lines),
            confidence=_compute_text_confidence(lines),
        )

    def reset(self) -> None:
        """Release models and free memory."""
        self._det_predictor = None
        self._rec_predictor = None
        self._models_loaded = False
        logger.info("Surya models released")


class TesseractRecognitionEngine(RecognitionEngine):
    """Tesseract OCR through pytesseract."""

    name = "tesseract"

    def __init__(self, psm: int = 3):
        self.psm = psm

    def recognize(self, buffer: PixelBuffer, script_hint: str) -> RecognizedText:
        try:
            import pytesseract
        except ImportError:
            raise ImportError("pytesseract is required. Install it with: pip install pytesseract")

        logger.debug("Tesseract recognition (lang=%s, %dx%d)", script_hint, buffer.width, buffer.height)
        text = pytesseract.image_to_string(
            to_image(buffer),
            lang=script_hint,
            config=f"--psm {self.psm}",
        )
        return RecognizedText(text=text)


_ENGINES = {
    SuryaRecognitionEngine.name: SuryaRecognitionEngine,
    TesseractRecognitionEngine.name: TesseractRecognitionEngine,
}


def create_engine(name: str) -> RecognitionEngine:
    """Instantiate an engine by its configured name."""
    try:
        engine_cls = _ENGINES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown OCR engine '{name}'. Available: {sorted(_ENGINES)}"
        )
    return engine_cls()


# Module-level singleton engine
_engine: Optional[RecognitionEngine] = None


def get_engine() -> RecognitionEngine:
    """Get or create the singleton engine named by config.OCR_ENGINE."""
    global _engine
    if _engine is None:
        _engine = create_engine(config.OCR_ENGINE)
        logger.info("Using OCR engine: %s", _engine.name)
    return _engine


def reset_engine() -> None:
    """Reset the singleton engine (useful for testing)."""
    global _engine
    if _engine is not None:
        _engine.reset()
    _engine = None


def _compute_text_confidence(lines: List[Tuple[str, float]]) -> float:
    """
    Weighted average of line confidences, weighted by line length.
    """
    if not lines:
        return 0.0

    total_chars = sum(len(text) for text, _ in lines)
    if total_chars == 0:
        return 0.0

    weighted_sum = sum(conf * len(text) for text, conf in lines)
    return min(1.0, max(0.0, weighted_sum / total_chars))

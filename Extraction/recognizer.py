"""
recognizer.py

Runs preprocessing and a recognition engine over one image, retrying
once with the more aggressive preprocessing parameters when the first
pass yields next to nothing.
"""

import logging
from typing import Optional

from Extraction import config
from Extraction.engine import RecognitionEngine, get_engine
from Extraction.postprocessor import clean_ocr_text
from Extraction.preprocessor import preprocess_image
from Extraction.prompts import EXTRACTION_FAILED_MESSAGE, NO_TEXT_FOUND_MESSAGE
from Extraction.schemas import PreprocessAttempt, RecognitionResult

logger = logging.getLogger(__name__)


class RecognitionAdapter:
    """
    Image bytes in, text out.

    The engine is resolved lazily through get_engine() unless one is
    injected, so constructing an adapter never loads models.
    """

    def __init__(
        self,
        engine: Optional[RecognitionEngine] = None,
        script_hint: str = config.OCR_SCRIPT_HINT,
        min_chars: int = config.MIN_RECOGNIZED_CHARS,
    ):
        self._engine = engine
        self.script_hint = script_hint
        self.min_chars = min_chars

    @property
    def engine(self) -> RecognitionEngine:
        if self._engine is None:
            self._engine = get_engine()
        return self._engine

    def recognize(self, raw_bytes: bytes) -> str:
        """
        Recognize the text in an encoded image.

        Returns the recognized text, NO_TEXT_FOUND_MESSAGE when both
        attempts come back (nearly) empty, or EXTRACTION_FAILED_MESSAGE
        on any error. Never raises.
        """
        try:
            result = self.recognize_detailed(raw_bytes)
        except Exception as e:
            logger.error("Error during recognition: %s", e)
            return EXTRACTION_FAILED_MESSAGE

        if result is None:
            logger.info("No text found in image after all preprocessing attempts")
            return NO_TEXT_FOUND_MESSAGE

        return result.text

    def recognize_detailed(self, raw_bytes: bytes) -> Optional[RecognitionResult]:
        """
        Same as recognize() but reports which attempt produced the text.

        Returns None when no readable text was found; errors propagate.
        """
        logger.info("Recognizing image (%d bytes)", len(raw_bytes))

        for attempt in (PreprocessAttempt.FIRST, PreprocessAttempt.SECOND):
            if attempt is PreprocessAttempt.SECOND:
                logger.info("No/minimal text found, retrying with alternate preprocessing parameters")

            text = self._run_attempt(raw_bytes, attempt)
            if len(text) >= self.min_chars:
                logger.info("Recognized %d characters (attempt %d)", len(text), attempt.value)
                return RecognitionResult(text=text, attempt_used=attempt)

        return None

    def _run_attempt(self, raw_bytes: bytes, attempt: PreprocessAttempt) -> str:
        buffer = preprocess_image(raw_bytes, attempt)
        recognized = self.engine.recognize(buffer, self.script_hint)

        text = (recognized.text or "").strip()
        if config.ENABLE_OCR_TEXT_CLEANUP:
            text = clean_ocr_text(text)

        if recognized.confidence is not None:
            logger.debug("Attempt %d confidence: %.3f", attempt.value, recognized.confidence)
        return text

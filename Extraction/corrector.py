"""
corrector.py

LLM-backed spelling and character repair for recognized Arabic text.
"""

import logging
from typing import Optional

from Extraction import config
from Extraction.llm import TextCompletion
from Extraction.prompts import CORRECTION_SYSTEM_PROMPT, CORRECTION_USER_PROMPT

logger = logging.getLogger(__name__)


class TextCorrector:
    """
    Ask a completion collaborator to fix OCR errors.

    Without a collaborator, or for text shorter than
    CORRECTION_MIN_CHARS, the input is returned unchanged. Empty model
    output and any collaborator failure also return the input.
    """

    def __init__(self, completion: Optional[TextCompletion] = None):
        self.completion = completion

    def correct(self, raw_text: str) -> str:
        if self.completion is None:
            logger.info("No LLM collaborator available, skipping correction")
            return raw_text

        if len(raw_text) < config.CORRECTION_MIN_CHARS:
            logger.info("Text too short for correction")
            return raw_text

        logger.info("Starting LLM-based Arabic text correction (%d chars)", len(raw_text))

        try:
            corrected = self.completion.complete(
                CORRECTION_SYSTEM_PROMPT,
                CORRECTION_USER_PROMPT.format(raw_text=raw_text),
                max_tokens=config.CORRECTION_MAX_TOKENS,
                temperature=config.CORRECTION_TEMPERATURE,
            )
        except Exception as e:
            logger.error("Correction error: %s", e)
            return raw_text

        if not corrected or not corrected.strip():
            logger.info("No correction generated, using original")
            return raw_text

        corrected = corrected.strip()
        logger.info("Correction complete: %d -> %d chars", len(raw_text), len(corrected))
        return corrected

"""
structure.py

Heading detection: asks the completion collaborator to split a document
into titled sections and returns them as a StructuredDocument.
"""

import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from Extraction import config
from Extraction.llm import TextCompletion
from Extraction.prompts import STRUCTURE_SYSTEM_PROMPT, STRUCTURE_USER_PROMPT
from Extraction.schemas import DocumentSection, StructuredDocument

logger = logging.getLogger(__name__)


def build_document(sections: List[DocumentSection]) -> StructuredDocument:
    """Wrap sections and derive the flattened text."""
    plain_text = "\n\n".join(f"{s.title}\n\n{s.content}" for s in sections)
    return StructuredDocument(sections=sections, plain_text=plain_text)


def default_document(raw_text: str) -> StructuredDocument:
    """A single main section holding the whole text."""
    return build_document(
        [DocumentSection(kind="main", title=config.DEFAULT_SECTION_TITLE, content=raw_text)]
    )


def extract_json_array(text: str) -> Optional[list]:
    """Return the first JSON array embedded in text, or None."""
    decoder = json.JSONDecoder()
    start = text.find("[")

    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)

    return None


def parse_sections(response: str) -> Optional[List[DocumentSection]]:
    """
    Parse the model response into sections.

    Returns None when no array is found, the array is empty, or any
    item fails validation.
    """
    items = extract_json_array(response)
    if items is None:
        logger.info("No JSON array found in response")
        return None
    if not items:
        logger.info("Empty section list in response")
        return None

    try:
        return [DocumentSection.model_validate(item) for item in items]
    except ValidationError as e:
        logger.error("Invalid section in response: %s", e)
        return None


class StructureDetector:
    """Detect main and sub headings in extracted text."""

    def __init__(self, completion: Optional[TextCompletion] = None):
        self.completion = completion

    def detect_headings(self, raw_text: str) -> StructuredDocument:
        """
        Split raw_text into sections.

        Only the first STRUCTURE_MAX_CHARS characters are sent to the
        model. Any failure yields a single main section with the whole
        text.
        """
        if self.completion is None:
            logger.info("No LLM collaborator available, returning raw text")
            return default_document(raw_text)

        if len(raw_text) < config.STRUCTURE_MIN_CHARS:
            logger.info("Text too short for heading detection")
            return default_document(raw_text)

        text_to_process = raw_text[: config.STRUCTURE_MAX_CHARS]
        logger.info("Detecting headings in %d chars", len(text_to_process))

        try:
            response = self.completion.complete(
                STRUCTURE_SYSTEM_PROMPT,
                STRUCTURE_USER_PROMPT.format(raw_text=text_to_process),
                max_tokens=config.STRUCTURE_MAX_TOKENS,
                temperature=config.STRUCTURE_TEMPERATURE,
            )
        except Exception as e:
            logger.error("Heading detection error: %s", e)
            return default_document(raw_text)

        if not response:
            logger.info("No response generated, using original")
            return default_document(raw_text)

        sections = parse_sections(response)
        if sections is None:
            return default_document(raw_text)

        logger.info("Detected %d sections", len(sections))
        return build_document(sections)

"""
pipeline.py

Main orchestrator for the extraction module.

Dispatches an upload by MIME type:

    image/*  -> preprocessing -> recognition (with retry) -> LLM correction
    PDF      -> text layer (or OCR of rendered pages) -> header/footer strip
                -> multi-page merge
    DOCX     -> python-docx text
    text     -> UTF-8 decode

Recognition and completion collaborators default to the shared
get_engine() / get_completion() instances and can be injected for
testing. Passing completion=None disables every LLM stage.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from Extraction import config
from Extraction.corrector import TextCorrector
from Extraction.llm import TextCompletion, get_completion
from Extraction.merger import DocumentMerger
from Extraction.postprocessor import strip_repeated_page_lines
from Extraction.prompts import (
    DOCX_READ_FAILED_MESSAGE,
    OCR_RESULT_PREFIX,
    PDF_READ_FAILED_MESSAGE,
    SENTINEL_MESSAGES,
    UNSUPPORTED_FILE_MESSAGE,
)
from Extraction.readers import read_docx_text, read_pdf_pages, read_plain_text, render_pdf_pages
from Extraction.recognizer import RecognitionAdapter
from Extraction.schemas import StructuredDocument
from Extraction.structure import StructureDetector
from Extraction.utils import ExtractionFileError, read_upload

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPES = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/msword",
)
TEXT_MIME_TYPES = ("text/plain", "text/markdown")

# Marks "use the shared client" as distinct from an explicit None
_SHARED = object()


def _resolve_completion(completion) -> Optional[TextCompletion]:
    if completion is _SHARED:
        return get_completion()
    return completion


def extract_text_from_image(
    data: bytes,
    adapter: Optional[RecognitionAdapter] = None,
    completion=_SHARED,
) -> str:
    """
    OCR an encoded image and correct the result.

    Returns the corrected text behind OCR_RESULT_PREFIX, or one of the
    sentinel messages when nothing readable was found or recognition
    failed.
    """
    adapter = adapter or RecognitionAdapter()
    logger.info("Starting Arabic OCR pipeline (%d bytes)", len(data))

    text = adapter.recognize(data)
    if text in SENTINEL_MESSAGES:
        return text

    corrected = TextCorrector(_resolve_completion(completion)).correct(text)
    logger.info("OCR pipeline complete. Final text: %d chars", len(corrected))
    return f"{OCR_RESULT_PREFIX}{corrected}"


def extract_text_from_pdf(
    data: bytes,
    adapter: Optional[RecognitionAdapter] = None,
    completion=_SHARED,
) -> str:
    """
    Extract the text of a PDF.

    Pages without a text layer are rendered and recognized when
    ENABLE_SCANNED_PDF_OCR is set. Multi-page documents are merged by the
    completion collaborator when one is available; a recognized
    single-page scan is corrected instead, as an image would be.

    Raises:
        ExtractionFileError: If the PDF cannot be read.
    """
    completion = _resolve_completion(completion)
    scanned = False

    try:
        pages = read_pdf_pages(data)
        if config.ENABLE_HEADER_FOOTER_REMOVAL:
            pages = strip_repeated_page_lines(pages)

        text = _join_pages(pages)

        if not text.strip() and config.ENABLE_SCANNED_PDF_OCR:
            logger.info("PDF has no text layer, running OCR on rendered pages")
            text = _join_pages(_recognize_pages(data, adapter or RecognitionAdapter()))
            scanned = True

    except Exception as e:
        logger.error("PDF extraction error: %s", e)
        raise ExtractionFileError(PDF_READ_FAILED_MESSAGE) from e

    if len(pages) > 1 and completion is not None:
        logger.info("Multi-page PDF detected (%d pages), applying smart merging", len(pages))
        return DocumentMerger(completion).merge(text, len(pages))

    if scanned and text:
        return TextCorrector(completion).correct(text)

    return text


def _recognize_pages(data: bytes, adapter: RecognitionAdapter) -> List[str]:
    texts = []
    for i, page_bytes in enumerate(render_pdf_pages(data)):
        text = adapter.recognize(page_bytes)
        if text in SENTINEL_MESSAGES:
            logger.warning("No readable text on page %d", i + 1)
            continue
        texts.append(text)
    return texts


def _join_pages(pages: List[str]) -> str:
    return "\n\n".join(page.strip() for page in pages if page.strip())


def extract_text_from_docx(data: bytes) -> str:
    """
    Extract the text of a Word document.

    Raises:
        ExtractionFileError: If the document cannot be read.
    """
    try:
        return read_docx_text(data)
    except Exception as e:
        logger.error("DOCX extraction error: %s", e)
        raise ExtractionFileError(DOCX_READ_FAILED_MESSAGE) from e


def process_file_content(
    data: bytes,
    mime_type: str,
    file_name: str,
    adapter: Optional[RecognitionAdapter] = None,
    completion=_SHARED,
) -> str:
    """
    Turn an upload into text according to its MIME type.

    Unsupported types yield UNSUPPORTED_FILE_MESSAGE rather than an error.
    """
    logger.info("Processing file: %s, type: %s", file_name, mime_type)

    if mime_type == PDF_MIME_TYPE:
        return extract_text_from_pdf(data, adapter=adapter, completion=completion)

    if mime_type in DOCX_MIME_TYPES:
        return extract_text_from_docx(data)

    if mime_type in TEXT_MIME_TYPES:
        return read_plain_text(data)

    if mime_type.startswith("image/"):
        return extract_text_from_image(data, adapter=adapter, completion=completion)

    return UNSUPPORTED_FILE_MESSAGE.format(file_name=file_name)


def process_file(
    file_path: Union[str, Path],
    adapter: Optional[RecognitionAdapter] = None,
    completion=_SHARED,
) -> str:
    """Validate a file on disk and extract its text."""
    data, mime_type, file_name = read_upload(file_path)
    return process_file_content(
        data, mime_type, file_name, adapter=adapter, completion=completion
    )


def structure_text(text: str, completion=_SHARED) -> StructuredDocument:
    """Split extracted text into titled sections."""
    return StructureDetector(_resolve_completion(completion)).detect_headings(text)

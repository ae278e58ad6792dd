"""
Extraction Module

Turns uploaded Arabic documents (scanned images, PDFs, Word files and
plain text) into clean text.

Images go through hand-written preprocessing (deskew, adaptive
thresholding, morphology) before recognition with Surya or Tesseract,
with one retry using more aggressive parameters. The recognized text is
then repaired by an optional LLM collaborator (Groq or Gemini through
LangChain): OCR correction, multi-page merging and heading detection.

Public API:
    process_file          - Validate a file on disk and extract its text
    process_file_content  - Extract text from bytes + MIME type
    structure_text        - Split text into titled sections
    RecognitionAdapter    - Image bytes -> text with attempt retry
    StructuredDocument    - Sectioned result model
"""

from Extraction.pipeline import (
    extract_text_from_docx,
    extract_text_from_image,
    extract_text_from_pdf,
    process_file,
    process_file_content,
    structure_text,
)
from Extraction.recognizer import RecognitionAdapter
from Extraction.schemas import DocumentSection, PixelBuffer, StructuredDocument

__all__ = [
    "process_file",
    "process_file_content",
    "extract_text_from_image",
    "extract_text_from_pdf",
    "extract_text_from_docx",
    "structure_text",
    "RecognitionAdapter",
    "PixelBuffer",
    "DocumentSection",
    "StructuredDocument",
]

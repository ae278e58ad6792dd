"""
readers.py

Raw content readers for non-image uploads.

- PDF text layer: PyMuPDF, one string per page
- Scanned PDFs: pdf2image renders each page to PNG bytes for OCR
- DOCX: python-docx paragraphs followed by table rows
- Plain text / markdown: UTF-8 decode
"""

import io
import logging
from typing import List

import fitz  # PyMuPDF
from docx import Document

from Extraction import config

logger = logging.getLogger(__name__)


def read_pdf_pages(data: bytes) -> List[str]:
    """Extract the embedded text of every page of a PDF."""
    with fitz.open(stream=data, filetype="pdf") as doc:
        pages = [page.get_text("text") for page in doc]

    logger.info(
        "PDF text layer: %d pages, %d chars", len(pages), sum(len(p) for p in pages)
    )
    return pages


def render_pdf_pages(data: bytes, dpi: int = config.PDF_RENDER_DPI) -> List[bytes]:
    """
    Render every page of a PDF to PNG bytes.

    Temporary files are cleaned up automatically by pdf2image
    when using the default (poppler) backend.
    """
    from pdf2image import convert_from_bytes

    rendered = []
    for i, pil_img in enumerate(convert_from_bytes(data, dpi=dpi)):
        out = io.BytesIO()
        pil_img.convert("RGB").save(out, format="PNG")
        logger.info("PDF page %d rendered: %dx%d", i + 1, pil_img.width, pil_img.height)
        rendered.append(out.getvalue())

    return rendered


def read_docx_text(data: bytes) -> str:
    """Paragraph text, then table rows with cells joined by ' | '."""
    doc = Document(io.BytesIO(data))

    lines = [para.text for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append(" | ".join(cells))

    text = "\n".join(lines)
    logger.info("DOCX extracted - %d chars", len(text))
    return text


def read_plain_text(data: bytes) -> str:
    """Decode text uploads as UTF-8, replacing undecodable bytes."""
    return data.decode("utf-8", errors="replace")

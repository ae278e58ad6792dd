"""
postprocessor.py

Deterministic cleanup of recognized and extracted Arabic text.

Handles:
- Zero-width and directional mark removal
- Whitespace and punctuation cleanup
- Re-joining Arabic letters the engine spaced apart
- Repeated page headers/footers across multi-page documents

Nothing here calls a model; the LLM-backed repair lives in corrector.py
and merger.py.
"""

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

_INVISIBLE_MARKS = (
    "\u200b",  # Zero-width space
    "\u200c",  # Zero-width non-joiner
    "\u200d",  # Zero-width joiner
    "\u200e",  # Left-to-right mark
    "\u200f",  # Right-to-left mark
    "\u202a",  # Left-to-right embedding
    "\u202b",  # Right-to-left embedding
    "\u202c",  # Pop directional formatting
    "\ufeff",  # BOM
)

_ARABIC_LETTER = r"[\u0600-\u06FF]"
_SPACED_LETTERS = re.compile(
    rf"(?<![^\s]){_ARABIC_LETTER}(?:[ \t]+{_ARABIC_LETTER}){{2,}}(?![^\s])"
)


def clean_ocr_text(text: str) -> str:
    """
    Apply all deterministic cleanup steps, line by line.

    Line breaks are kept; blank lines are preserved as paragraph
    separators but runs of them collapse to one.
    """
    if not text:
        return text

    text = remove_invisible_marks(text)

    cleaned_lines = []
    for line in text.split("\n"):
        line = fix_whitespace(line)
        line = fix_intra_word_spaces(line)
        cleaned_lines.append(line)

    cleaned = "\n".join(cleaned_lines)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()


def remove_invisible_marks(text: str) -> str:
    """Strip zero-width characters and bidi control marks."""
    for mark in _INVISIBLE_MARKS:
        text = text.replace(mark, "")
    return text


def fix_whitespace(text: str) -> str:
    """
    Fix common OCR whitespace artifacts within a single line.

    - Collapse runs of spaces/tabs into one space
    - Remove spaces before punctuation
    - Trim the line
    """
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"[ \t]+([،؛.,:؟!])", r"\1", text)
    return text.strip()


def fix_intra_word_spaces(text: str) -> str:
    """
    Merge sequences of 3+ single Arabic letters separated by spaces.

    e.g. "م ح ك م ة" -> "محكمة"
    """

    def _merge(match):
        return re.sub(r"[ \t]+", "", match.group(0))

    return _SPACED_LETTERS.sub(_merge, text)


def strip_repeated_page_lines(pages: List[str]) -> List[str]:
    """
    Remove running headers and footers from per-page text.

    For documents of 3+ pages, a first (or last) non-empty line that
    repeats on more than half of the pages is dropped from every page
    it starts (or ends).
    """
    if len(pages) < 3:
        return pages

    split_pages = [[ln for ln in page.split("\n") if ln.strip()] for page in pages]

    first_lines = [lines[0].strip() for lines in split_pages if lines]
    last_lines = [lines[-1].strip() for lines in split_pages if lines]

    # A line repeated on >50% of pages is likely a header/footer
    threshold = len(pages) * 0.5

    repeated_headers = {ln for ln in set(first_lines) if ln and first_lines.count(ln) > threshold}
    repeated_footers = {ln for ln in set(last_lines) if ln and last_lines.count(ln) > threshold}

    if not repeated_headers and not repeated_footers:
        return pages

    logger.info(
        "Removing %d repeated headers, %d repeated footers",
        len(repeated_headers),
        len(repeated_footers),
    )

    cleaned_pages = []
    for lines in split_pages:
        if lines and lines[0].strip() in repeated_headers:
            lines = lines[1:]
        if lines and lines[-1].strip() in repeated_footers:
            lines = lines[:-1]
        cleaned_pages.append("\n".join(lines))

    return cleaned_pages

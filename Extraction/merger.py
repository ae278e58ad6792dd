"""
merger.py

Joins the text of a multi-page document into one coherent body.

Short documents go to the completion collaborator in a single request.
Longer ones are cut into chunks at sentence or line breaks, each chunk
is cleaned independently (a failed chunk keeps its raw text), and the
results are joined in document order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from Extraction import config
from Extraction.llm import TextCompletion
from Extraction.prompts import (
    CHUNK_SYSTEM_PROMPT,
    CHUNK_USER_PROMPT,
    MERGE_SYSTEM_PROMPT,
    MERGE_USER_PROMPT,
    chunk_position_note,
)
from Extraction.schemas import TextChunk

logger = logging.getLogger(__name__)


def chunk_text(
    text: str,
    chunk_size: int = config.MERGE_CHUNK_SIZE,
    break_chars: str = config.CHUNK_BREAK_CHARS,
) -> List[TextChunk]:
    """
    Split text into consecutive chunks of at most chunk_size characters.

    A cut is moved back to just after the last break character before
    the nominal cut position, provided that break lies past the middle
    of the chunk. Concatenating the chunk contents always gives
    back the original text.
    """
    if chunk_size < 1:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")

    pieces: List[str] = []
    position = 0
    length = len(text)

    while position < length:
        end = min(position + chunk_size, length)

        if end < length:
            # Last break inside the window, so the chunk never exceeds chunk_size
            break_point = max(text.rfind(ch, position, end) for ch in break_chars)
            if break_point > position + chunk_size // 2:
                end = break_point + 1

        pieces.append(text[position:end])
        position = end

    return [
        TextChunk(content=piece, is_first=i == 0, is_last=i == len(pieces) - 1)
        for i, piece in enumerate(pieces)
    ]


class DocumentMerger:
    """Merge multi-page extracted text with an optional completion collaborator."""

    def __init__(
        self,
        completion: Optional[TextCompletion] = None,
        max_workers: int = config.MERGE_WORKERS,
    ):
        self.completion = completion
        self.max_workers = max(1, max_workers)

    def merge(self, raw_text: str, page_count: int) -> str:
        """
        Merge the extracted text of a page_count-page document.

        Returns the input unchanged when there is no collaborator or the
        text is shorter than MERGE_MIN_CHARS.
        """
        if self.completion is None:
            logger.info("No LLM collaborator available, returning raw text")
            return raw_text

        if len(raw_text) < config.MERGE_MIN_CHARS:
            logger.info("Text too short for merging")
            return raw_text

        logger.info("Starting smart merge for %d-page document (%d chars)", page_count, len(raw_text))

        if len(raw_text) <= config.MERGE_CHUNK_SIZE:
            return self._merge_whole(raw_text, page_count)

        chunks = chunk_text(raw_text)
        logger.info("Large document, split into %d chunks", len(chunks))

        if self.max_workers == 1:
            cleaned = [self._clean_chunk(i, chunk, len(chunks)) for i, chunk in enumerate(chunks)]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                # map() yields in submission order
                cleaned = list(
                    executor.map(
                        lambda pair: self._clean_chunk(pair[0], pair[1], len(chunks)),
                        enumerate(chunks),
                    )
                )

        merged = "\n\n".join(cleaned)
        logger.info("Chunked merge complete: %d -> %d chars", len(raw_text), len(merged))
        return merged

    def _merge_whole(self, raw_text: str, page_count: int) -> str:
        try:
            merged = self.completion.complete(
                MERGE_SYSTEM_PROMPT,
                MERGE_USER_PROMPT.format(page_count=page_count, raw_text=raw_text),
                max_tokens=config.MERGE_MAX_TOKENS,
                temperature=config.MERGE_TEMPERATURE,
            )
        except Exception as e:
            logger.error("Merge error: %s", e)
            return raw_text

        if not merged or not merged.strip():
            logger.info("No merged text generated, using original")
            return raw_text

        merged = merged.strip()
        logger.info("Merge complete: %d -> %d chars", len(raw_text), len(merged))
        return merged

    def _clean_chunk(self, index: int, chunk: TextChunk, total: int) -> str:
        logger.info("Processing chunk %d/%d", index + 1, total)
        prompt = CHUNK_USER_PROMPT.format(
            position_note=chunk_position_note(chunk.is_first, chunk.is_last),
            chunk=chunk.content,
        )

        try:
            cleaned = self.completion.complete(
                CHUNK_SYSTEM_PROMPT,
                prompt,
                max_tokens=config.MERGE_MAX_TOKENS,
                temperature=config.MERGE_TEMPERATURE,
            )
        except Exception as e:
            logger.error("Chunk %d failed, using raw: %s", index + 1, e)
            return chunk.content

        if not cleaned or not cleaned.strip():
            return chunk.content
        return cleaned.strip()

"""Sliding-window chunking over space-delimited tokens."""

from __future__ import annotations

import logging

from rag_workshop.config import ChunkingConfig
from rag_workshop.errors import InvalidConfiguration
from rag_workshop.types import ParsedDocument

logger = logging.getLogger(__name__)


def chunk_text(text: str, chunk_size: int, overlap: int) -> list[str]:
    """Split `text` into overlapping windows of `chunk_size` tokens.

    Tokens come from splitting on the literal space character, so runs of
    spaces produce empty tokens and newlines stay inside their token. Each
    window starts `chunk_size - overlap` tokens after the previous one and is
    re-joined with single spaces. The last window may be shorter.

    Raises:
        InvalidConfiguration: if `chunk_size < 1`, `overlap < 0`, or
            `overlap >= chunk_size` (the window would never advance).
    """

    if chunk_size < 1:
        raise InvalidConfiguration(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise InvalidConfiguration(f"overlap must not be negative, got {overlap}")
    if overlap >= chunk_size:
        raise InvalidConfiguration(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )

    tokens = text.split(" ")
    stride = chunk_size - overlap
    chunks: list[str] = []
    start = 0

    while True:
        end = min(start + chunk_size, len(tokens))
        chunks.append(" ".join(tokens[start:end]))
        if end >= len(tokens):
            break
        start += stride

    return chunks


class SlidingWindowChunker:
    """Chunker bound to one `ChunkingConfig`.

    The configuration is validated at construction time so a bad
    `overlap`/`chunk_size` pair fails before any document is loaded.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self.config = config or ChunkingConfig()
        if self.config.overlap >= self.config.chunk_size:
            raise InvalidConfiguration(
                "overlap must be less than chunk_size "
                f"({self.config.overlap} >= {self.config.chunk_size})"
            )

    def chunk(self, text: str) -> list[str]:
        return chunk_text(text, self.config.chunk_size, self.config.overlap)

    def chunk_document(self, document: ParsedDocument) -> list[str]:
        chunks = self.chunk(document.text)
        logger.debug("Split %s into %d chunks", document.doc_id, len(chunks))
        return chunks

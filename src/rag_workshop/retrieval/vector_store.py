"""In-memory corpus of vectorized chunks with flat JSON persistence."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Sequence
from pathlib import Path

from rag_workshop.retrieval.similarity import search
from rag_workshop.types import VectorizedChunk

logger = logging.getLogger(__name__)


class InMemoryVectorStore:
    """Ordered, append-only collection of `VectorizedChunk` records.

    The on-disk format is a flat JSON array of `{"chunk": ..., "vector": [...]}`
    objects, so a corpus built once can be reloaded instead of re-chunking and
    re-embedding the source on every run.
    """

    def __init__(self, chunks: Iterable[VectorizedChunk] | None = None) -> None:
        self._chunks: list[VectorizedChunk] = list(chunks or [])

    def __len__(self) -> int:
        return len(self._chunks)

    def __iter__(self) -> Iterator[VectorizedChunk]:
        return iter(self._chunks)

    def add(self, chunks: Sequence[str], vectors: Sequence[list[float]]) -> list[VectorizedChunk]:
        if len(chunks) != len(vectors):
            raise ValueError("chunks and vectors must have the same length")
        created = [
            VectorizedChunk(chunk=chunk, vector=tuple(vector))
            for chunk, vector in zip(chunks, vectors, strict=True)
        ]
        self._chunks.extend(created)
        return created

    def search(self, query_vector: Sequence[float]) -> str:
        """Best-matching chunk text for `query_vector`, or "" if none qualifies."""
        return search(self._chunks, query_vector)

    def save(self, path: str | Path) -> None:
        payload = [chunk.to_dict() for chunk in self._chunks]
        Path(path).write_text(json.dumps(payload), encoding="utf-8")
        logger.info("Saved %d vectorized chunks to %s", len(payload), path)

    @classmethod
    def load(cls, path: str | Path) -> "InMemoryVectorStore":
        file_path = Path(path)
        try:
            payload = json.loads(file_path.read_text(encoding="utf-8"))
            if not isinstance(payload, list):
                raise TypeError(f"expected a JSON array, got {type(payload).__name__}")
            chunks = [VectorizedChunk.from_dict(item) for item in payload]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid corpus file {file_path}: {exc}") from exc

        logger.info("Loaded %d vectorized chunks from %s", len(chunks), file_path)
        return cls(chunks)

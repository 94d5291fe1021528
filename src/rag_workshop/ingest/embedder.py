"""Embedding abstractions, the Cohere client wrapper and an offline baseline."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from hashlib import blake2b
from math import sqrt
from typing import Any, TypeVar

import cohere

from rag_workshop.config import EmbeddingConfig
from rag_workshop.errors import RemoteCallFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Embedder(ABC):
    """Embedder interface used by ingest and retrieval components."""

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed many documents, one vector per text, in input order."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]:
        """Embed one query."""


def batched(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    if size < 1:
        raise ValueError("batch size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class CohereEmbedder(Embedder):
    """Embeds text through the Cohere embed endpoint.

    Inputs larger than `config.batch_size` are sent as sequential batches and
    the vectors concatenated in input order. The first failing batch aborts the
    whole operation with `RemoteCallFailed`; vectors from earlier batches are
    discarded.
    """

    def __init__(self, config: EmbeddingConfig, client: Any | None = None) -> None:
        self.config = config
        self._client = client if client is not None else cohere.Client(api_key=config.api_key)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        vectors: list[list[float]] = []
        total_batches = (len(texts) + self.config.batch_size - 1) // self.config.batch_size
        for index, batch in enumerate(batched(texts, self.config.batch_size), start=1):
            logger.debug("Embedding batch %d/%d (%d texts)", index, total_batches, len(batch))
            vectors.extend(self._embed_batch(list(batch)))

        if total_batches > 1:
            logger.info("Embedded %d texts in %d batches", len(texts), total_batches)
        return vectors

    def embed_query(self, text: str) -> list[float]:
        return self._embed_batch([text])[0]

    def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        try:
            response = self._client.embed(texts=texts, model=self.config.model)
        except Exception as exc:
            raise RemoteCallFailed(f"embedding request failed: {exc}", cause=exc) from exc

        embeddings = getattr(response, "embeddings", None)
        if not isinstance(embeddings, list) or len(embeddings) != len(texts):
            raise RemoteCallFailed(
                f"embedding response returned {_count(embeddings)} vectors for {len(texts)} texts"
            )
        return [[float(value) for value in vector] for vector in embeddings]


class HashingEmbedder(Embedder):
    """Deterministic sparse-like embedding without external model calls.

    Used by tests and by the command line's offline mode.
    """

    def __init__(self, dimension: int = 256) -> None:
        self.dimension = dimension

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._embed(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._embed(text)

    def _embed(self, text: str) -> list[float]:
        vector = [0.0 for _ in range(self.dimension)]
        tokens = text.lower().split()
        if not tokens:
            return vector

        for token in tokens:
            digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
            idx = int.from_bytes(digest[:4], "little") % self.dimension
            sign = -1.0 if digest[4] % 2 else 1.0
            vector[idx] += sign

        norm = sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]


def _count(embeddings: Any) -> str:
    try:
        return str(len(embeddings))
    except TypeError:
        return "no"

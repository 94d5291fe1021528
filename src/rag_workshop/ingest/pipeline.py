"""End-to-end ingest pipeline: load -> chunk -> embed -> store."""

from __future__ import annotations

import logging
from pathlib import Path

from rag_workshop.ingest.chunker import SlidingWindowChunker
from rag_workshop.ingest.embedder import Embedder
from rag_workshop.ingest.parser import ParserRegistry, WebPageLoader
from rag_workshop.retrieval.vector_store import InMemoryVectorStore
from rag_workshop.types import ParsedDocument, VectorizedChunk

logger = logging.getLogger(__name__)


class IngestPipeline:
    """Coordinates loader/chunker/embedder/vector store stages.

    Indexing is kept apart from query-time retrieval so a corpus can be built
    once, saved as JSON, and reloaded by later runs.
    """

    def __init__(
        self,
        parser_registry: ParserRegistry,
        chunker: SlidingWindowChunker,
        embedder: Embedder,
        vector_store: InMemoryVectorStore,
        web_loader: WebPageLoader | None = None,
    ) -> None:
        self._parser_registry = parser_registry
        self._chunker = chunker
        self._embedder = embedder
        self._vector_store = vector_store
        self._web_loader = web_loader

    def ingest_path(self, path: str | Path, *, doc_id: str | None = None) -> list[VectorizedChunk]:
        """Ingest a single source file and return the vectorized chunks."""
        return self.ingest_document(self._parser_registry.parse_path(path, doc_id=doc_id))

    def ingest_url(self, url: str, *, start: str = "", end: str = "") -> list[VectorizedChunk]:
        if self._web_loader is not None:
            return self.ingest_document(self._web_loader.load(url, start=start, end=end))
        with WebPageLoader() as loader:
            document = loader.load(url, start=start, end=end)
        return self.ingest_document(document)

    def ingest_text(self, text: str, *, doc_id: str = "inline") -> list[VectorizedChunk]:
        return self.ingest_document(ParsedDocument(doc_id=doc_id, text=text))

    def ingest_document(self, document: ParsedDocument) -> list[VectorizedChunk]:
        chunks = self._chunker.chunk_document(document)
        vectors = self._embedder.embed_documents(chunks)
        created = self._vector_store.add(chunks, vectors)
        logger.info("Ingested %s: %d chunks", document.doc_id, len(created))
        return created

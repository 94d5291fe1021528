"""Query-time retrieval: embed the question, pick the best chunk."""

from __future__ import annotations

import logging

from rag_workshop.ingest.embedder import Embedder
from rag_workshop.retrieval.vector_store import InMemoryVectorStore

logger = logging.getLogger(__name__)


class SingleChunkRetriever:
    """Returns the one chunk whose vector is most similar to the query's."""

    def __init__(self, vector_store: InMemoryVectorStore, embedder: Embedder) -> None:
        self.vector_store = vector_store
        self.embedder = embedder

    def retrieve(self, query: str) -> str:
        query_embedding = self.embedder.embed_query(query)
        chunk = self.vector_store.search(query_embedding)
        if not chunk:
            logger.info("No chunk with positive similarity among %d", len(self.vector_store))
        return chunk

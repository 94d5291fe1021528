"""Workshop clients for LLM completions and single-chunk retrieval."""

from .config import AgentConfig, ChunkingConfig, CompletionConfig, EmbeddingConfig

__all__ = ["AgentConfig", "ChunkingConfig", "CompletionConfig", "EmbeddingConfig"]

"""Configuration models for the workshop clients and retrieval pipeline."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEFAULT_COMPLETIONS_URL = "https://api.predictionguard.com/completions"


class ChunkingConfig(BaseModel):
    """Configures the whitespace sliding-window chunker.

    `overlap < chunk_size` is checked by the chunker itself so the failure is
    reported as `InvalidConfiguration`.
    """

    chunk_size: int = Field(default=100, ge=1)
    overlap: int = Field(default=10, ge=0)


class CompletionConfig(BaseModel):
    """Configures the text-completion endpoint and its credential header."""

    url: str = DEFAULT_COMPLETIONS_URL
    token: str = ""
    auth_scheme: Literal["bearer", "x-api-key"] = "bearer"
    timeout_seconds: float | None = Field(default=None, gt=0.0)
    request_delay_seconds: float = Field(default=0.0, ge=0.0)


class EmbeddingConfig(BaseModel):
    """Configures the embedding SDK client and its batch ceiling."""

    api_key: str = ""
    model: str = "embed-english-light-v2.0"
    batch_size: int = Field(default=20, ge=1)


class AgentConfig(BaseModel):
    """Configures model choice and chat memory of the answer orchestrator."""

    classifier_model: str = "Nous-Hermes-Llama2-13B"
    qa_model: str = "Nous-Hermes-Llama2-13B"
    chat_model: str = "WizardCoder"
    history_window: int = Field(default=3, ge=0)

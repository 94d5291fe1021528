"""Process-level settings read once from the environment."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rag_workshop.config import DEFAULT_COMPLETIONS_URL, CompletionConfig, EmbeddingConfig


class WorkshopSettings(BaseSettings):
    """Credentials and endpoints taken from environment variables or `.env`.

    Only the command-line entrypoint builds this object. Library code receives
    the explicit config models produced by `completion_config()` and
    `embedding_config()` instead of reading the environment itself.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    predictionguard_token: str = ""
    predictionguard_url: str = DEFAULT_COMPLETIONS_URL
    predictionguard_auth_scheme: Literal["bearer", "x-api-key"] = "bearer"
    predictionguard_request_delay: float = Field(default=0.0, ge=0.0)
    cohere_api_key: str = ""
    embedding_model: str = "embed-english-light-v2.0"
    log_level: str = "INFO"

    def completion_config(self) -> CompletionConfig:
        return CompletionConfig(
            url=self.predictionguard_url,
            token=self.predictionguard_token,
            auth_scheme=self.predictionguard_auth_scheme,
            request_delay_seconds=self.predictionguard_request_delay,
        )

    def embedding_config(self) -> EmbeddingConfig:
        return EmbeddingConfig(api_key=self.cohere_api_key, model=self.embedding_model)

"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class ParsedDocument:
    """A loaded source document before chunking."""

    doc_id: str
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class VectorizedChunk:
    """A chunk of text paired with its embedding vector.

    The vector is stored as a tuple so the record cannot change after
    ingestion.
    """

    chunk: str
    vector: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "vector", tuple(float(value) for value in self.vector))

    def to_dict(self) -> dict[str, Any]:
        return {"chunk": self.chunk, "vector": list(self.vector)}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "VectorizedChunk":
        return cls(chunk=str(payload["chunk"]), vector=tuple(payload["vector"]))


@dataclass(frozen=True, slots=True)
class ChatTurn:
    """One user utterance and the assistant reply to it."""

    user: str
    assistant: str


@dataclass(slots=True)
class TurnResult:
    """Outcome of one orchestrator turn."""

    answer: str
    route: str
    context: str
    trace_id: str
    latency_ms: float

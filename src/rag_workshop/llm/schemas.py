"""Wire models for the completion endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TypedOutput(BaseModel):
    """Constraint or quality check applied to the generated text."""

    model_config = ConfigDict(frozen=True)

    type: str = ""
    categories: list[str] = Field(default_factory=list)
    pattern: str = ""
    consistency: bool = False
    factuality: bool = False
    toxicity: bool = False

    @classmethod
    def categorical(cls, categories: list[str]) -> "TypedOutput":
        return cls(type="categorical", categories=list(categories))


class CompletionRequest(BaseModel):
    """Body of a completion POST."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(min_length=1)
    prompt: str
    max_tokens: int = Field(default=0, ge=0)
    temperature: float = Field(default=0.0, ge=0.0)
    output: TypedOutput = Field(default_factory=TypedOutput)


class CompletionChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    output: Any = None
    index: int = 0
    status: str = ""
    model: str = ""


class CompletionResponse(BaseModel):
    """Decoded completion response; unknown fields are ignored."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    object: str = ""
    created: int = 0
    choices: list[CompletionChoice] = Field(default_factory=list)

    def first_text(self) -> str:
        return self.choices[0].text

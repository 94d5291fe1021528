"""Prompt templates for the question-answering, classifier and chat calls."""

from __future__ import annotations

from collections.abc import Sequence

from langchain_core.prompts import PromptTemplate

from rag_workshop.types import ChatTurn

REFUSAL_ANSWER = (
    "Sorry I had trouble answering this question, based on the information I found."
)

QA_PROMPT = PromptTemplate.from_template(
    """### Instruction:
Read the context below and answer the question. If the question cannot be answered based on the context alone or the context does not explicitly say the answer to the question, respond "{refusal}"

### Input:
Context: "{context}"

Question: "{question}"

### Response:
"""
).partial(refusal=REFUSAL_ANSWER)

CLASSIFIER_PROMPT = PromptTemplate.from_template(
    """### Instruction:
Is the user asking an informational question or just wanting to chat? Answer "yes" if they are asking an informational question.

### Input:
{question}

### Response:
"""
)

CHAT_PROMPT = PromptTemplate.from_template(
    """### Instruction:
You are a helpful and kind chat assistant. Respond to the below user input based on the following conversation context:

{transcript}
### Input:
{question}

### Response:
"""
)


def format_transcript(turns: Sequence[ChatTurn], window: int) -> str:
    """Render the last `window` turns as a Human/AI transcript."""
    if window <= 0:
        return ""
    return "".join(
        f"Human: {turn.user}\nAI: {turn.assistant}\n\n" for turn in turns[-window:]
    )


def qa_prompt(context: str, question: str) -> str:
    return QA_PROMPT.format(context=context, question=question)


def classifier_prompt(question: str) -> str:
    return CLASSIFIER_PROMPT.format(question=question)


def chat_prompt(turns: Sequence[ChatTurn], question: str, window: int) -> str:
    return CHAT_PROMPT.format(transcript=format_transcript(turns, window), question=question)

"""Routes each user turn to retrieval-augmented QA or plain chat."""

from __future__ import annotations

import logging

from rag_workshop.agent.prompts import chat_prompt, classifier_prompt, qa_prompt
from rag_workshop.config import AgentConfig
from rag_workshop.ingest.embedder import Embedder
from rag_workshop.llm.client import CompletionClient
from rag_workshop.llm.schemas import CompletionRequest, TypedOutput
from rag_workshop.obs.tracing import Timer, TraceStore
from rag_workshop.retrieval.retriever import SingleChunkRetriever
from rag_workshop.retrieval.vector_store import InMemoryVectorStore
from rag_workshop.types import ChatTurn, TurnResult

logger = logging.getLogger(__name__)

_YES_NO = ["yes", "no"]


def is_exit_command(text: str) -> bool:
    return text.lower() == "exit"


class RagChatPlanner:
    """Answers one user turn at a time.

    Each turn is classified first. A classifier answer of exactly "yes"
    (informational question) takes the retrieval path: the question is
    embedded, the best chunk is spliced into the QA prompt and the completion
    is truncated at the stop markers. Anything else takes the chat path, which
    prompts with the last `history_window` turns of the conversation.

    Every turn is appended to the chat history, whichever path answered it.
    Errors from either remote service propagate unchanged.
    """

    def __init__(
        self,
        *,
        completion_client: CompletionClient,
        embedder: Embedder,
        vector_store: InMemoryVectorStore,
        config: AgentConfig | None = None,
        trace_store: TraceStore | None = None,
    ) -> None:
        self.completion_client = completion_client
        self.retriever = SingleChunkRetriever(vector_store, embedder)
        self.config = config or AgentConfig()
        self.trace_store = trace_store or TraceStore()
        self._history: list[ChatTurn] = []

    @property
    def history(self) -> tuple[ChatTurn, ...]:
        return tuple(self._history)

    def classify(self, question: str) -> bool:
        """True when the model labels `question` as informational."""
        response = self.completion_client.complete(
            CompletionRequest(
                model=self.config.classifier_model,
                prompt=classifier_prompt(question),
                output=TypedOutput.categorical(_YES_NO),
            )
        )
        label = response.first_text()
        logger.debug("Classifier label %r", label)
        return label == "yes"

    def answer_from_corpus(self, question: str) -> tuple[str, str]:
        """Return the answer and the chunk it was grounded on."""
        context = self.retriever.retrieve(question)
        answer = self.completion_client.complete_text(
            CompletionRequest(
                model=self.config.qa_model,
                prompt=qa_prompt(context, question),
            )
        )
        return answer, context

    def answer_from_chat(self, question: str) -> str:
        return self.completion_client.complete_text(
            CompletionRequest(
                model=self.config.chat_model,
                prompt=chat_prompt(self._history, question, self.config.history_window),
                output=TypedOutput.categorical(_YES_NO),
            )
        )

    def invoke(self, question: str) -> TurnResult:
        """Run one full turn and record its trace."""

        with Timer() as timer:
            if self.classify(question):
                route = "retrieval"
                answer, context = self.answer_from_corpus(question)
            else:
                route = "chat"
                answer, context = self.answer_from_chat(question), ""

        self._history.append(ChatTurn(user=question, assistant=answer))
        record = self.trace_store.create_record(
            question=question,
            answer=answer,
            route=route,
            context=context,
            latency_ms=timer.elapsed_ms,
        )
        logger.info("Answered via %s in %.0f ms", route, record.latency_ms)

        return TurnResult(
            answer=answer,
            route=route,
            context=context,
            trace_id=record.trace_id,
            latency_ms=record.latency_ms,
        )

"""Command-line entrypoint: one-off completions, corpus indexing and chat."""

from __future__ import annotations

import argparse
import itertools
import logging
import sys
from pathlib import Path
from typing import TextIO

from rag_workshop.agent.planner import RagChatPlanner, is_exit_command
from rag_workshop.config import ChunkingConfig
from rag_workshop.errors import InvalidConfiguration, WorkshopError
from rag_workshop.ingest.chunker import SlidingWindowChunker
from rag_workshop.ingest.embedder import CohereEmbedder, Embedder, HashingEmbedder
from rag_workshop.ingest.parser import ParserRegistry
from rag_workshop.ingest.pipeline import IngestPipeline
from rag_workshop.llm.client import CompletionClient
from rag_workshop.llm.postprocess import DEFAULT_STOP_MARKERS, REDUCED_STOP_MARKERS
from rag_workshop.llm.schemas import CompletionRequest, TypedOutput
from rag_workshop.retrieval.vector_store import InMemoryVectorStore
from rag_workshop.settings import WorkshopSettings

logger = logging.getLogger(__name__)

USER_LABEL = "You: "
ASSISTANT_LABEL = "AI: "
SWEEP_DELAY_SECONDS = 1.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rag-workshop",
        description="Call a hosted completion API, optionally grounded on an embedded corpus.",
    )
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    complete = subparsers.add_parser(
        "complete",
        help="Run one completion, or a sweep over temperatures and token limits.",
    )
    prompt = complete.add_mutually_exclusive_group(required=True)
    prompt.add_argument("prompt", nargs="?", help="Prompt text.")
    prompt.add_argument("--prompt-file", type=Path, help="Read the prompt from this file.")
    complete.add_argument("--model", default="Nous-Hermes-Llama2-13B")
    complete.add_argument("--max-tokens", type=int, nargs="+", default=[0], metavar="N")
    complete.add_argument("--temperature", type=float, nargs="+", default=[0.0], metavar="T")
    complete.add_argument(
        "--repeat", type=int, default=1, help="Completions per temperature/max-tokens pair."
    )
    complete.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds between successive calls (sweeps default to 1).",
    )
    complete.add_argument("--toxicity", action="store_true", help="Ask for a toxicity check.")
    complete.add_argument("--factuality", action="store_true", help="Ask for a factuality check.")
    stop = complete.add_mutually_exclusive_group()
    stop.add_argument("--reduced-stop", action="store_true", help="Only stop on '#' and 'import'.")
    stop.add_argument("--no-stop", action="store_true", help="Print the raw completion text.")
    complete.add_argument(
        "--require-success",
        action="store_true",
        help="Fail unless the response status is 'success'.",
    )

    index = subparsers.add_parser("index", help="Chunk and embed a file or URL into a JSON corpus.")
    index.add_argument("source", help="Local .txt/.md file or http(s) URL.")
    index.add_argument("--out", required=True, type=Path)
    _add_ingest_options(index)

    chat = subparsers.add_parser("chat", help="Interactive chat grounded on a corpus.")
    source = chat.add_mutually_exclusive_group(required=True)
    source.add_argument("--corpus", type=Path, help="Previously saved JSON corpus.")
    source.add_argument("--url", help="Web page to fetch, chunk and embed.")
    source.add_argument("--file", type=Path, help="Local document to chunk and embed.")
    _add_ingest_options(chat)

    return parser


def _add_ingest_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--chunk-size", type=int, default=100)
    parser.add_argument("--overlap", type=int, default=10)
    parser.add_argument("--start", default="", help="Keep web page text after this marker.")
    parser.add_argument("--end", default="", help="Keep web page text before this marker.")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the local hashing embedder instead of the embedding API.",
    )


def _build_embedder(args: argparse.Namespace, settings: WorkshopSettings) -> Embedder:
    if args.offline:
        return HashingEmbedder()
    return CohereEmbedder(settings.embedding_config())


def _build_pipeline(
    args: argparse.Namespace, embedder: Embedder, store: InMemoryVectorStore
) -> IngestPipeline:
    chunker = SlidingWindowChunker(ChunkingConfig(chunk_size=args.chunk_size, overlap=args.overlap))
    return IngestPipeline(ParserRegistry(), chunker, embedder, store)


def _ingest_source(pipeline: IngestPipeline, source: str, args: argparse.Namespace) -> None:
    if source.startswith(("http://", "https://")):
        pipeline.ingest_url(source, start=args.start, end=args.end)
    else:
        pipeline.ingest_path(source)


def _read_prompt(args: argparse.Namespace) -> str:
    if args.prompt_file is not None:
        return args.prompt_file.read_text(encoding="utf-8")
    return args.prompt


def _sweep_delay(args: argparse.Namespace, settings: WorkshopSettings, calls: int) -> float:
    if args.delay is not None:
        return args.delay
    if calls > 1 and settings.predictionguard_request_delay == 0:
        return SWEEP_DELAY_SECONDS
    return settings.predictionguard_request_delay


def run_complete(args: argparse.Namespace, settings: WorkshopSettings, stdout: TextIO) -> int:
    if args.repeat < 1:
        raise InvalidConfiguration(f"--repeat must be at least 1, got {args.repeat}")
    if args.delay is not None and args.delay < 0:
        raise InvalidConfiguration(f"--delay must not be negative, got {args.delay}")

    prompt = _read_prompt(args)
    grid = list(itertools.product(args.temperature, args.max_tokens))
    sweep = len(grid) > 1 or args.repeat > 1
    delay = _sweep_delay(args, settings, len(grid) * args.repeat)
    config = settings.completion_config().model_copy(update={"request_delay_seconds": delay})
    stop = REDUCED_STOP_MARKERS if args.reduced_stop else DEFAULT_STOP_MARKERS

    with CompletionClient(config) as client:
        for temperature, max_tokens in grid:
            if sweep:
                print(f"\nTemperature: {temperature}  Max Tokens: {max_tokens}", file=stdout)
                print("--------------------------", file=stdout)
            request = CompletionRequest(
                model=args.model,
                prompt=prompt,
                max_tokens=max_tokens,
                temperature=temperature,
                output=TypedOutput(toxicity=args.toxicity, factuality=args.factuality),
            )
            for _ in range(args.repeat):
                if args.no_stop:
                    response = client.complete(request, require_success=args.require_success)
                    completion = response.first_text()
                else:
                    completion = client.complete_text(
                        request, stop=stop, require_success=args.require_success
                    )
                print(completion, file=stdout)
    return 0


def run_index(args: argparse.Namespace, settings: WorkshopSettings, stdout: TextIO) -> int:
    store = InMemoryVectorStore()
    pipeline = _build_pipeline(args, _build_embedder(args, settings), store)
    _ingest_source(pipeline, args.source, args)
    store.save(args.out)
    print(f"Wrote {len(store)} chunks to {args.out}", file=stdout)
    return 0


def run_chat(
    args: argparse.Namespace,
    settings: WorkshopSettings,
    stdin: TextIO,
    stdout: TextIO,
) -> int:
    embedder = _build_embedder(args, settings)
    if args.corpus is not None:
        store = InMemoryVectorStore.load(args.corpus)
    else:
        store = InMemoryVectorStore()
        pipeline = _build_pipeline(args, embedder, store)
        _ingest_source(pipeline, args.url or str(args.file), args)

    with CompletionClient(settings.completion_config()) as client:
        planner = RagChatPlanner(completion_client=client, embedder=embedder, vector_store=store)
        chat_loop(planner, stdin=stdin, stdout=stdout)
    return 0


def chat_loop(planner: RagChatPlanner, *, stdin: TextIO, stdout: TextIO) -> None:
    """Read one line per turn until EOF or `exit`, printing each answer."""
    print("", file=stdout)
    while True:
        stdout.write(USER_LABEL)
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        question = line.rstrip("\r\n")
        if is_exit_command(question):
            break

        result = planner.invoke(question)
        stdout.write(f"\n{ASSISTANT_LABEL}{result.answer}\n\n")


def _resolve_log_level(name: str) -> int:
    # basicConfig skips level parsing when the root logger already has handlers.
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise InvalidConfiguration(f"unknown log level: {name!r}")
    return level


def main(
    argv: list[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    try:
        settings = WorkshopSettings()
        logging.basicConfig(
            level=_resolve_log_level(args.log_level or settings.log_level),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        if args.command == "complete":
            return run_complete(args, settings, stdout)
        if args.command == "index":
            return run_index(args, settings, stdout)
        return run_chat(args, settings, stdin, stdout)
    except (WorkshopError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

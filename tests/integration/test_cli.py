import io
import json

import httpx
import pytest

from rag_workshop import cli
from rag_workshop.cli import build_parser, main
from rag_workshop.llm import client as client_module
from rag_workshop.llm.client import CompletionClient

LONG_PROMPT = "Merothooda the White Diviner is a great wizard. " * 8


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path) -> None:
    # Keep a developer's .env or exported credentials out of the run.
    monkeypatch.chdir(tmp_path)
    for name in (
        "PREDICTIONGUARD_TOKEN",
        "PREDICTIONGUARD_URL",
        "PREDICTIONGUARD_AUTH_SCHEME",
        "PREDICTIONGUARD_REQUEST_DELAY",
        "COHERE_API_KEY",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def completions(monkeypatch) -> list[dict[str, object]]:
    """Routes CLI completion calls to an in-memory endpoint and records the bodies."""
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        bodies.append(body)
        return httpx.Response(
            200,
            json={
                "id": "1",
                "object": "text_completion",
                "created": 0,
                "choices": [
                    {
                        "text": f" Sure thing at {body['temperature']} # trailing",
                        "index": 0,
                        "status": "success",
                        "model": body["model"],
                    }
                ],
            },
        )

    def build_client(config) -> CompletionClient:
        return CompletionClient(config, http_client=httpx.Client(transport=httpx.MockTransport(handler)))

    monkeypatch.setattr(cli, "CompletionClient", build_client)
    return bodies


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []
    monkeypatch.setattr(client_module.time, "monotonic", lambda: 100.0)
    monkeypatch.setattr(client_module.time, "sleep", recorded.append)
    return recorded


def test_complete_sends_long_inline_prompt(completions, sleeps) -> None:
    stdout = io.StringIO()

    code = main(["complete", LONG_PROMPT], stdout=stdout)

    assert code == 0
    assert [body["prompt"] for body in completions] == [LONG_PROMPT]
    assert stdout.getvalue() == "Sure thing at 0.0\n"
    assert sleeps == []


def test_complete_reads_prompt_file(completions, tmp_path) -> None:
    prompt_file = tmp_path / "prompt.txt"
    prompt_file.write_text("Tell me a joke", encoding="utf-8")

    code = main(["complete", "--prompt-file", str(prompt_file)], stdout=io.StringIO())

    assert code == 0
    assert completions[0]["prompt"] == "Tell me a joke"


def test_complete_no_stop_prints_raw_text(completions) -> None:
    stdout = io.StringIO()

    code = main(["complete", "hello", "--no-stop"], stdout=stdout)

    assert code == 0
    assert stdout.getvalue() == " Sure thing at 0.0 # trailing\n"


def test_complete_sweeps_temperatures_with_spacing(completions, sleeps) -> None:
    stdout = io.StringIO()

    code = main(
        ["complete", "A wizard name is ", "--temperature", "0.1", "0.5", "--repeat", "2"],
        stdout=stdout,
    )

    assert code == 0
    assert [body["temperature"] for body in completions] == [0.1, 0.1, 0.5, 0.5]
    assert sleeps == [1.0, 1.0, 1.0]
    output = stdout.getvalue()
    assert "Temperature: 0.1  Max Tokens: 0" in output
    assert "Temperature: 0.5  Max Tokens: 0" in output
    assert output.count("Sure thing at 0.5") == 2


def test_complete_sweeps_max_tokens_with_explicit_delay(completions, sleeps) -> None:
    code = main(
        ["complete", "Tell me a story", "--max-tokens", "30", "110", "190", "--delay", "0.25"],
        stdout=io.StringIO(),
    )

    assert code == 0
    assert [body["max_tokens"] for body in completions] == [30, 110, 190]
    assert sleeps == [0.25, 0.25]


def test_complete_rejects_zero_repeat(completions) -> None:
    code = main(["complete", "hello", "--repeat", "0"], stdout=io.StringIO())

    assert code == 1
    assert completions == []


def test_invalid_log_level_exits_with_error(completions) -> None:
    code = main(["--log-level", "chatty", "complete", "hello"], stdout=io.StringIO())

    assert code == 1
    assert completions == []


def test_index_offline_writes_corpus(tmp_path) -> None:
    doc = tmp_path / "guide.txt"
    doc.write_text("a b c d e f", encoding="utf-8")
    out = tmp_path / "chunks.json"
    stdout = io.StringIO()

    code = main(
        ["index", str(doc), "--out", str(out), "--offline", "--chunk-size", "3", "--overlap", "1"],
        stdout=stdout,
    )

    assert code == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert [item["chunk"] for item in payload] == ["a b c", "c d e", "e f"]
    assert all(len(item["vector"]) == 256 for item in payload)
    assert "Wrote 3 chunks" in stdout.getvalue()


def test_index_rejects_overlap_not_below_chunk_size(tmp_path) -> None:
    doc = tmp_path / "guide.txt"
    doc.write_text("a b c", encoding="utf-8")
    out = tmp_path / "chunks.json"

    code = main(
        ["index", str(doc), "--out", str(out), "--offline", "--chunk-size", "3", "--overlap", "3"],
        stdout=io.StringIO(),
    )

    assert code == 1
    assert not out.exists()


def test_chat_from_file_answers_until_exit(completions, tmp_path) -> None:
    doc = tmp_path / "guide.md"
    doc.write_text("Gophers like tidy modules and short functions .", encoding="utf-8")
    stdout = io.StringIO()

    code = main(
        ["chat", "--file", str(doc), "--offline", "--chunk-size", "4", "--overlap", "1"],
        stdin=io.StringIO("hello there\nexit\nnever sent\n"),
        stdout=stdout,
    )

    assert code == 0
    # Classifier call, then the chat answer; nothing after `exit`.
    assert len(completions) == 2
    assert "AI: Sure thing at 0.0" in stdout.getvalue()


def test_chat_with_malformed_corpus_fails(tmp_path) -> None:
    corpus = tmp_path / "chunks.json"
    corpus.write_text("{}", encoding="utf-8")

    code = main(["chat", "--corpus", str(corpus), "--offline"], stdin=io.StringIO("exit\n"))

    assert code == 1


def test_chat_requires_a_single_source() -> None:
    parser = build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["chat"])
    with pytest.raises(SystemExit):
        parser.parse_args(["chat", "--corpus", "a.json", "--url", "https://x.test"])


def test_complete_parses_typed_output_flags() -> None:
    args = build_parser().parse_args(
        ["complete", "Tell me a joke", "--toxicity", "--reduced-stop", "--max-tokens", "30"]
    )

    assert args.toxicity is True
    assert args.factuality is False
    assert args.reduced_stop is True
    assert args.max_tokens == [30]


def test_complete_prompt_sources_are_exclusive() -> None:
    parser = build_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["complete"])
    with pytest.raises(SystemExit):
        parser.parse_args(["complete", "inline", "--prompt-file", "p.txt"])
    with pytest.raises(SystemExit):
        parser.parse_args(["complete", "inline", "--no-stop", "--reduced-stop"])

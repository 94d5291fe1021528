import json

import httpx
import pytest

from rag_workshop.config import CompletionConfig
from rag_workshop.errors import (
    DecodeFailure,
    RemoteCallFailed,
    RemoteStatusFailure,
    TransportFailure,
)
from rag_workshop.llm import client as client_module
from rag_workshop.llm.client import CompletionClient
from rag_workshop.llm.schemas import CompletionRequest, TypedOutput

URL = "https://llm.test/completions"


def _response_body(text: str = "Hello # tail", status: str = "success") -> dict[str, object]:
    return {
        "id": "cmpl-1",
        "object": "text_completion",
        "created": 1700000000,
        "choices": [
            {"text": text, "index": 0, "status": status, "model": "Nous-Hermes-Llama2-13B"}
        ],
    }


def _client(handler, **config) -> CompletionClient:
    return CompletionClient(
        CompletionConfig(url=URL, token="secret", **config),
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_request_body_and_bearer_header() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_response_body())

    client = _client(handler)
    result = client.complete(
        CompletionRequest(
            model="Camel-5B",
            prompt="Name a wizard: ",
            max_tokens=20,
            temperature=0.5,
            output=TypedOutput.categorical(["yes", "no"]),
        )
    )

    assert result.first_text() == "Hello # tail"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == URL
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {
        "model": "Camel-5B",
        "prompt": "Name a wizard: ",
        "max_tokens": 20,
        "temperature": 0.5,
        "output": {
            "type": "categorical",
            "categories": ["yes", "no"],
            "pattern": "",
            "consistency": False,
            "factuality": False,
            "toxicity": False,
        },
    }


def test_api_key_header_variant() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_response_body())

    _client(handler, auth_scheme="x-api-key").complete(CompletionRequest(model="m", prompt="p"))

    assert seen[0].headers["x-api-key"] == "secret"
    assert "Authorization" not in seen[0].headers


def test_complete_text_applies_stop_markers() -> None:
    client = _client(lambda request: httpx.Response(200, json=_response_body("  42 #more")))

    assert client.complete_text(CompletionRequest(model="m", prompt="p")) == "42"


def test_http_error_status_is_transport_failure() -> None:
    client = _client(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(TransportFailure) as excinfo:
        client.complete(CompletionRequest(model="m", prompt="p"))
    assert isinstance(excinfo.value.cause, httpx.HTTPStatusError)


def test_connection_error_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportFailure):
        _client(handler).complete(CompletionRequest(model="m", prompt="p"))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": "oops"}),
        httpx.Response(200, json={"choices": [{"index": 0}]}),
    ],
)
def test_malformed_body_is_decode_failure(response: httpx.Response) -> None:
    client = _client(lambda request: response)

    with pytest.raises(DecodeFailure):
        client.complete(CompletionRequest(model="m", prompt="p"))


def test_empty_choices_is_status_failure() -> None:
    client = _client(lambda request: httpx.Response(200, json={"id": "x", "choices": []}))

    with pytest.raises(RemoteStatusFailure):
        client.complete(CompletionRequest(model="m", prompt="p"))


def test_require_success_checks_choice_status() -> None:
    body = _response_body(status="error: toxicity check failed")
    client = _client(lambda request: httpx.Response(200, json=body))

    assert client.complete(CompletionRequest(model="m", prompt="p")).choices[0].status != "success"
    with pytest.raises(RemoteStatusFailure):
        client.complete(CompletionRequest(model="m", prompt="p"), require_success=True)


def test_all_remote_errors_share_base_class() -> None:
    for error in (TransportFailure, DecodeFailure, RemoteStatusFailure):
        assert issubclass(error, RemoteCallFailed)


def test_request_delay_spaces_successive_calls(monkeypatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(client_module.time, "monotonic", lambda: 100.0)
    monkeypatch.setattr(client_module.time, "sleep", sleeps.append)
    client = _client(
        lambda request: httpx.Response(200, json=_response_body()),
        request_delay_seconds=1.0,
    )

    client.complete(CompletionRequest(model="m", prompt="p"))
    client.complete(CompletionRequest(model="m", prompt="p"))

    assert sleeps == [1.0]


def test_request_validation_rejects_empty_model() -> None:
    from pydantic import ValidationError

    with pytest.raises(ValidationError):
        CompletionRequest(model="", prompt="p")

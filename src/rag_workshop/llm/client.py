"""Synchronous client for the text-completion endpoint."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from rag_workshop.config import CompletionConfig
from rag_workshop.errors import DecodeFailure, RemoteStatusFailure, TransportFailure
from rag_workshop.llm.postprocess import DEFAULT_STOP_MARKERS, truncate_at_stop_markers
from rag_workshop.llm.schemas import CompletionRequest, CompletionResponse

logger = logging.getLogger(__name__)


class CompletionClient:
    """Posts completion requests and decodes the responses.

    One request is in flight at a time and every call blocks until the
    response arrives. When `request_delay_seconds` is set, successive calls
    are spaced at least that far apart.
    """

    def __init__(
        self,
        config: CompletionConfig,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=config.timeout_seconds)
        self._last_call: float | None = None

    def __enter__(self) -> "CompletionClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.auth_scheme == "bearer":
            headers["Authorization"] = f"Bearer {self.config.token}"
        else:
            headers["x-api-key"] = self.config.token
        return headers

    def complete(
        self,
        request: CompletionRequest,
        *,
        require_success: bool = False,
    ) -> CompletionResponse:
        """Send one completion request.

        Raises:
            TransportFailure: connection problems or a non-2xx status.
            DecodeFailure: the body is not JSON or not a completion response.
            RemoteStatusFailure: no choices were returned, or `require_success`
                is set and the first choice status is not "success".
        """

        self._wait_for_slot()
        logger.debug("POST %s model=%s", self.config.url, request.model)
        try:
            response = self._http.post(
                self.config.url,
                json=request.model_dump(),
                headers=self.headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportFailure(f"completion request failed: {exc}", cause=exc) from exc
        finally:
            self._last_call = time.monotonic()

        try:
            result = CompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise DecodeFailure(f"could not decode completion response: {exc}", cause=exc) from exc

        if not result.choices:
            raise RemoteStatusFailure("completion response contained no choices")
        if require_success and result.choices[0].status != "success":
            raise RemoteStatusFailure(
                f"completion status was {result.choices[0].status!r}, expected 'success'"
            )
        return result

    def complete_text(
        self,
        request: CompletionRequest,
        *,
        stop: Sequence[str] = DEFAULT_STOP_MARKERS,
        require_success: bool = False,
    ) -> str:
        """Return the first choice text truncated at the stop markers."""
        response = self.complete(request, require_success=require_success)
        return truncate_at_stop_markers(response.first_text(), stop)

    def _wait_for_slot(self) -> None:
        delay = self.config.request_delay_seconds
        if delay <= 0 or self._last_call is None:
            return
        remaining = delay - (time.monotonic() - self._last_call)
        if remaining > 0:
            logger.debug("Waiting %.2fs before next completion call", remaining)
            time.sleep(remaining)

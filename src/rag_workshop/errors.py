"""Error taxonomy shared by every component.

Every component surfaces the first error it meets; nothing here retries or
salvages partial results.
"""

from __future__ import annotations


class WorkshopError(Exception):
    """Base class for all errors raised by this package."""


class RemoteCallFailed(WorkshopError):
    """A call to the completion or embedding service failed."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class TransportFailure(RemoteCallFailed):
    """Network or HTTP layer failure (connect error, timeout, non-2xx status)."""


class DecodeFailure(RemoteCallFailed):
    """The response body was not valid JSON or did not match the expected schema."""


class RemoteStatusFailure(RemoteCallFailed):
    """The response decoded but reported no usable, successful choice."""


class DegenerateVector(WorkshopError, ValueError):
    """Cosine similarity is undefined because one vector has zero norm."""


class InvalidConfiguration(WorkshopError, ValueError):
    """A parameter combination that can never produce a valid result."""

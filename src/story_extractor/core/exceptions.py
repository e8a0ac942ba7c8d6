"""Application-wide exception hierarchy for Story Extractor.

All custom exceptions subclass ``StoryExtractorError``, enabling
consistent error handling and structured logging across the application.

Hierarchy::

    StoryExtractorError
    ├── ExtractionError          (kind: ErrorKind, details: dict)
    │   └── TransientFetchError
    ├── AgentError              (status_code: int | None)
    └── GenerationError
        └── GenerationTimeoutError

``ExtractionError`` is the only exception that crosses the orchestration
boundary: every other failure is normalised into one with
:func:`to_extraction_error` before it is persisted or returned to a caller.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Any

import httpx


class ErrorKind(str, enum.Enum):
    """Categories of failure reported on stories and API responses."""

    INVALID_URL = "INVALID_URL"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    PARSE_ERROR = "PARSE_ERROR"
    TIMEOUT = "TIMEOUT"
    RATE_LIMITED = "RATE_LIMITED"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_ERROR = "STORAGE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN = "UNKNOWN"

    @property
    def default_message(self) -> str:
        return _DEFAULT_MESSAGES[self]


_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_URL: "URL format invalid or unreachable",
    ErrorKind.EXTRACTION_FAILED: "Unable to extract content from page",
    ErrorKind.PARSE_ERROR: "Error parsing HTML content",
    ErrorKind.TIMEOUT: "Request timed out",
    ErrorKind.RATE_LIMITED: "Too many requests, backing off",
    ErrorKind.NOT_FOUND: "Story not found",
    ErrorKind.STORAGE_ERROR: "Error storing or retrieving data",
    ErrorKind.VALIDATION_ERROR: "Validation failed",
    ErrorKind.UNKNOWN: "An unexpected error occurred",
}

#: Error kinds a caller may reasonably retry later.
RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED}
)

#: Base delay (milliseconds) of the exponential fetch backoff.
BASE_BACKOFF_MS: int = 1000


class StoryExtractorError(Exception):
    """Base class for all Story Extractor exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Extraction exceptions
# ---------------------------------------------------------------------------


class ExtractionError(StoryExtractorError):
    """Raised when a URL cannot be turned into a story.

    Args:
        kind: The :class:`ErrorKind` category of the failure.
        message: Human-readable description.  Defaults to the kind's
            standard message.
        details: Extra context (URL, HTTP status, ...) included in API
            responses.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or kind.default_message)
        self.kind = kind
        self.message = message or kind.default_message
        self.details = details or {}
        self.timestamp = datetime.now(UTC)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error for an API response body."""
        return {
            "error": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class TransientFetchError(ExtractionError):
    """A fetch failure worth another attempt even though its kind is terminal.

    Raised for 5xx responses and connection-level errors.  The fetcher
    retries these with backoff; once attempts run out the caller sees an
    ordinary ``EXTRACTION_FAILED``.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorKind.EXTRACTION_FAILED, message, details)


# ---------------------------------------------------------------------------
# Collaborator exceptions
# ---------------------------------------------------------------------------


class AgentError(StoryExtractorError):
    """Raised when the language-model API returns an unusable response.

    Args:
        message: Human-readable description of the failure.
        status_code: HTTP status returned by the API, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationError(StoryExtractorError):
    """Raised when a document generation request fails or reports failure."""


class GenerationTimeoutError(GenerationError):
    """Raised when a document generation never reaches a terminal status."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_retryable(exc: BaseException) -> bool:
    """Return ``True`` if ``exc`` represents a transient failure.

    Used by the fetcher to decide whether another attempt is worthwhile.
    """
    if isinstance(exc, TransientFetchError):
        return True
    if isinstance(exc, ExtractionError):
        return exc.retryable
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429
    return False


def backoff_delay(attempt: int, base_delay: int = BASE_BACKOFF_MS) -> int:
    """Return the wait in milliseconds after failed attempt ``attempt``.

    Attempts are 1-indexed: 1s, 3s, 9s, ... for the default base delay.
    """
    return 3 ** (attempt - 1) * base_delay


def to_extraction_error(exc: BaseException) -> ExtractionError:
    """Normalise any exception raised by the pipeline into an ``ExtractionError``."""
    if isinstance(exc, ExtractionError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return ExtractionError(ErrorKind.TIMEOUT, str(exc) or None)
    if isinstance(exc, AgentError):
        if exc.status_code == 429:
            return ExtractionError(ErrorKind.RATE_LIMITED, str(exc))
        return ExtractionError(
            ErrorKind.EXTRACTION_FAILED, str(exc), {"status": exc.status_code}
        )
    if isinstance(exc, GenerationError):
        return ExtractionError(ErrorKind.EXTRACTION_FAILED, str(exc))
    return ExtractionError(ErrorKind.UNKNOWN, str(exc) or None)

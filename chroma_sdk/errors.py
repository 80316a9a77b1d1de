# chroma_sdk/errors.py
# SPDX-License-Identifier: Apache-2.0
"""
Normalized errors for the Chroma client.

Every failure raised by this package derives from `ChromaError` and carries the
same structured fields:

    message         human-readable description
    code            machine-readable UPPER_SNAKE_CASE code
    retry_after_ms  suggested delay before retrying (None if not retryable)
    details         JSON-serializable mapping with extra context

Two families matter to callers:

- `ValidationError` subclasses are raised *before* any network call when the
  caller's input violates a precondition. Nothing was sent, no partial state
  exists on the server, and fixing the input is the only remedy.
- `TransportFailure` and friends describe what happened on the wire. The body
  of a non-2xx response is the server's own message and is preserved verbatim.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict, Iterable, List, Mapping, Optional


class ChromaError(Exception):
    """
    Base exception for all Chroma client errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (UPPER_SNAKE_CASE)
        retry_after_ms: Suggested delay before retry (None if not retryable)
        details: Additional context-specific error details (JSON-serializable)
    """

    default_code = "CHROMA_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        retry_after_ms: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.retry_after_ms = retry_after_ms
        self.details = dict(details or {})

    @property
    def retryable(self) -> bool:
        return self.retry_after_ms is not None

    def asdict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization and logging."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "code": self.code,
            "retry_after_ms": self.retry_after_ms,
            "details": {k: self.details[k] for k in sorted(self.details)},
        }


class BadConfig(ChromaError):
    """Client options are invalid; raised before any network call."""
    default_code = "BAD_CONFIG"


# =============================================================================
# Local precondition failures
# =============================================================================

class ValidationError(ChromaError):
    """Caller input violated a precondition; nothing was sent to the server."""
    default_code = "VALIDATION_ERROR"


class MissingContent(ValidationError):
    """Add/upsert received neither embeddings nor documents."""
    default_code = "MISSING_CONTENT"

    def __init__(self, message: str = "Embeddings and documents cannot both be None", **kwargs: Any):
        super().__init__(message, **kwargs)


class MissingEmbeddingProvider(ValidationError):
    """Texts must be embedded but no embedding function was supplied."""
    default_code = "MISSING_EMBEDDING_PROVIDER"

    def __init__(
        self,
        message: str = "embedding_function cannot be None if documents are provided and embeddings are None",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)


class ConflictingEmbeddingSource(ValidationError):
    """Both precomputed embeddings and an embedding function were supplied."""
    default_code = "CONFLICTING_EMBEDDING_SOURCE"

    def __init__(self, message: str = "embedding_function should be None if embeddings are provided", **kwargs: Any):
        super().__init__(message, **kwargs)


class EmptyId(ValidationError):
    default_code = "EMPTY_ID"

    def __init__(self, message: str = "Found empty string in IDs", **kwargs: Any):
        super().__init__(message, **kwargs)


class LengthMismatch(ValidationError):
    """A per-entry field does not have exactly one element per id."""
    default_code = "LENGTH_MISMATCH"

    def __init__(
        self,
        field: str,
        expected: int,
        actual: int,
        **kwargs: Any,
    ):
        kwargs.setdefault("details", {"field": field, "expected": expected, "actual": actual})
        super().__init__(
            f"IDs, embeddings, metadatas, and documents must all be the same length "
            f"({field} has {actual} entries, expected {expected})",
            **kwargs,
        )
        self.field = field
        self.expected = expected
        self.actual = actual


class DuplicateId(ValidationError):
    """
    The batch repeats at least one id.

    `duplicates` lists every id that occurs more than once, each reported once,
    in order of first appearance.
    """
    default_code = "DUPLICATE_ID"

    def __init__(self, duplicates: Iterable[str], **kwargs: Any):
        dupes: List[str] = list(duplicates)
        kwargs.setdefault("details", {"duplicates": dupes})
        super().__init__(f"Expected IDs to be unique, found duplicates for: {dupes}", **kwargs)
        self.duplicates = dupes


class InvalidMetadata(ValidationError):
    """Metadata is not a mapping of string keys to scalar values."""
    default_code = "INVALID_METADATA"


class ConflictingQuerySource(ValidationError):
    default_code = "CONFLICTING_QUERY_SOURCE"

    def __init__(self, message: str = "You can only provide query_embeddings or query_texts, not both", **kwargs: Any):
        super().__init__(message, **kwargs)


class MissingQuerySource(ValidationError):
    default_code = "MISSING_QUERY_SOURCE"

    def __init__(self, message: str = "You must provide either query_embeddings or query_texts", **kwargs: Any):
        super().__init__(message, **kwargs)


class InvalidArgument(ValidationError):
    """A scalar argument (name, limit, include list, ...) is malformed."""
    default_code = "INVALID_ARGUMENT"


# =============================================================================
# Embedding provider failures
# =============================================================================

class EmbeddingProviderFailed(ChromaError):
    """
    The embedding function raised.

    The original exception is chained as `__cause__`; its text is repeated in
    the message so it survives plain `str()` logging.
    """
    default_code = "EMBEDDING_PROVIDER_FAILED"

    def __init__(self, cause: BaseException, **kwargs: Any):
        kwargs.setdefault("details", {"provider_error": type(cause).__name__})
        super().__init__(f"embedding function failed: {cause}", **kwargs)
        self.cause = cause


# =============================================================================
# Transport failures
# =============================================================================

def reason_phrase(status: int) -> str:
    """Canonical reason phrase for an HTTP status, 'Unknown' if unregistered."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return "Unknown"


class TransportFailure(ChromaError):
    """
    The server answered with a non-2xx status.

    `str(err)` is `"<status> <reason>: <body>"`; `body` is the response text
    exactly as received.
    """
    default_code = "TRANSPORT_FAILURE"

    def __init__(
        self,
        status: int,
        body: str,
        *,
        reason: Optional[str] = None,
        **kwargs: Any,
    ):
        self.status = int(status)
        self.reason = reason or reason_phrase(self.status)
        self.body = body
        details = dict(kwargs.pop("details", None) or {})
        details.setdefault("status", self.status)
        super().__init__(f"{self.status} {self.reason}: {body}", details=details, **kwargs)


class NotFound(TransportFailure):
    default_code = "NOT_FOUND"


class Conflict(TransportFailure):
    default_code = "CONFLICT"


class RequestTimeout(ChromaError):
    """The per-request timeout expired before a response arrived."""
    default_code = "TIMEOUT"

    def __init__(self, message: str = "request timed out", **kwargs: Any):
        kwargs.setdefault("retry_after_ms", 500)
        super().__init__(message, **kwargs)


class ConnectionFailure(ChromaError):
    """The request failed at the network level; no status was received."""
    default_code = "CONNECTION_FAILURE"

    def __init__(self, message: str, **kwargs: Any):
        kwargs.setdefault("retry_after_ms", 500)
        super().__init__(message, **kwargs)


class SerializationError(ChromaError):
    """The request body could not be encoded as JSON."""
    default_code = "SERIALIZATION_ERROR"


class DeserializationError(ChromaError):
    """The response was not JSON or did not have the expected shape."""
    default_code = "DESERIALIZATION_ERROR"


def failure_for_status(
    status: int,
    body: str,
    *,
    retry_after_ms: Optional[int] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> TransportFailure:
    """
    Build the most specific `TransportFailure` for a status code.

    429 and 5xx are retryable; when the server sent no Retry-After hint a
    default of 1000ms is suggested.
    """
    if status == 404:
        cls = NotFound
    elif status == 409:
        cls = Conflict
    else:
        cls = TransportFailure
    if retry_after_ms is None and (status == 429 or status >= 500):
        retry_after_ms = 1000
    return cls(status, body, retry_after_ms=retry_after_ms, details=details)


__all__ = [
    "ChromaError",
    "BadConfig",
    "ValidationError",
    "MissingContent",
    "MissingEmbeddingProvider",
    "ConflictingEmbeddingSource",
    "EmptyId",
    "LengthMismatch",
    "DuplicateId",
    "InvalidMetadata",
    "ConflictingQuerySource",
    "MissingQuerySource",
    "InvalidArgument",
    "EmbeddingProviderFailed",
    "TransportFailure",
    "NotFound",
    "Conflict",
    "RequestTimeout",
    "ConnectionFailure",
    "SerializationError",
    "DeserializationError",
    "reason_phrase",
    "failure_for_status",
]

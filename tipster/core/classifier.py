"""Error classification for provider and prediction failures.

Maps a raw failure (SDK exception, timeout, HTTP status, malformed body) onto a
small fixed set of error kinds, and decides which kinds count against a
model's health. Pure functions, no side effects.

Usage:
    from tipster.core.classifier import classify, is_model_specific_failure

    kind = classify(exc)
    if is_model_specific_failure(kind):
        ...
"""

import asyncio
import json
import re
from enum import Enum
from typing import FrozenSet

import openai
from pydantic import ValidationError

from tipster.core.errors import (
    EmptyResponseError,
    FallbackExhaustedError,
    ParseFailureError,
    ProviderAuthError,
    ProviderRateLimitError,
    ProviderServerError,
    ProviderTimeoutError,
    SchemaViolationError,
)


class ErrorKind(str, Enum):
    """Closed set of failure kinds seen by the pipeline."""

    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    AUTH_ERROR = "auth_error"
    PARSE_FAILURE = "parse_failure"
    EMPTY_RESPONSE = "empty_response"
    SCHEMA_VIOLATION = "schema_validation_failed"
    FALLBACK_EXHAUSTED = "fallback_exhausted"
    UNKNOWN = "unknown"


# Kinds the provider retries locally with backoff before giving up
TRANSIENT_KINDS: FrozenSet[ErrorKind] = frozenset(
    {ErrorKind.TIMEOUT, ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR}
)

# Kinds that count toward auto-disable. SERVER_ERROR only reaches the health
# tracker after the provider's retry budget is spent, so it is a repeated error.
MODEL_SPECIFIC_KINDS: FrozenSet[ErrorKind] = frozenset(
    {
        ErrorKind.SERVER_ERROR,
        ErrorKind.AUTH_ERROR,
        ErrorKind.PARSE_FAILURE,
        ErrorKind.EMPTY_RESPONSE,
        ErrorKind.SCHEMA_VIOLATION,
        ErrorKind.FALLBACK_EXHAUSTED,
        ErrorKind.UNKNOWN,
    }
)

_SERVER_STATUS_RE = re.compile(r"\b5\d\d\b")
_AUTH_STATUS_RE = re.compile(r"\b40[13]\b")


def _classify_status(status_code: int) -> ErrorKind:
    if status_code == 408:
        return ErrorKind.TIMEOUT
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code in (401, 403):
        return ErrorKind.AUTH_ERROR
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def _classify_message(message: str) -> ErrorKind:
    text = message.lower()
    if "timeout" in text or "timed out" in text:
        return ErrorKind.TIMEOUT
    if "429" in text or "rate limit" in text:
        return ErrorKind.RATE_LIMITED
    if _AUTH_STATUS_RE.search(text) or "unauthorized" in text or "authentication" in text:
        return ErrorKind.AUTH_ERROR
    if _SERVER_STATUS_RE.search(text):
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def classify(error: BaseException) -> ErrorKind:
    """Classify a failure into an ErrorKind.

    Checks our own exception types first, then the openai SDK types raised by
    the OpenAI-compatible client, then falls back to inspecting the message.

    Args:
        error: The exception raised by a provider call, parser or validator

    Returns:
        The matching ErrorKind (UNKNOWN when nothing matches)
    """
    if isinstance(error, FallbackExhaustedError):
        return ErrorKind.FALLBACK_EXHAUSTED
    if isinstance(error, (ProviderTimeoutError, openai.APITimeoutError, TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(error, (ProviderRateLimitError, openai.RateLimitError)):
        return ErrorKind.RATE_LIMITED
    if isinstance(error, (ProviderAuthError, openai.AuthenticationError, openai.PermissionDeniedError)):
        return ErrorKind.AUTH_ERROR
    if isinstance(error, (ProviderServerError, openai.InternalServerError)):
        return ErrorKind.SERVER_ERROR
    if isinstance(error, EmptyResponseError):
        return ErrorKind.EMPTY_RESPONSE
    if isinstance(error, (ParseFailureError, json.JSONDecodeError)):
        return ErrorKind.PARSE_FAILURE
    if isinstance(error, (SchemaViolationError, ValidationError)):
        return ErrorKind.SCHEMA_VIOLATION
    if isinstance(error, openai.APIStatusError):
        return _classify_status(error.status_code)
    if isinstance(error, openai.APIConnectionError):
        # Connection resets and DNS failures behave like a flaky upstream
        return ErrorKind.SERVER_ERROR
    return _classify_message(str(error))


def is_model_specific_failure(kind: ErrorKind) -> bool:
    """Whether a failure of this kind should count toward auto-disable.

    Single timeouts and rate limits are infra noise already absorbed by the
    provider's own retry loop; they never count against a model.
    """
    return kind in MODEL_SPECIFIC_KINDS


def is_transient(error: BaseException) -> bool:
    """Whether the provider should retry this error with backoff."""
    return classify(error) in TRANSIENT_KINDS


def error_summary(error: BaseException, limit: int = 200) -> str:
    """One-line, length-bounded description of an error for logs."""
    text = f"{type(error).__name__}: {error}"
    text = " ".join(text.split())
    if len(text) > limit:
        text = text[: limit - 3] + "..."
    return text

"""Core exception hierarchy for Tipster.

All Tipster exceptions inherit from TipsterError, enabling both specific
and broad exception handling.

Exception Hierarchy:
    TipsterError (base)
    ├── ProviderError - prediction endpoint issues
    │   ├── ProviderTimeoutError
    │   ├── ProviderRateLimitError
    │   ├── ProviderAuthError
    │   ├── ProviderServerError
    │   └── EmptyResponseError
    ├── PredictionError - output handling issues
    │   ├── ParseFailureError
    │   ├── SchemaViolationError
    │   └── FallbackExhaustedError
    └── ConfigurationError - config issues (fatal at startup)
        ├── MissingConfigError
        ├── InvalidConfigError
        └── FallbackConfigError
"""

from typing import Any, Dict, List, Optional


class TipsterError(Exception):
    """Base exception for all Tipster errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "PROVIDER_TIMEOUT")
        details: Optional dict with additional context
    """

    error_code: str = "TIPSTER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dict for logging and admin reporting."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Provider Errors
class ProviderError(TipsterError):
    """Base class for prediction provider errors."""

    error_code = "PROVIDER_ERROR"

    def __init__(self, message: str, provider: str = "", details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details.setdefault("provider", provider)
        super().__init__(message, details=details)
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Provider call exceeded its timeout."""

    error_code = "PROVIDER_TIMEOUT"

    def __init__(self, provider: str, timeout_seconds: float):
        super().__init__(
            f"{provider} call timed out after {timeout_seconds}s",
            provider=provider,
            details={"timeout_seconds": timeout_seconds},
        )


class ProviderRateLimitError(ProviderError):
    """Provider rate limit exceeded."""

    error_code = "PROVIDER_RATE_LIMIT"

    def __init__(self, provider: str, retry_after: Optional[int] = None):
        msg = f"{provider} rate limit exceeded."
        if retry_after:
            msg += f" Retry after {retry_after} seconds."
        super().__init__(msg, provider=provider, details={"retry_after": retry_after})


class ProviderAuthError(ProviderError):
    """Provider rejected our credentials."""

    error_code = "PROVIDER_AUTH"

    def __init__(self, provider: str, key_name: str = "API_KEY"):
        super().__init__(
            f"{provider} authentication failed. Check your {key_name} environment variable.",
            provider=provider,
            details={"key_name": key_name},
        )


class ProviderServerError(ProviderError):
    """Provider returned a 5xx response."""

    error_code = "PROVIDER_SERVER_ERROR"

    def __init__(self, provider: str, status_code: Optional[int] = None, body: str = ""):
        msg = f"{provider} server error"
        if status_code:
            msg += f" (HTTP {status_code})"
        if body:
            msg += f": {body[:200]}"
        super().__init__(msg, provider=provider, details={"status_code": status_code})
        self.status_code = status_code


class EmptyResponseError(ProviderError):
    """Provider answered but the response carried no usable text."""

    error_code = "EMPTY_RESPONSE"

    def __init__(self, provider: str, detail: str = "no content, reasoning, or reasoning_details"):
        super().__init__(
            f"{provider} response contained no usable content ({detail})",
            provider=provider,
        )


# Prediction Errors
class PredictionError(TipsterError):
    """Base class for errors handling model output."""

    error_code = "PREDICTION_ERROR"


class ParseFailureError(PredictionError):
    """No prediction structure could be extracted from model output."""

    error_code = "PARSE_FAILURE"

    def __init__(self, reason: str, raw_sample: str = ""):
        super().__init__(
            f"Failed to parse model output: {reason}",
            details={"reason": reason, "raw_sample": raw_sample},
        )
        self.reason = reason
        self.raw_sample = raw_sample


class SchemaViolationError(PredictionError):
    """Parsed output does not match the prediction schema."""

    error_code = "SCHEMA_VIOLATION"

    def __init__(self, schema_name: str, errors: List[str]):
        super().__init__(
            f"Schema validation failed for '{schema_name}': {', '.join(errors)}",
            details={"schema_name": schema_name, "errors": errors},
        )
        self.errors = errors


class FallbackExhaustedError(PredictionError):
    """Both the primary provider and its fallback failed."""

    error_code = "FALLBACK_EXHAUSTED"

    def __init__(
        self,
        primary_id: str,
        fallback_id: str,
        primary_error: BaseException,
        fallback_error: BaseException,
    ):
        super().__init__(
            f"Fallback also failed for {primary_id}: "
            f"primary error: {primary_error}; fallback {fallback_id} error: {fallback_error}",
            details={
                "primary_id": primary_id,
                "fallback_id": fallback_id,
                "primary_error": str(primary_error),
                "fallback_error": str(fallback_error),
            },
        )
        self.primary_id = primary_id
        self.fallback_id = fallback_id
        self.primary_error = primary_error
        self.fallback_error = fallback_error


# Configuration Errors
class ConfigurationError(TipsterError):
    """Base class for configuration errors. Never recovered at runtime."""

    error_code = "CONFIG_ERROR"


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    error_code = "MISSING_CONFIG"

    def __init__(self, config_key: str, source: str = "environment"):
        super().__init__(
            f"Required configuration '{config_key}' not found in {source}.",
            details={"config_key": config_key, "source": source},
        )


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "INVALID_CONFIG"

    def __init__(self, config_key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid value for '{config_key}': {reason}",
            details={"config_key": config_key, "value": str(value), "reason": reason},
        )


class FallbackConfigError(ConfigurationError):
    """Fallback mapping failed startup validation."""

    error_code = "FALLBACK_CONFIG"

    def __init__(self, violations: List[str], valid_ids: List[str]):
        super().__init__(
            "Invalid fallback mapping:\n  - "
            + "\n  - ".join(violations)
            + f"\nAvailable providers: {', '.join(valid_ids)}",
            details={"violations": violations, "valid_ids": valid_ids},
        )
        self.violations = violations

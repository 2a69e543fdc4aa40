"""Central configuration constants for Tipster.

Thresholds and defaults used throughout the prediction pipeline. Constants
can be overridden via environment variables using the TIPSTER_* prefix.

Usage:
    from tipster.core import constants

    constants.load_config()
    if failures >= constants.HEALTH_FAILURE_THRESHOLD:
        ...

Environment Variables:
    TIPSTER_HEALTH_FAILURE_THRESHOLD - Consecutive failures before auto-disable (default: 5)
    TIPSTER_HEALTH_RECOVERY_COOLDOWN - Seconds before a disabled model is retried (default: 3600)
    TIPSTER_HEALTH_PROBATION_FAILURES - Failure count kept after recovery (default: 2)
    TIPSTER_RETRY_MAX_RETRIES - Provider-level retries for transient errors (default: 3)
    TIPSTER_RETRY_BASE_DELAY - Base backoff delay in seconds (default: 1.5)
    TIPSTER_RETRY_MAX_DELAY - Backoff ceiling in seconds (default: 15.0)
    TIPSTER_RETRY_JITTER - Jitter fraction added to each delay (default: 0.3)
    TIPSTER_STANDARD_MODEL_TIMEOUT - Per-call timeout for standard models (default: 60)
    TIPSTER_REASONING_MODEL_TIMEOUT - Per-call timeout for reasoning models (default: 90)
"""

import os
from typing import Tuple

from tipster.core.errors import InvalidConfigError

# =============================================================================
# Model Health
# =============================================================================

# Consecutive model-specific failures before a model is auto-disabled
HEALTH_FAILURE_THRESHOLD: int = 5

# Seconds since the last failure before an auto-disabled model is retried
HEALTH_RECOVERY_COOLDOWN: int = 3600

# consecutive_failures value a recovered model restarts from
HEALTH_PROBATION_FAILURES: int = 2

# Stored failure reasons are truncated to this length
FAILURE_REASON_MAX_LENGTH: int = 500

# =============================================================================
# Provider Retry / Timeouts
# =============================================================================

RETRY_MAX_RETRIES: int = 3
RETRY_BASE_DELAY: float = 1.5
RETRY_MAX_DELAY: float = 15.0
RETRY_JITTER: float = 0.3
RETRYABLE_STATUS_CODES: Tuple[int, ...] = (408, 429, 500, 502, 503, 504)

STANDARD_MODEL_TIMEOUT: int = 60
REASONING_MODEL_TIMEOUT: int = 90

# =============================================================================
# Prediction Output
# =============================================================================

SCORE_MIN: int = 0
SCORE_MAX: int = 20

# Raw output samples attached to failures are truncated to this length
RAW_SAMPLE_LENGTH: int = 300

# Token budgets for a single chat completion
STANDARD_MAX_TOKENS: int = 800
REASONING_MAX_TOKENS: int = 4000
PREDICTION_TEMPERATURE: float = 0.5

# Default token estimates used for cost reporting
DEFAULT_INPUT_TOKENS: int = 500
DEFAULT_OUTPUT_TOKENS: int = 50


# =============================================================================
# Helper Functions for Environment Variable Loading
# =============================================================================

def _get_env_int(key: str, default: int) -> int:
    """Get integer from environment variable with validation.

    Raises:
        InvalidConfigError: If value is not a valid non-negative integer
    """
    value = os.getenv(key)
    if value is None:
        return default

    try:
        result = int(value)
    except ValueError:
        raise InvalidConfigError(key, value, "must be an integer")
    if result < 0:
        raise InvalidConfigError(key, value, "must be non-negative")
    return result


def _get_env_float(key: str, default: float) -> float:
    """Get float from environment variable with validation.

    Raises:
        InvalidConfigError: If value is not a valid non-negative number
    """
    value = os.getenv(key)
    if value is None:
        return default

    try:
        result = float(value)
    except ValueError:
        raise InvalidConfigError(key, value, "must be a number")
    if result < 0:
        raise InvalidConfigError(key, value, "must be non-negative")
    return result


def load_config() -> None:
    """Load configuration with environment variable overrides.

    All values are read and checked before any module constant changes, so a
    rejected environment leaves the previous configuration in place.

    Raises:
        InvalidConfigError: If any environment variable has an invalid value

    Example:
        >>> import os
        >>> os.environ["TIPSTER_HEALTH_FAILURE_THRESHOLD"] = "3"
        >>> load_config()
        >>> HEALTH_FAILURE_THRESHOLD
        3
    """
    global HEALTH_FAILURE_THRESHOLD, HEALTH_RECOVERY_COOLDOWN, HEALTH_PROBATION_FAILURES
    global RETRY_MAX_RETRIES, RETRY_BASE_DELAY, RETRY_MAX_DELAY, RETRY_JITTER
    global STANDARD_MODEL_TIMEOUT, REASONING_MODEL_TIMEOUT

    failure_threshold = _get_env_int("TIPSTER_HEALTH_FAILURE_THRESHOLD", 5)
    recovery_cooldown = _get_env_int("TIPSTER_HEALTH_RECOVERY_COOLDOWN", 3600)
    probation_failures = _get_env_int("TIPSTER_HEALTH_PROBATION_FAILURES", 2)
    if failure_threshold < 1:
        raise InvalidConfigError(
            "TIPSTER_HEALTH_FAILURE_THRESHOLD", failure_threshold, "must be at least 1"
        )
    if probation_failures >= failure_threshold:
        raise InvalidConfigError(
            "TIPSTER_HEALTH_PROBATION_FAILURES",
            probation_failures,
            "must be lower than the failure threshold",
        )

    max_retries = _get_env_int("TIPSTER_RETRY_MAX_RETRIES", 3)
    base_delay = _get_env_float("TIPSTER_RETRY_BASE_DELAY", 1.5)
    max_delay = _get_env_float("TIPSTER_RETRY_MAX_DELAY", 15.0)
    jitter = _get_env_float("TIPSTER_RETRY_JITTER", 0.3)

    standard_timeout = _get_env_int("TIPSTER_STANDARD_MODEL_TIMEOUT", 60)
    reasoning_timeout = _get_env_int("TIPSTER_REASONING_MODEL_TIMEOUT", 90)

    HEALTH_FAILURE_THRESHOLD = failure_threshold
    HEALTH_RECOVERY_COOLDOWN = recovery_cooldown
    HEALTH_PROBATION_FAILURES = probation_failures
    RETRY_MAX_RETRIES = max_retries
    RETRY_BASE_DELAY = base_delay
    RETRY_MAX_DELAY = max_delay
    RETRY_JITTER = jitter
    STANDARD_MODEL_TIMEOUT = standard_timeout
    REASONING_MODEL_TIMEOUT = reasoning_timeout

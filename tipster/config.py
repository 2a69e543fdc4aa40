"""Configuration management for Tipster."""

import os
from typing import Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from tipster.core import constants
from tipster.core.constants import _get_env_float, _get_env_int
from tipster.core.errors import InvalidConfigError
from tipster.providers.retry import RetryPolicy
from tipster.providers.synthetic_provider import SYNTHETIC_API_KEY_ENV, SYNTHETIC_BASE_URL
from tipster.providers.together_provider import TOGETHER_API_KEY_ENV, TOGETHER_BASE_URL

# Load environment variables
load_dotenv()


class ProviderConfig(BaseModel):
    """Vendor credentials and endpoints."""

    together_api_key: Optional[str] = Field(default=None, description="Together AI API key")
    together_base_url: str = Field(default=TOGETHER_BASE_URL, description="Together AI base URL")
    synthetic_api_key: Optional[str] = Field(default=None, description="Synthetic.new API key")
    synthetic_base_url: str = Field(default=SYNTHETIC_BASE_URL, description="Synthetic.new base URL")

    def api_key_for(self, vendor: str) -> Optional[str]:
        if vendor == "together":
            return self.together_api_key
        if vendor == "synthetic":
            return self.synthetic_api_key
        return None

    def base_url_for(self, vendor: str) -> Optional[str]:
        if vendor == "together":
            return self.together_base_url
        if vendor == "synthetic":
            return self.synthetic_base_url
        return None


class RetryConfig(BaseModel):
    """Provider-level retry for transient errors."""

    max_retries: int = Field(default=constants.RETRY_MAX_RETRIES, ge=0, description="Retries after the first attempt")
    base_delay: float = Field(default=constants.RETRY_BASE_DELAY, gt=0, description="Base backoff delay (seconds)")
    max_delay: float = Field(default=constants.RETRY_MAX_DELAY, gt=0, description="Backoff ceiling (seconds)")
    jitter: float = Field(default=constants.RETRY_JITTER, ge=0, le=1, description="Jitter fraction")
    retryable_status_codes: Tuple[int, ...] = Field(
        default=constants.RETRYABLE_STATUS_CODES, description="HTTP codes retried with backoff"
    )

    @model_validator(mode="after")
    def validate_delays(self) -> "RetryConfig":
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            jitter=self.jitter,
            retryable_status_codes=self.retryable_status_codes,
        )


class TimeoutConfig(BaseModel):
    """Per-call timeouts by model class."""

    standard_seconds: float = Field(default=constants.STANDARD_MODEL_TIMEOUT, gt=0, description="Standard models")
    reasoning_seconds: float = Field(default=constants.REASONING_MODEL_TIMEOUT, gt=0, description="Reasoning models")


class HealthConfig(BaseModel):
    """Auto-disable and recovery thresholds."""

    failure_threshold: int = Field(default=constants.HEALTH_FAILURE_THRESHOLD, ge=1, description="Failures before auto-disable")
    recovery_cooldown_seconds: int = Field(
        default=constants.HEALTH_RECOVERY_COOLDOWN, ge=0, description="Cooldown before a disabled model is retried"
    )
    probation_failures: int = Field(
        default=constants.HEALTH_PROBATION_FAILURES, ge=0, description="Failure count a recovered model restarts from"
    )

    @model_validator(mode="after")
    def validate_probation(self) -> "HealthConfig":
        if self.probation_failures >= self.failure_threshold:
            raise ValueError("probation_failures must be lower than failure_threshold")
        return self


class DatabaseConfig(BaseModel):
    """SQLite persistence for health records and predictions."""

    path: str = Field(default="data/tipster.db", description="SQLite database file")


class AppConfig(BaseModel):
    """Main application configuration."""

    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Load configuration from environment variables.

        Environment variable mapping:
        - TOGETHER_API_KEY / TOGETHER_BASE_URL
        - SYNTHETIC_API_KEY / SYNTHETIC_BASE_URL
        - TIPSTER_RETRY_* / TIPSTER_*_MODEL_TIMEOUT / TIPSTER_HEALTH_*
        - TIPSTER_DB_PATH: SQLite file (default data/tipster.db)
        - TIPSTER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR

        Raises:
            InvalidConfigError: If a value is malformed or inconsistent
        """
        try:
            providers = ProviderConfig(
                together_api_key=os.getenv(TOGETHER_API_KEY_ENV) or None,
                together_base_url=os.getenv("TOGETHER_BASE_URL", TOGETHER_BASE_URL),
                synthetic_api_key=os.getenv(SYNTHETIC_API_KEY_ENV) or None,
                synthetic_base_url=os.getenv("SYNTHETIC_BASE_URL", SYNTHETIC_BASE_URL),
            )

            retry = RetryConfig(
                max_retries=_get_env_int("TIPSTER_RETRY_MAX_RETRIES", constants.RETRY_MAX_RETRIES),
                base_delay=_get_env_float("TIPSTER_RETRY_BASE_DELAY", constants.RETRY_BASE_DELAY),
                max_delay=_get_env_float("TIPSTER_RETRY_MAX_DELAY", constants.RETRY_MAX_DELAY),
                jitter=_get_env_float("TIPSTER_RETRY_JITTER", constants.RETRY_JITTER),
            )

            timeouts = TimeoutConfig(
                standard_seconds=_get_env_float("TIPSTER_STANDARD_MODEL_TIMEOUT", constants.STANDARD_MODEL_TIMEOUT),
                reasoning_seconds=_get_env_float("TIPSTER_REASONING_MODEL_TIMEOUT", constants.REASONING_MODEL_TIMEOUT),
            )

            health = HealthConfig(
                failure_threshold=_get_env_int("TIPSTER_HEALTH_FAILURE_THRESHOLD", constants.HEALTH_FAILURE_THRESHOLD),
                recovery_cooldown_seconds=_get_env_int(
                    "TIPSTER_HEALTH_RECOVERY_COOLDOWN", constants.HEALTH_RECOVERY_COOLDOWN
                ),
                probation_failures=_get_env_int(
                    "TIPSTER_HEALTH_PROBATION_FAILURES", constants.HEALTH_PROBATION_FAILURES
                ),
            )

            database = DatabaseConfig(path=os.getenv("TIPSTER_DB_PATH", "data/tipster.db"))

            return cls(
                providers=providers,
                retry=retry,
                timeouts=timeouts,
                health=health,
                database=database,
                log_level=os.getenv("TIPSTER_LOG_LEVEL", "INFO"),
            )
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"]) or "config"
            raise InvalidConfigError(key, first.get("input"), first["msg"]) from e

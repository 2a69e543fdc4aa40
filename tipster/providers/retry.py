"""Exponential backoff with jitter for transient provider errors."""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

from tipster.core import constants
from tipster.core.classifier import error_summary, is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """How many times, and how patiently, a provider retries a call."""

    max_retries: int = constants.RETRY_MAX_RETRIES
    base_delay: float = constants.RETRY_BASE_DELAY
    max_delay: float = constants.RETRY_MAX_DELAY
    jitter: float = constants.RETRY_JITTER
    retryable_status_codes: Tuple[int, ...] = field(default=constants.RETRYABLE_STATUS_CODES)

    @classmethod
    def from_constants(cls) -> "RetryPolicy":
        """Build a policy from the current (possibly env-overridden) constants."""
        return cls(
            max_retries=constants.RETRY_MAX_RETRIES,
            base_delay=constants.RETRY_BASE_DELAY,
            max_delay=constants.RETRY_MAX_DELAY,
            jitter=constants.RETRY_JITTER,
            retryable_status_codes=constants.RETRYABLE_STATUS_CODES,
        )

    def compute_delay(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Delay before retry number attempt+1 (attempt is zero-based).

        base * 2^attempt plus up to jitter * that, capped at max_delay.
        """
        exponential = self.base_delay * (2 ** attempt)
        delay = exponential + rand() * self.jitter * exponential
        return min(delay, self.max_delay)

    def is_retryable(self, error: BaseException) -> bool:
        status_code = getattr(error, "status_code", None)
        if isinstance(status_code, int):
            return status_code in self.retryable_status_codes
        return is_transient(error)


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    label: str,
    sleep: Optional[Sleep] = None,
) -> T:
    """Await func, retrying transient failures according to policy.

    Non-retryable errors and the error from the final attempt propagate
    unchanged.
    """
    sleep = sleep or asyncio.sleep
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as e:
            if attempt >= policy.max_retries or not policy.is_retryable(e):
                raise
            delay = policy.compute_delay(attempt)
            logger.warning(
                f"{label}: transient error on attempt {attempt + 1}/{policy.max_retries + 1}, "
                f"retrying in {delay:.2f}s ({error_summary(e)})"
            )
            await sleep(delay)
            attempt += 1

"""Per-model health tracking with auto-disable and time-gated recovery.

State machine per model:
    HEALTHY -> AUTO_DISABLED: after failure_threshold consecutive model-specific failures
    AUTO_DISABLED -> eligible again: once recovery_cooldown has elapsed since the last failure
    any -> HEALTHY: on success (counter reset to 0)

Timeouts and rate limits are infra noise and never move the counter; they
only stamp last_failure_at. Counters live in a HealthStore whose updates are
atomic, so overlapping batches and multiple worker processes stay consistent.

Usage:
    from tipster.observability.model_health import ModelHealthTracker
    from tipster.storage import SQLiteHealthStore

    tracker = ModelHealthTracker(SQLiteHealthStore("data/tipster.db"))
    if await tracker.is_active("deepseek-r1"):
        ...
        await tracker.record_failure("deepseek-r1", "no JSON found", ErrorKind.PARSE_FAILURE)
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from tipster.core import constants
from tipster.core.classifier import ErrorKind, is_model_specific_failure
from tipster.core.models import HealthUpdate, ModelHealthRecord
from tipster.storage.base import HealthStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def truncate_reason(reason: Optional[str]) -> str:
    reason = reason or "unknown failure"
    limit = constants.FAILURE_REASON_MAX_LENGTH
    return reason if len(reason) <= limit else reason[: limit - 3] + "..."


class ModelHealthTracker:
    """Records attempt outcomes and decides which models may join a batch."""

    def __init__(
        self,
        store: HealthStore,
        failure_threshold: Optional[int] = None,
        recovery_cooldown: Optional[int] = None,
        probation_failures: Optional[int] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """
        Initialize the tracker.

        Args:
            store: Backing store with atomic counter updates
            failure_threshold: Consecutive failures before auto-disable
            recovery_cooldown: Seconds after the last failure before a disabled model is retried
            probation_failures: Counter value a recovered model restarts from
            clock: Source of the current UTC time
        """
        self.store = store
        self.failure_threshold = failure_threshold or constants.HEALTH_FAILURE_THRESHOLD
        self.recovery_cooldown = (
            constants.HEALTH_RECOVERY_COOLDOWN if recovery_cooldown is None else recovery_cooldown
        )
        self.probation_failures = (
            constants.HEALTH_PROBATION_FAILURES if probation_failures is None else probation_failures
        )
        self._clock = clock

    async def register(self, model_id: str) -> None:
        """Create a health record for a model if it has none."""
        await self.store.ensure(model_id, self._clock())

    async def register_all(self, model_ids: Iterable[str]) -> None:
        for model_id in model_ids:
            await self.register(model_id)

    async def record_success(self, model_id: str) -> ModelHealthRecord:
        """Reset the failure counter and clear auto-disable."""
        record = await self.store.record_success(model_id, self._clock())
        logger.debug(f"Model {model_id} succeeded; failure counter reset")
        return record

    async def record_failure(self, model_id: str, reason: str, error_kind: ErrorKind) -> HealthUpdate:
        """Record a failed attempt.

        Only model-specific failures move the counter. Every failure stamps
        last_failure_at and the (truncated) reason.
        """
        reason = truncate_reason(reason)
        now = self._clock()

        if not is_model_specific_failure(error_kind):
            record = await self.store.touch_failure(model_id, reason, now)
            logger.debug(f"Model {model_id} {error_kind.value} not counted toward health")
            return HealthUpdate(
                model_id=model_id,
                counted=False,
                consecutive_failures=record.consecutive_failures,
                auto_disabled=record.auto_disabled,
            )

        change = await self.store.increment_failure(model_id, reason, now, self.failure_threshold)
        record = change.after
        # A disabled model whose cooldown elapsed was back in rotation
        was_active = not change.before.auto_disabled or self._cooldown_elapsed(change.before)
        newly_disabled = record.auto_disabled and was_active
        if newly_disabled:
            logger.warning(
                f"Model {model_id} auto-disabled after {record.consecutive_failures} "
                f"consecutive failures ({error_kind.value}): {reason}"
            )
        else:
            logger.info(
                f"Model {model_id} failure {record.consecutive_failures}/{self.failure_threshold} "
                f"({error_kind.value})"
            )
        return HealthUpdate(
            model_id=model_id,
            counted=True,
            consecutive_failures=record.consecutive_failures,
            auto_disabled=record.auto_disabled,
            newly_disabled=newly_disabled,
        )

    def _cooldown_elapsed(self, record: ModelHealthRecord) -> bool:
        if record.last_failure_at is None:
            return True
        elapsed = (self._clock() - record.last_failure_at).total_seconds()
        return elapsed >= self.recovery_cooldown

    async def is_active(self, model_id: str) -> bool:
        """False while a model is auto-disabled and its cooldown has not elapsed."""
        record = await self.store.get(model_id)
        if record is None or not record.auto_disabled:
            return True
        return self._cooldown_elapsed(record)

    async def filter_active(self, model_ids: Iterable[str]) -> List[str]:
        return [model_id for model_id in model_ids if await self.is_active(model_id)]

    async def recover_disabled(self) -> List[str]:
        """Re-enable models whose cooldown has elapsed, on probation.

        Recovered models restart at probation_failures, so a few more
        model-specific failures put them straight back into auto-disable.
        """
        now = self._clock()
        cutoff = now - timedelta(seconds=self.recovery_cooldown)
        recovered = await self.store.recover_disabled(cutoff, self.probation_failures, now)
        for model_id in recovered:
            logger.info(
                f"Model {model_id} re-enabled on probation "
                f"({self.probation_failures}/{self.failure_threshold} failures)"
            )
        return recovered

    async def re_enable(self, model_id: str) -> bool:
        """Manually re-enable a model and reset its counter."""
        changed = await self.store.re_enable(model_id, self._clock())
        if changed:
            logger.info(f"Model {model_id} manually re-enabled")
        else:
            logger.warning(f"Cannot re-enable {model_id}: no health record")
        return changed

    async def get_record(self, model_id: str) -> Optional[ModelHealthRecord]:
        return await self.store.get(model_id)

    async def list_records(self) -> List[ModelHealthRecord]:
        return await self.store.list_all()

"""Storage interfaces for model health and predictions."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from tipster.core.errors import TipsterError
from tipster.core.models import ModelHealthRecord, PredictionRecord


class StorageError(TipsterError):
    """Persistence layer failure."""

    error_code = "STORAGE_ERROR"


@dataclass(frozen=True)
class FallbackCount:
    """Prediction totals for one model over a reporting window."""

    model_id: str
    total: int
    fallback: int


@dataclass(frozen=True)
class FailureIncrement:
    """A health record just before and just after one counted failure."""

    before: ModelHealthRecord
    after: ModelHealthRecord


class HealthStore(ABC):
    """Persistent per-model health state.

    Every mutation must be atomic against the backing
    store so overlapping batches never lose an increment or a reset.
    """

    @abstractmethod
    async def ensure(self, model_id: str, now: datetime) -> None:
        """Create the record if it does not exist yet."""
        pass

    @abstractmethod
    async def get(self, model_id: str) -> Optional[ModelHealthRecord]:
        pass

    @abstractmethod
    async def list_all(self) -> List[ModelHealthRecord]:
        pass

    @abstractmethod
    async def record_success(self, model_id: str, now: datetime) -> ModelHealthRecord:
        """Reset the failure counter, clear auto-disable, stamp last_success_at."""
        pass

    @abstractmethod
    async def increment_failure(
        self, model_id: str, reason: str, now: datetime, threshold: int
    ) -> FailureIncrement:
        """Atomically add one failure and disable the model once threshold is reached.

        The prior state is read in the same transaction as the update.
        """
        pass

    @abstractmethod
    async def touch_failure(self, model_id: str, reason: str, now: datetime) -> ModelHealthRecord:
        """Stamp last_failure_at and the reason without counting the failure."""
        pass

    @abstractmethod
    async def recover_disabled(self, cutoff: datetime, probation_failures: int, now: datetime) -> List[str]:
        """Re-enable models disabled with last failure at or before cutoff.

        Returns:
            Ids of the recovered models
        """
        pass

    @abstractmethod
    async def re_enable(self, model_id: str, now: datetime) -> bool:
        """Manually clear auto-disable and reset the counter."""
        pass


class PredictionStore(ABC):
    """Persistent prediction rows keyed by (match_id, model_id)."""

    @abstractmethod
    async def save(self, record: PredictionRecord) -> None:
        """Insert or replace the row for (match_id, model_id)."""
        pass

    @abstractmethod
    async def get(self, match_id: str, model_id: str) -> Optional[PredictionRecord]:
        pass

    @abstractmethod
    async def list_for_match(self, match_id: str) -> List[PredictionRecord]:
        pass

    @abstractmethod
    async def fallback_counts(self, since: Optional[datetime] = None) -> List[FallbackCount]:
        """Per-model totals of predictions and of those served by a fallback."""
        pass

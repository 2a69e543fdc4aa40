"""Data models shared across the prediction pipeline."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from tipster.core.classifier import ErrorKind
from tipster.core.validation import ParsedPrediction


@dataclass(frozen=True)
class MatchContext:
    """Inbound request for one batch round."""

    match_id: str
    home_team: str
    away_team: str
    competition: str
    kickoff: Optional[str] = None
    # Optional pre-match analysis (form, standings) rendered into the prompt
    analysis: Optional[str] = None

    @property
    def has_analysis(self) -> bool:
        return bool(self.analysis)


@dataclass
class ModelHealthRecord:
    """Persistent health state for one model."""

    model_id: str
    consecutive_failures: int = 0
    auto_disabled: bool = False
    last_failure_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    failure_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_id": self.model_id,
            "consecutive_failures": self.consecutive_failures,
            "auto_disabled": self.auto_disabled,
            "last_failure_at": self.last_failure_at.isoformat() if self.last_failure_at else None,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "failure_reason": self.failure_reason,
        }


@dataclass(frozen=True)
class HealthUpdate:
    """Result of recording a failure."""

    model_id: str
    counted: bool
    consecutive_failures: int
    auto_disabled: bool
    # True only on the call that took the model out of rotation
    newly_disabled: bool = False


@dataclass
class PredictionRecord:
    """A persisted prediction row.

    model_id is always the originally requested model. used_fallback is
    internal bookkeeping for admin reporting only.
    """

    match_id: str
    model_id: str
    home_score: int
    away_score: int
    tendency: str
    used_fallback: bool = False
    served_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_prediction(
        cls,
        prediction: ParsedPrediction,
        model_id: str,
        used_fallback: bool,
        served_by: Optional[str] = None,
    ) -> "PredictionRecord":
        return cls(
            match_id=prediction.match_id,
            model_id=model_id,
            home_score=prediction.home_score,
            away_score=prediction.away_score,
            tendency=prediction.tendency,
            used_fallback=used_fallback,
            served_by=served_by,
        )


@dataclass
class AttemptOutcome:
    """Result of one model's attempt within a batch, keyed by the original model id."""

    model_id: str
    match_id: str
    success: bool
    used_fallback: bool = False
    prediction: Optional[ParsedPrediction] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    raw_sample: Optional[str] = None
    duration_ms: int = 0
    auto_disabled: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["prediction"] = self.prediction.model_dump() if self.prediction else None
        data["error_kind"] = self.error_kind.value if self.error_kind else None
        return data

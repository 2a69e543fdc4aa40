"""Boundary guard run on every candidate immediately before persistence.

Strict by construction: scores must be integers in range and the match id
must name a requested match. A whole-number float such as 2.0 is read as the
int it denotes; nothing else is coerced or clamped, and a bad candidate is
rejected with a list of issues.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tipster.core.constants import SCORE_MAX, SCORE_MIN
from tipster.core.errors import SchemaViolationError


class ParsedPrediction(BaseModel):
    """A scoreline prediction for one match."""

    model_config = ConfigDict(strict=True, frozen=True, extra="ignore")

    match_id: str = Field(..., min_length=1, description="Identifier of the predicted match")
    home_score: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX, description="Predicted home goals")
    away_score: int = Field(..., ge=SCORE_MIN, le=SCORE_MAX, description="Predicted away goals")

    @field_validator("match_id")
    @classmethod
    def match_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("match_id must not be blank")
        return v

    @field_validator("home_score", "away_score", mode="before")
    @classmethod
    def whole_number_floats(cls, v: Any) -> Any:
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    @property
    def tendency(self) -> str:
        """Result tendency: H (home win), D (draw) or A (away win)."""
        if self.home_score > self.away_score:
            return "H"
        if self.home_score < self.away_score:
            return "A"
        return "D"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one candidate."""

    ok: bool
    prediction: Optional[ParsedPrediction] = None
    issues: List[str] = field(default_factory=list)

    def raise_for_issues(self) -> ParsedPrediction:
        if not self.ok or self.prediction is None:
            raise SchemaViolationError("ParsedPrediction", list(self.issues))
        return self.prediction


def _format_errors(exc: ValidationError) -> List[str]:
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "candidate"
        issues.append(f"{location}: {error['msg']}")
    return issues


def validate_prediction(candidate: Any, expected_match_ids: Iterable[str] = ()) -> ValidationResult:
    """Validate a parsed candidate against the prediction contract.

    Pure: the candidate is never mutated and the same input always yields the
    same verdict.

    Args:
        candidate: Object produced by the response parser
        expected_match_ids: Matches the request asked about; when empty the
            match id is only checked for being non-blank

    Returns:
        ValidationResult with the frozen prediction or the list of issues
    """
    if not isinstance(candidate, dict):
        return ValidationResult(ok=False, issues=[f"candidate must be an object, got {type(candidate).__name__}"])

    try:
        prediction = ParsedPrediction.model_validate(candidate)
    except ValidationError as e:
        return ValidationResult(ok=False, issues=_format_errors(e))

    expected = set(expected_match_ids)
    if expected and prediction.match_id not in expected:
        return ValidationResult(
            ok=False,
            issues=[f"match_id: '{prediction.match_id}' is not one of the requested matches"],
        )

    return ValidationResult(ok=True, prediction=prediction)


def select_prediction(candidates: List[Any], match_id: str) -> ValidationResult:
    """Pick the first valid candidate for a match, collecting issues otherwise."""
    issues: List[str] = []
    for index, candidate in enumerate(candidates):
        result = validate_prediction(candidate, [match_id])
        if result.ok:
            return result
        issues.extend(f"[{index}] {issue}" for issue in result.issues)
    if not candidates:
        issues.append("no candidates to validate")
    return ValidationResult(ok=False, issues=issues)

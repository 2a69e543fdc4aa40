"""Admin-facing fallback rate and cost report.

Read-only: derived from persisted used_fallback flags and static pricing.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from tipster.providers.base import PredictionProvider
from tipster.storage.base import FallbackCount

# Fallbacks costing more than this multiple of the original are flagged
COST_MULTIPLIER_ALERT = 2.0


@dataclass
class FallbackStat:
    model_id: str
    model_name: str
    fallback_to: Optional[str]
    fallback_to_name: Optional[str]
    total_predictions: int
    fallback_count: int
    fallback_rate: float
    estimated_original_cost: float
    estimated_fallback_cost: float
    cost_multiplier: float
    exceeds_2x: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FallbackReport:
    stats: List[FallbackStat]
    total_fallbacks: int
    models_exceeding_2x: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stats": [s.to_dict() for s in self.stats],
            "summary": {
                "total_models": len(self.stats),
                "total_fallbacks": self.total_fallbacks,
                "models_exceeding_2x": self.models_exceeding_2x,
            },
        }


def build_fallback_report(
    counts: List[FallbackCount],
    providers: Mapping[str, PredictionProvider],
    mapping: Mapping[str, str],
) -> FallbackReport:
    """Per-model fallback rate and what the fallbacks cost.

    Costs use the default per-call token estimate. The multiplier compares the
    per-call cost of the fallback target with the original model, so it is
    meaningful even before any fallback has happened.

    Args:
        counts: Per-model totals from PredictionStore.fallback_counts
        providers: Registered providers by id (pricing and display names)
        mapping: primary id -> fallback id

    Returns:
        FallbackReport sorted by fallback count, highest first
    """
    stats = []
    for row in counts:
        original = providers.get(row.model_id)
        target_id = mapping.get(row.model_id)
        target = providers.get(target_id) if target_id else None

        if original is None and target is None and row.fallback == 0:
            continue

        unit_original = original.estimate_cost() if original else 0.0
        unit_fallback = target.estimate_cost() if target else 0.0
        multiplier = unit_fallback / unit_original if unit_original > 0 and target else 0.0

        stats.append(
            FallbackStat(
                model_id=row.model_id,
                model_name=original.display_name if original else row.model_id,
                fallback_to=target_id,
                fallback_to_name=target.display_name if target else None,
                total_predictions=row.total,
                fallback_count=row.fallback,
                fallback_rate=row.fallback / row.total if row.total else 0.0,
                estimated_original_cost=unit_original * row.fallback,
                estimated_fallback_cost=unit_fallback * row.fallback,
                cost_multiplier=multiplier,
                exceeds_2x=multiplier > COST_MULTIPLIER_ALERT,
            )
        )

    stats.sort(key=lambda s: (-s.fallback_count, s.model_id))
    return FallbackReport(
        stats=stats,
        total_fallbacks=sum(s.fallback_count for s in stats),
        models_exceeding_2x=sum(1 for s in stats if s.exceeds_2x),
    )

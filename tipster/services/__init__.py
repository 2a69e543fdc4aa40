"""Fallback resolution, orchestration and batch coordination."""

from .coordinator import BatchPredictionCoordinator
from .fallback import FallbackResolver, validate_fallback_mapping
from .fallback_report import FallbackReport, FallbackStat, build_fallback_report
from .orchestrator import FallbackCallResult, FallbackOrchestrator

__all__ = [
    "BatchPredictionCoordinator",
    "FallbackResolver",
    "validate_fallback_mapping",
    "FallbackReport",
    "FallbackStat",
    "build_fallback_report",
    "FallbackCallResult",
    "FallbackOrchestrator",
]

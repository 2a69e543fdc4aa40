"""Persistence for model health and predictions."""

from .base import FailureIncrement, FallbackCount, HealthStore, PredictionStore, StorageError
from .health_store import SQLiteHealthStore
from .prediction_store import SQLitePredictionStore

__all__ = [
    "FailureIncrement",
    "FallbackCount",
    "HealthStore",
    "PredictionStore",
    "StorageError",
    "SQLiteHealthStore",
    "SQLitePredictionStore",
]

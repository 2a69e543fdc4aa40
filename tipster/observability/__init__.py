"""Model health tracking."""

from .model_health import ModelHealthTracker

__all__ = ["ModelHealthTracker"]

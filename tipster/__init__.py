"""Tipster - multi-model football prediction orchestration."""

__version__ = "1.4.0"

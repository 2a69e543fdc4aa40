"""Tipster command-line interface."""

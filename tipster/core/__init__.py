"""Core domain types, errors, parsing and validation for Tipster."""

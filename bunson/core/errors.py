"""Typed exception hierarchy for bunson."""

from __future__ import annotations


class BunsonError(Exception):
    """Base class for all bunson errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(BunsonError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class LoadError(BunsonError):
    """Raised when a method target cannot be imported or has the wrong type."""

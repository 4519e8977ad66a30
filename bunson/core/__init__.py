"""Core types and errors shared across bunson."""

from bunson.core.errors import BunsonError, ConfigError, LoadError

__all__ = [
    "BunsonError",
    "ConfigError",
    "LoadError",
]

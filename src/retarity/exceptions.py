"""Fatal error types for retarity runs."""

from __future__ import annotations


class RetarityError(RuntimeError):
    """Base class for errors that abort a run before any report is printed."""


class LoadError(RetarityError):
    """Raised when the requested packages cannot be located or loaded."""


class ConfigError(RetarityError):
    """Raised when a configuration file exists but cannot be parsed."""

"""retarity package root."""

from retarity.exceptions import ConfigError, LoadError, RetarityError

__all__ = ["__version__", "ConfigError", "LoadError", "RetarityError"]

__version__ = "0.1.0"

"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when settings or the schedule file are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a required setting, variable or file is absent or blank."""

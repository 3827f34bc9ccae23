"""Error taxonomy of the scheduling core."""

from __future__ import annotations


class MuteWardenError(RuntimeError):
    """Base class for errors raised by the scheduling core."""


class ConfigError(MuteWardenError):
    """Raised when schedule configuration is inconsistent.

    Covers dangling rule group / weekday schedule references, empty rule
    groups and unknown entities.
    """


class CalendarError(MuteWardenError):
    """Raised when a remote calendar lookup times out or returns garbage."""


class ActionError(MuteWardenError):
    """Raised when no action backend managed to apply a mute or message."""

    def __init__(self, message: str, *, entity_id: str | None = None) -> None:
        super().__init__(message)
        self.entity_id = entity_id


class PersistenceError(MuteWardenError):
    """Raised when the mute state store cannot be read or written."""

"""Domain port definitions for adapters."""

from __future__ import annotations

from .actions import MuteActions, MuteBackend
from .calendar import DayKindFetcher, HolidayTableFetcher, OfflineHolidayDataset
from .persistence import MuteStateRepository, MuteStateUnitOfWork

__all__ = [
    "DayKindFetcher",
    "HolidayTableFetcher",
    "MuteActions",
    "MuteBackend",
    "MuteStateRepository",
    "MuteStateUnitOfWork",
    "OfflineHolidayDataset",
]

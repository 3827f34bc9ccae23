"""Calendar classification: offline dataset, remote tables and the hybrid resolver."""

from __future__ import annotations

from .cache import TtlCache
from .resolver import DAY_RESULT_TTL_SECONDS, CalendarResolver
from .sources import (
    YEAR_TABLE_TTL_SECONDS,
    DayKindCalendar,
    OfflineCalendar,
    OnlineCalendar,
    YearTableCalendar,
    candidate_years,
)

__all__ = [
    "DAY_RESULT_TTL_SECONDS",
    "YEAR_TABLE_TTL_SECONDS",
    "CalendarResolver",
    "DayKindCalendar",
    "OfflineCalendar",
    "OnlineCalendar",
    "TtlCache",
    "YearTableCalendar",
    "candidate_years",
]

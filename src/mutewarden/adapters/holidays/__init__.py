"""Holiday calendar adapters."""

from __future__ import annotations

from .client import HolidayApiClient, should_cache_year_payload
from .offline import ChineseCalendarDataset
from .schema import DayKindResponse, HolidayDayPayload, HolidayYearResponse

__all__ = [
    "ChineseCalendarDataset",
    "DayKindResponse",
    "HolidayApiClient",
    "HolidayDayPayload",
    "HolidayYearResponse",
    "should_cache_year_payload",
]

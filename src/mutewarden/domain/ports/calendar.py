"""Ports for calendar data sources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from mutewarden.domain.model import DayKind, HolidayTableEntry


@runtime_checkable
class HolidayTableFetcher(Protocol):
    """Fetch the published holiday table of a year.

    Implementations raise ``CalendarError`` on timeout or malformed data.
    ``timeout`` overrides the fetcher's own time budget for this call.
    """

    def __call__(
        self, year: int, *, timeout: float | None = None
    ) -> Sequence[HolidayTableEntry]: ...


@runtime_checkable
class DayKindFetcher(Protocol):
    """Fetch the classification code of a single date."""

    def __call__(self, day: date) -> tuple[DayKind, str | None]: ...


@runtime_checkable
class OfflineHolidayDataset(Protocol):
    """Local holiday dataset.

    ``get_holiday_detail`` returns ``(is_rest_day, name)`` where ``name`` is set
    only for dates listed by the dataset. Years outside the dataset raise.
    """

    def get_holiday_detail(self, day: date) -> tuple[bool, str | None]: ...

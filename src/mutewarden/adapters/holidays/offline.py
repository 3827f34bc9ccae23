"""Offline holiday dataset backed by the ``chinesecalendar`` package."""

from __future__ import annotations

from typing import TYPE_CHECKING

import chinese_calendar

if TYPE_CHECKING:
    import datetime as dt

    from mutewarden.domain.ports.calendar import OfflineHolidayDataset


class ChineseCalendarDataset:
    """Statutory holidays and compensation workdays of mainland China.

    Years the installed package does not cover raise ``NotImplementedError``;
    ``OfflineCalendar`` treats that as a normal day.
    """

    def get_holiday_detail(self, day: dt.date) -> tuple[bool, str | None]:
        is_rest_day, name = chinese_calendar.get_holiday_detail(day)
        return bool(is_rest_day), str(name) if name is not None else None


if TYPE_CHECKING:
    _dataset_check: OfflineHolidayDataset = ChineseCalendarDataset()

"""Calendar classification values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .enums import DayKind

if TYPE_CHECKING:
    from datetime import date


@dataclass(frozen=True, slots=True)
class CalendarClassification:
    """How a calendar date deviates from the plain weekday cycle.

    Raw sources may flag both attributes at once; selection precedence is
    applied by the expected-state resolver, not here.
    """

    is_holiday: bool = False
    is_compensation_workday: bool = False
    label: str | None = None

    @property
    def is_normal(self) -> bool:
        return not (self.is_holiday or self.is_compensation_workday)

    @classmethod
    def holiday(cls, label: str | None = None) -> CalendarClassification:
        return cls(is_holiday=True, label=label)

    @classmethod
    def compensation_workday(cls, label: str | None = None) -> CalendarClassification:
        return cls(is_compensation_workday=True, label=label)

    @classmethod
    def from_day_kind(cls, kind: DayKind, label: str | None = None) -> CalendarClassification:
        if kind in (DayKind.HOLIDAY, DayKind.HOLIDAY_BLOCK_REST_DAY):
            return cls.holiday(label)
        if kind is DayKind.COMPENSATION_WORKDAY:
            return cls.compensation_workday(label)
        return NORMAL_DAY


NORMAL_DAY: Final[CalendarClassification] = CalendarClassification()


@dataclass(frozen=True, slots=True)
class HolidayTableEntry:
    """One dated entry of a published yearly holiday table.

    Only exceptional days are listed: ``is_off_day`` marks a rest day inside a
    holiday, otherwise the entry is a compensation workday.
    """

    day: date
    is_off_day: bool
    name: str | None = None

    def classification(self) -> CalendarClassification:
        if self.is_off_day:
            return CalendarClassification.holiday(self.name)
        return CalendarClassification.compensation_workday(self.name)

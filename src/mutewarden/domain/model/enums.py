"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date


class Weekday(StrEnum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> Weekday:
        """Return the weekday of ``day`` (``date.weekday()`` is 0 for Monday)."""
        return _WEEKDAYS_IN_ORDER[day.weekday()]


_WEEKDAYS_IN_ORDER: tuple[Weekday, ...] = tuple(Weekday)


class HolidayMethod(StrEnum):
    """Where calendar classifications come from."""

    OFFLINE = "offline"
    ONLINE = "online"
    HYBRID = "hybrid"


class DayKind(IntEnum):
    """Classification codes returned by per-day calendar endpoints."""

    NORMAL = 0
    HOLIDAY = 1
    COMPENSATION_WORKDAY = 2
    HOLIDAY_BLOCK_REST_DAY = 3


class RuleGroupSelection(StrEnum):
    """Why a rule group was chosen for an entity on a given day."""

    COMPENSATION = "compensation"
    HOLIDAY = "holiday"
    WEEKDAY = "weekday"

"""Public domain model API."""

from __future__ import annotations

from .calendar import NORMAL_DAY, CalendarClassification, HolidayTableEntry
from .enums import DayKind, HolidayMethod, RuleGroupSelection, Weekday
from .schedule import (
    DEFAULT_NOTIFY_MESSAGE,
    MINUTES_PER_DAY,
    EntityPolicy,
    Rule,
    RuleGroup,
    WeekdaySchedule,
    format_time_of_day,
    parse_time_of_day,
)
from .state import ExpectedState, MuteState

__all__ = [
    "DEFAULT_NOTIFY_MESSAGE",
    "MINUTES_PER_DAY",
    "NORMAL_DAY",
    "CalendarClassification",
    "DayKind",
    "EntityPolicy",
    "ExpectedState",
    "HolidayMethod",
    "HolidayTableEntry",
    "MuteState",
    "Rule",
    "RuleGroup",
    "RuleGroupSelection",
    "Weekday",
    "WeekdaySchedule",
    "format_time_of_day",
    "parse_time_of_day",
]

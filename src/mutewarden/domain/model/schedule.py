"""Schedule configuration entities: rules, rule groups, weekday schedules, policies."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .enums import Weekday

if TYPE_CHECKING:
    from collections.abc import Mapping

MINUTES_PER_DAY: Final[int] = 24 * 60
DEFAULT_NOTIFY_MESSAGE: Final[str] = "群已禁言"

_TIME_OF_DAY_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_time_of_day(value: str) -> int:
    """Parse ``"HH:MM"`` into minutes since midnight."""

    match = _TIME_OF_DAY_PATTERN.match(value.strip())
    if match is None:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Time of day out of range: {value!r}")
    return hours * 60 + minutes


def format_time_of_day(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    return f"{hours:02d}:{rest:02d}"


@dataclass(frozen=True, slots=True)
class Rule:
    """A transition to ``muted`` at ``time_of_day`` minutes after midnight."""

    time_of_day: int
    muted: bool

    def __post_init__(self) -> None:
        if not 0 <= self.time_of_day < MINUTES_PER_DAY:
            raise ValueError(f"Rule time out of range: {self.time_of_day}")

    @classmethod
    def at(cls, value: str, *, muted: bool) -> Rule:
        return cls(time_of_day=parse_time_of_day(value), muted=muted)


@dataclass(frozen=True, slots=True)
class RuleGroup:
    """A day-cycle of mute transitions (a "mute group")."""

    id: str
    rules: tuple[Rule, ...]
    notify: bool = False
    notify_message: str = DEFAULT_NOTIFY_MESSAGE

    @property
    def notification_text(self) -> str:
        return self.notify_message.strip() or DEFAULT_NOTIFY_MESSAGE

    def sorted_rules(self) -> tuple[Rule, ...]:
        """Rules in ascending time order.

        The sort is stable, so among rules sharing a time the one listed last
        in configuration ends up last and wins during matching.
        """
        return tuple(sorted(self.rules, key=lambda rule: rule.time_of_day))


@dataclass(frozen=True, slots=True)
class WeekdaySchedule:
    """Maps each weekday to the id of the rule group used on that day."""

    id: str
    day_to_rule_group: Mapping[Weekday, str]

    def missing_days(self) -> tuple[Weekday, ...]:
        return tuple(day for day in Weekday if day not in self.day_to_rule_group)

    def rule_group_for(self, day: Weekday) -> str | None:
        return self.day_to_rule_group.get(day)


@dataclass(frozen=True, slots=True)
class EntityPolicy:
    """Per-entity binding of a weekday schedule plus calendar overrides."""

    entity_id: str
    weekday_schedule_id: str
    holiday_override_enabled: bool = True
    holiday_rule_group: str = "default"
    compensation_rule_group: str = "compensation"

"""Expected and persisted mute states."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import RuleGroupSelection
from .schedule import format_time_of_day


@dataclass(frozen=True, slots=True)
class ExpectedState:
    """The state that should currently hold for an entity, and why."""

    muted: bool
    trigger_time: int
    source_rule_group_id: str
    looked_back_a_day: bool
    selection: RuleGroupSelection = RuleGroupSelection.WEEKDAY

    def describe(self) -> str:
        action = "muted" if self.muted else "unmuted"
        origin = " (carried over from the previous day)" if self.looked_back_a_day else ""
        return (
            f"{action} since {format_time_of_day(self.trigger_time)}{origin} "
            f"by rule group {self.source_rule_group_id!r} ({self.selection})"
        )


@dataclass(eq=False, kw_only=True)
class MuteState:
    """Persisted actual state of one entity, keyed by ``entity_id``."""

    entity_id: str
    muted: bool
    updated_at_ms: int
    last_applied_rule_group_id: str

    def as_tuple(self) -> tuple[str, bool, int, str]:
        return (self.entity_id, self.muted, self.updated_at_ms, self.last_applied_rule_group_id)

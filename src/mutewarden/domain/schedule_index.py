"""Lookup structures over schedule configuration, swapped wholesale on reload."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING

from .errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .model import EntityPolicy, RuleGroup, WeekdaySchedule

log = getLogger(__name__)


def _empty_mapping[V]() -> Mapping[str, V]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ScheduleIndex:
    """Immutable snapshot of rule groups, weekday schedules and entity policies.

    Construct through ``build`` to get cross-reference validation; the plain
    constructor accepts anything and leaves detection to lookups.
    """

    rule_groups: Mapping[str, RuleGroup] = field(default_factory=_empty_mapping)
    weekday_schedules: Mapping[str, WeekdaySchedule] = field(default_factory=_empty_mapping)
    policies: Mapping[str, EntityPolicy] = field(default_factory=_empty_mapping)

    @classmethod
    def build(
        cls,
        *,
        rule_groups: Iterable[RuleGroup],
        weekday_schedules: Iterable[WeekdaySchedule],
        policies: Iterable[EntityPolicy],
    ) -> ScheduleIndex:
        """Index the given configuration, raising ``ConfigError`` listing every problem."""

        groups = list(rule_groups)
        schedules = list(weekday_schedules)
        entity_policies = list(policies)

        problems: list[str] = []
        problems.extend(_duplicates("rule group", (group.id for group in groups)))
        problems.extend(_duplicates("weekday schedule", (schedule.id for schedule in schedules)))
        problems.extend(_duplicates("entity", (policy.entity_id for policy in entity_policies)))

        group_ids = {group.id for group in groups}
        schedule_ids = {schedule.id for schedule in schedules}

        problems.extend(
            f"rule group {group.id!r} has no rules" for group in groups if not group.rules
        )

        for schedule in schedules:
            missing = schedule.missing_days()
            if missing:
                days = ", ".join(missing)
                problems.append(f"weekday schedule {schedule.id!r} is missing {days}")
            for day, group_id in schedule.day_to_rule_group.items():
                if group_id not in group_ids:
                    problems.append(
                        f"weekday schedule {schedule.id!r} maps {day} to unknown rule group "
                        f"{group_id!r}"
                    )

        for policy in entity_policies:
            if policy.weekday_schedule_id not in schedule_ids:
                problems.append(
                    f"entity {policy.entity_id!r} references unknown weekday schedule "
                    f"{policy.weekday_schedule_id!r}"
                )
            if not policy.holiday_override_enabled:
                continue
            for label, group_id in (
                ("holiday", policy.holiday_rule_group),
                ("compensation", policy.compensation_rule_group),
            ):
                if group_id not in group_ids:
                    problems.append(
                        f"entity {policy.entity_id!r} references unknown {label} rule group "
                        f"{group_id!r}"
                    )

        if problems:
            raise ConfigError("Invalid schedule configuration: " + "; ".join(problems))

        return cls(
            rule_groups=MappingProxyType({group.id: group for group in groups}),
            weekday_schedules=MappingProxyType({schedule.id: schedule for schedule in schedules}),
            policies=MappingProxyType({policy.entity_id: policy for policy in entity_policies}),
        )

    def rule_group(self, group_id: str) -> RuleGroup:
        group = self.rule_groups.get(group_id)
        if group is None:
            raise ConfigError(f"Rule group not found: {group_id!r}")
        if not group.rules:
            raise ConfigError(f"Rule group {group_id!r} has no rules")
        return group

    def weekday_schedule(self, schedule_id: str) -> WeekdaySchedule:
        schedule = self.weekday_schedules.get(schedule_id)
        if schedule is None:
            raise ConfigError(f"Weekday schedule not found: {schedule_id!r}")
        return schedule

    def policy(self, entity_id: str) -> EntityPolicy:
        policy = self.policies.get(entity_id)
        if policy is None:
            raise ConfigError(f"Entity not configured: {entity_id!r}")
        return policy

    def entity_policies(self) -> tuple[EntityPolicy, ...]:
        return tuple(self.policies.values())


def _duplicates(kind: str, ids: Iterable[str]) -> list[str]:
    counts = Counter(ids)
    return [f"duplicate {kind} id {item!r}" for item, count in counts.items() if count > 1]


class ScheduleRegistry:
    """Holds the current ``ScheduleIndex``; readers take a snapshot per tick."""

    def __init__(self, index: ScheduleIndex | None = None) -> None:
        self._index = index or ScheduleIndex()
        self._lock = threading.Lock()

    def snapshot(self) -> ScheduleIndex:
        return self._index

    def replace(self, index: ScheduleIndex) -> ScheduleIndex:
        """Swap in ``index`` and return the previous snapshot."""

        with self._lock:
            previous = self._index
            self._index = index
        log.info(
            "Schedule replaced: %d rule groups, %d weekday schedules, %d entities",
            len(index.rule_groups),
            len(index.weekday_schedules),
            len(index.policies),
        )
        return previous

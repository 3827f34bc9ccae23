"""Compute the mute state an entity should be in right now.

The computation is pure: given the current local time, the entity's policy,
the calendar classification of today and a schedule snapshot it always yields
the same ``ExpectedState``. Nothing here touches persistence or the network.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ConfigError
from .model import ExpectedState, RuleGroupSelection, Weekday

if TYPE_CHECKING:
    from datetime import datetime

    from .model import CalendarClassification, EntityPolicy, Rule, RuleGroup
    from .schedule_index import ScheduleIndex


def minutes_since_midnight(now: datetime) -> int:
    return now.hour * 60 + now.minute


def select_rule_group(
    now: datetime,
    policy: EntityPolicy,
    classification: CalendarClassification,
    index: ScheduleIndex,
) -> tuple[RuleGroup, RuleGroupSelection]:
    """Pick the rule group that governs ``now`` for ``policy``.

    Compensation workdays win over holidays (a compensation workday cannot be a
    rest day at the same time); both only apply when the policy enables
    calendar overrides. Otherwise the weekday schedule decides.
    """

    if policy.holiday_override_enabled:
        if classification.is_compensation_workday:
            return index.rule_group(policy.compensation_rule_group), RuleGroupSelection.COMPENSATION
        if classification.is_holiday:
            return index.rule_group(policy.holiday_rule_group), RuleGroupSelection.HOLIDAY

    schedule = index.weekday_schedule(policy.weekday_schedule_id)
    day = Weekday.of(now.date())
    group_id = schedule.rule_group_for(day)
    if group_id is None:
        raise ConfigError(f"Weekday schedule {schedule.id!r} has no rule group for {day}")
    return index.rule_group(group_id), RuleGroupSelection.WEEKDAY


def match_rule(rule_group: RuleGroup, minute_of_day: int) -> tuple[Rule, bool]:
    """Return the rule in force at ``minute_of_day`` and whether it was carried over.

    The latest rule at or before ``minute_of_day`` applies. Before the day's
    first rule the previous day's final transition still holds, so the last
    rule is returned with the carry-over flag set.
    """

    rules = rule_group.sorted_rules()
    if not rules:
        raise ConfigError(f"Rule group {rule_group.id!r} has no rules")
    for rule in reversed(rules):
        if rule.time_of_day <= minute_of_day:
            return rule, False
    return rules[-1], True


def compute_expected_state(
    now: datetime,
    policy: EntityPolicy,
    classification: CalendarClassification,
    index: ScheduleIndex,
) -> ExpectedState:
    """Resolve the state ``policy.entity_id`` should be in at local time ``now``."""

    rule_group, selection = select_rule_group(now, policy, classification, index)
    rule, looked_back = match_rule(rule_group, minutes_since_midnight(now))
    return ExpectedState(
        muted=rule.muted,
        trigger_time=rule.time_of_day,
        source_rule_group_id=rule_group.id,
        looked_back_a_day=looked_back,
        selection=selection,
    )

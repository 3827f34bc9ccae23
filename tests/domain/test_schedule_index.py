from __future__ import annotations

import pytest

from mutewarden.domain.errors import ConfigError
from mutewarden.domain.model import Weekday, WeekdaySchedule
from mutewarden.domain.schedule_index import ScheduleIndex, ScheduleRegistry
from tests.helpers.schedule import (
    make_index,
    make_policy,
    make_rule_group,
    make_weekday_schedule,
)


def test_build_indexes_by_id() -> None:
    index = make_index(make_policy("1"), make_policy("2"))

    assert set(index.policies) == {"1", "2"}
    assert index.rule_group("holiday").id == "holiday"
    assert index.weekday_schedule("standard").id == "standard"
    assert [policy.entity_id for policy in index.entity_policies()] == ["1", "2"]


def test_build_reports_every_problem() -> None:
    incomplete = WeekdaySchedule(id="partial", day_to_rule_group={Weekday.MONDAY: "nope"})

    with pytest.raises(ConfigError) as excinfo:
        ScheduleIndex.build(
            rule_groups=(
                make_rule_group("workday"),
                make_rule_group("workday"),
                make_rule_group("empty", ()),
            ),
            weekday_schedules=(incomplete,),
            policies=(make_policy("1", schedule_id="missing"),),
        )

    message = str(excinfo.value)
    assert "duplicate rule group id 'workday'" in message
    assert "'empty' has no rules" in message
    assert "'partial' is missing" in message
    assert "unknown rule group 'nope'" in message
    assert "unknown weekday schedule 'missing'" in message
    assert "unknown holiday rule group" in message


def test_override_groups_only_required_when_enabled() -> None:
    policy = make_policy(
        holiday_override_enabled=False,
        holiday_rule_group="absent",
        compensation_rule_group="absent",
    )

    index = ScheduleIndex.build(
        rule_groups=(make_rule_group("workday"),),
        weekday_schedules=(make_weekday_schedule(),),
        policies=(policy,),
    )

    assert index.policy(policy.entity_id) == policy


def test_unknown_entity_raises_config_error() -> None:
    with pytest.raises(ConfigError, match="not configured"):
        make_index().policy("999")


def test_registry_swaps_snapshots_wholesale() -> None:
    first = make_index(make_policy("1"))
    second = make_index(make_policy("2"))
    registry = ScheduleRegistry(first)

    held = registry.snapshot()
    previous = registry.replace(second)

    assert previous is first
    assert held is first
    assert registry.snapshot() is second
    assert set(held.policies) == {"1"}


def test_empty_registry_has_no_entities() -> None:
    assert ScheduleRegistry().snapshot().entity_policies() == ()

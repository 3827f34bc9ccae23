from __future__ import annotations

import threading
from datetime import date
from typing import TYPE_CHECKING

from mutewarden.app import (
    build_runtime,
    check_entity,
    classify_date,
    explain_entity,
    query_state,
    reload_schedule,
    run_heartbeat,
    set_state,
    trigger_heartbeat,
)
from mutewarden.config import load_app_config
from mutewarden.domain.calendar import DayKindCalendar
from mutewarden.domain.heartbeat import HeartbeatReport
from mutewarden.domain.model import DayKind, HolidayMethod, MuteState, RuleGroupSelection
from mutewarden.domain.reconciliation import MANUAL_RULE_GROUP_ID, Outcome
from tests.helpers.config import EXTRA_ENTITY_TOML, make_app_config, write_config
from tests.helpers.fakes import FakeBackend, FakeDataset, FakeDayFetcher
from tests.helpers.schedule import local

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from pathlib import Path

    from mutewarden.app import Runtime
    from mutewarden.config import AppConfig
    from tests.helpers.fakes import FakeMuteStateRepository, FakeMuteStateUnitOfWork

NATIONAL_DAY = date(2024, 10, 1)


def _runtime(
    config: AppConfig,
    uow: Callable[[], FakeMuteStateUnitOfWork],
    *,
    backends: list[FakeBackend] | None = None,
    day_fetcher: FakeDayFetcher | None = None,
) -> Runtime:
    return build_runtime(
        config,
        unit_of_work_factory=uow,
        backends=backends if backends is not None else [FakeBackend("primary")],
        dataset=FakeDataset({NATIONAL_DAY: (True, "National Day")}),
        online=DayKindCalendar(day_fetcher or FakeDayFetcher()),
    )


def test_trigger_heartbeat_applies_and_persists_expected_state(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    backend = FakeBackend("primary")
    runtime = _runtime(make_app_config(), fake_unit_of_work, backends=[backend])

    report = trigger_heartbeat(runtime, local(2024, 3, 5, 8, 0))

    assert report.count(Outcome.TRANSITIONED) == 1
    assert backend.mutes == [("10001", True)]
    assert backend.messages == [("10001", "Quiet hours")]
    assert fake_repository.states["10001"].last_applied_rule_group_id == "workday"

    again = trigger_heartbeat(runtime, local(2024, 3, 5, 8, 1))

    assert again.count(Outcome.UNCHANGED) == 1
    assert backend.mutes == [("10001", True)]


def test_heartbeat_uses_holiday_group_from_offline_dataset(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    runtime = _runtime(make_app_config(), fake_unit_of_work)

    check = check_entity(runtime, "10001", local(2024, 10, 1, 12, 0))

    assert check.outcome is Outcome.TRANSITIONED
    assert check.classification is not None
    assert check.classification.is_holiday
    assert fake_repository.states["10001"].muted is False
    assert fake_repository.states["10001"].last_applied_rule_group_id == "holiday"


def test_check_entity_reports_unknown_entity(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    runtime = _runtime(make_app_config(), fake_unit_of_work)

    check = check_entity(runtime, "99999", local(2024, 3, 5, 8, 0))

    assert check.outcome is Outcome.FAILED
    assert check.error is not None
    assert "99999" in check.error


def test_reload_keeps_previous_schedule_when_file_is_invalid(
    tmp_path: Path,
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    path = write_config(tmp_path / "mutewarden.toml")
    runtime = _runtime(load_app_config(path), fake_unit_of_work)
    before = runtime.registry.snapshot()

    path.write_text("[[entities]]\nid = 1\nweekday_schedule = 'missing'\n", encoding="utf-8")

    assert reload_schedule(runtime) is False
    assert runtime.registry.snapshot() is before

    write_config(path, extra=EXTRA_ENTITY_TOML)

    assert reload_schedule(runtime) is True
    assert set(runtime.registry.snapshot().policies) == {"10001", "10002"}


def test_set_state_records_manual_transition(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    backend = FakeBackend("primary")
    runtime = _runtime(make_app_config(), fake_unit_of_work, backends=[backend])

    result = set_state(runtime, "10001", muted=True)

    assert result.outcome is Outcome.TRANSITIONED
    assert result.backend == "primary"
    assert backend.mutes == [("10001", True)]
    [state] = query_state(runtime, "10001")
    assert state.muted is True
    assert state.last_applied_rule_group_id == MANUAL_RULE_GROUP_ID
    assert query_state(runtime, "20000") == []


def test_set_state_fails_when_every_backend_fails(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    runtime = _runtime(
        make_app_config(),
        fake_unit_of_work,
        backends=[FakeBackend("a", fail=True), FakeBackend("b", fail=True)],
    )

    result = set_state(runtime, "10001", muted=False)

    assert result.outcome is Outcome.FAILED
    assert fake_repository.states == {}


def test_classify_date_uses_configured_method(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    runtime = _runtime(make_app_config(), fake_unit_of_work)

    [lookup] = classify_date(runtime, NATIONAL_DAY)

    assert runtime.calendar.method is HolidayMethod.OFFLINE
    assert lookup.source == "offline"
    assert lookup.classification is not None
    assert lookup.classification.label == "National Day"


def test_classify_date_both_reports_each_source(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    fetcher = FakeDayFetcher({date(2024, 10, 12): (DayKind.COMPENSATION_WORKDAY, "Makeup day")})
    runtime = _runtime(make_app_config(), fake_unit_of_work, day_fetcher=fetcher)

    offline, online = classify_date(runtime, date(2024, 10, 12), "both")

    assert offline.source == "offline"
    assert offline.classification is not None
    assert offline.classification.is_normal
    assert online.source == "online"
    assert online.classification is not None
    assert online.classification.is_compensation_workday


def test_classify_date_reports_online_failure(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    runtime = _runtime(
        make_app_config(), fake_unit_of_work, day_fetcher=FakeDayFetcher(fail=True)
    )

    [lookup] = classify_date(runtime, NATIONAL_DAY, "online")

    assert lookup.classification is None
    assert lookup.error == "holiday API unreachable"


def test_explain_entity_reports_holiday_carry_over_without_acting(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    backend = FakeBackend("primary")
    runtime = _runtime(make_app_config(), fake_unit_of_work, backends=[backend])

    preview = explain_entity(runtime, "10001", local(2024, 10, 1, 9, 0))

    assert preview.error is None
    assert preview.expected is not None
    assert preview.expected.source_rule_group_id == "holiday"
    assert preview.expected.selection is RuleGroupSelection.HOLIDAY
    assert preview.expected.muted is True
    assert preview.expected.looked_back_a_day
    assert preview.current is None
    assert preview.would_act
    assert backend.mutes == []
    assert fake_repository.states == {}


def test_explain_entity_sees_aligned_state(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    fake_repository.states["10001"] = MuteState(
        entity_id="10001",
        muted=True,
        updated_at_ms=1,
        last_applied_rule_group_id="workday",
    )
    runtime = _runtime(make_app_config(), fake_unit_of_work)

    preview = explain_entity(runtime, "10001", local(2024, 3, 5, 8, 0))

    assert preview.current is not None
    assert not preview.would_act


def test_explain_entity_reports_unknown_entity(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    runtime = _runtime(make_app_config(), fake_unit_of_work)

    preview = explain_entity(runtime, "99999", local(2024, 3, 5, 8, 0))

    assert preview.expected is None
    assert preview.error is not None
    assert not preview.would_act


def test_run_heartbeat_applies_requested_reload_before_ticking(
    tmp_path: Path,
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    path = write_config(tmp_path / "mutewarden.toml")
    runtime = _runtime(load_app_config(path), fake_unit_of_work)
    write_config(path, extra=EXTRA_ENTITY_TOML)
    stop = threading.Event()
    reload_requested = threading.Event()
    reload_requested.set()
    seen: list[set[str]] = []

    def tick(now: datetime | None = None) -> HeartbeatReport:
        seen.append(set(runtime.registry.snapshot().policies))
        stop.set()
        return HeartbeatReport(started_at=local(2024, 3, 5, 8, 0), checks=())

    runtime.driver.tick = tick  # type: ignore[method-assign]
    run_heartbeat(runtime, stop, reload_requested)

    assert seen == [{"10001", "10002"}]
    assert not reload_requested.is_set()

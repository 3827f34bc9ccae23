from __future__ import annotations

from typing import TYPE_CHECKING

from mutewarden.domain.actions import FailoverActions
from mutewarden.domain.model import DEFAULT_NOTIFY_MESSAGE, ExpectedState, MuteState
from mutewarden.domain.reconciliation import MANUAL_RULE_GROUP_ID, Outcome, Reconciler
from tests.helpers.fakes import FakeBackend, FakeMuteStateRepository
from tests.helpers.schedule import make_rule_group

if TYPE_CHECKING:
    from collections.abc import Callable

    from tests.helpers.fakes import FakeMuteStateUnitOfWork

MUTED = ExpectedState(
    muted=True, trigger_time=420, source_rule_group_id="workday", looked_back_a_day=False
)
UNMUTED = ExpectedState(
    muted=False, trigger_time=1080, source_rule_group_id="workday", looked_back_a_day=False
)


def _reconciler(
    uow: Callable[[], FakeMuteStateUnitOfWork], *backends: FakeBackend
) -> Reconciler:
    return Reconciler(
        unit_of_work_factory=uow,
        actions=FailoverActions(backends),
        clock_ms=lambda: 1_700_000_000_000,
    )


def test_first_alignment_acts_and_persists(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    backend = FakeBackend()
    result = _reconciler(fake_unit_of_work, backend).align("10001", MUTED)

    assert result.outcome is Outcome.TRANSITIONED
    assert result.persisted
    assert result.backend == "fake"
    assert backend.mutes == [("10001", True)]
    stored = fake_repository.states["10001"]
    assert stored.as_tuple() == ("10001", True, 1_700_000_000_000, "workday")


def test_alignment_is_idempotent(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    backend = FakeBackend()
    reconciler = _reconciler(fake_unit_of_work, backend)

    first = reconciler.align("10001", MUTED)
    second = reconciler.align("10001", MUTED)

    assert first.outcome is Outcome.TRANSITIONED
    assert second.outcome is Outcome.UNCHANGED
    assert len(backend.mutes) == 1
    assert len(fake_repository.puts) == 1


def test_mismatch_triggers_transition(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    fake_repository.states["10001"] = MuteState(
        entity_id="10001", muted=True, updated_at_ms=1, last_applied_rule_group_id="workday"
    )
    backend = FakeBackend()

    result = _reconciler(fake_unit_of_work, backend).align("10001", UNMUTED)

    assert result.outcome is Outcome.TRANSITIONED
    assert backend.mutes == [("10001", False)]
    assert fake_repository.states["10001"].muted is False


def test_all_backends_failing_leaves_state_untouched(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    reconciler = _reconciler(
        fake_unit_of_work, FakeBackend("a", fail=True), FakeBackend("b", fail=True)
    )

    result = reconciler.align("10001", MUTED)

    assert result.outcome is Outcome.FAILED
    assert result.error is not None
    assert fake_repository.states == {}


def test_all_backends_failing_keeps_existing_row(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    fake_repository.states["10001"] = MuteState(
        entity_id="10001",
        muted=False,
        updated_at_ms=1_600_000_000_000,
        last_applied_rule_group_id="weekend",
    )
    before = fake_repository.states["10001"].as_tuple()
    reconciler = _reconciler(
        fake_unit_of_work, FakeBackend("a", fail=True), FakeBackend("b", fail=True)
    )

    result = reconciler.align("10001", MUTED)

    assert result.outcome is Outcome.FAILED
    assert fake_repository.states["10001"].as_tuple() == before
    assert fake_repository.puts == []


def test_read_failure_is_reported_without_acting(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    fake_repository.fail_reads = True
    backend = FakeBackend()

    result = _reconciler(fake_unit_of_work, backend).align("10001", MUTED)

    assert result.outcome is Outcome.FAILED
    assert backend.mutes == []


def test_write_failure_after_action_is_accepted_drift(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    fake_repository.fail_writes = True
    backend = FakeBackend()
    reconciler = _reconciler(fake_unit_of_work, backend)

    result = reconciler.align("10001", MUTED)

    assert result.outcome is Outcome.TRANSITIONED
    assert not result.persisted

    # The next tick sees no row and re-applies the same state.
    fake_repository.fail_writes = False
    assert reconciler.align("10001", MUTED).outcome is Outcome.TRANSITIONED
    assert backend.mutes == [("10001", True), ("10001", True)]


def test_notification_sent_only_on_transition(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    backend = FakeBackend()
    group = make_rule_group(notify=True, notify_message="Quiet hours started")
    reconciler = _reconciler(fake_unit_of_work, backend)

    first = reconciler.align("10001", MUTED, rule_group=group)
    second = reconciler.align("10001", MUTED, rule_group=group)

    assert first.notified
    assert not second.notified
    assert backend.messages == [("10001", "Quiet hours started")]


def test_notification_without_message_uses_default_text(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
) -> None:
    backend = FakeBackend()
    group = make_rule_group(notify=True)

    result = _reconciler(fake_unit_of_work, backend).align("10001", MUTED, rule_group=group)

    assert result.notified
    assert backend.messages == [("10001", DEFAULT_NOTIFY_MESSAGE)]


def test_notification_failure_does_not_undo_transition(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    class MuteOnlyBackend(FakeBackend):
        def send_message(self, entity_id: str, text: str) -> None:
            raise ConnectionError("message endpoint down")

    backend = MuteOnlyBackend()
    group = make_rule_group(notify=True, notify_message="hi")

    result = _reconciler(fake_unit_of_work, backend).align("10001", MUTED, rule_group=group)

    assert result.outcome is Outcome.TRANSITIONED
    assert result.persisted
    assert not result.notified
    assert fake_repository.states["10001"].muted is True


def test_force_records_manual_rule_group(
    fake_unit_of_work: Callable[[], FakeMuteStateUnitOfWork],
    fake_repository: FakeMuteStateRepository,
) -> None:
    backend = FakeBackend()
    reconciler = _reconciler(fake_unit_of_work, backend)

    reconciler.align("10001", MUTED)
    result = reconciler.force("10001", True)

    assert result.outcome is Outcome.TRANSITIONED
    assert backend.mutes == [("10001", True), ("10001", True)]
    assert fake_repository.states["10001"].last_applied_rule_group_id == MANUAL_RULE_GROUP_ID
    assert [state.entity_id for state in reconciler.all_states()] == ["10001"]

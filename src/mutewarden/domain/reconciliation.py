"""Align persisted mute state with the expected state, acting only on mismatch."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import ActionError, PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable

    from .model import ExpectedState, MuteState, RuleGroup
    from .ports.actions import MuteActions
    from .ports.persistence import MuteStateUnitOfWork

log = getLogger(__name__)

MANUAL_RULE_GROUP_ID: Final[str] = "manual"


class Outcome(StrEnum):
    UNCHANGED = "unchanged"
    TRANSITIONED = "transitioned"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """What ``Reconciler.align`` did for one entity."""

    entity_id: str
    outcome: Outcome
    backend: str | None = None
    persisted: bool = False
    notified: bool = False
    error: str | None = None


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class Reconciler:
    """Compare persisted state to expected state and correct the real world on mismatch.

    The persisted row is written only after the external action succeeded, so
    a failed action leaves the store untouched and the next heartbeat retries
    the same transition.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], MuteStateUnitOfWork],
        actions: MuteActions,
        clock_ms: Callable[[], int] = epoch_millis,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._actions = actions
        self._clock_ms = clock_ms

    def align(
        self,
        entity_id: str,
        expected: ExpectedState,
        *,
        rule_group: RuleGroup | None = None,
    ) -> ReconcileResult:
        try:
            persisted = self.current_state(entity_id)
        except PersistenceError as exc:
            log.error("[%s] could not read persisted state: %s", entity_id, exc)
            return ReconcileResult(entity_id, Outcome.FAILED, error=str(exc))

        if persisted is not None and persisted.muted == expected.muted:
            log.debug("[%s] already aligned (muted=%s)", entity_id, expected.muted)
            return ReconcileResult(entity_id, Outcome.UNCHANGED, persisted=True)

        try:
            backend = self._actions.set_muted(entity_id, expected.muted)
        except ActionError as exc:
            log.warning("[%s] transition to muted=%s failed: %s", entity_id, expected.muted, exc)
            return ReconcileResult(entity_id, Outcome.FAILED, error=str(exc))

        persisted_ok = self._record(entity_id, expected.muted, expected.source_rule_group_id)
        log.info(
            "[%s] %s (rule group %s)",
            entity_id,
            "muted" if expected.muted else "unmuted",
            expected.source_rule_group_id,
        )

        notified = False
        if rule_group is not None and rule_group.notify:
            notified = self._notify(entity_id, rule_group.notification_text)

        return ReconcileResult(
            entity_id,
            Outcome.TRANSITIONED,
            backend=backend,
            persisted=persisted_ok,
            notified=notified,
        )

    def force(
        self,
        entity_id: str,
        muted: bool,
        *,
        applied_rule_group_id: str = MANUAL_RULE_GROUP_ID,
    ) -> ReconcileResult:
        """Apply ``muted`` unconditionally and record it (manual override)."""

        try:
            backend = self._actions.set_muted(entity_id, muted)
        except ActionError as exc:
            log.warning("[%s] manual transition to muted=%s failed: %s", entity_id, muted, exc)
            return ReconcileResult(entity_id, Outcome.FAILED, error=str(exc))
        persisted_ok = self._record(entity_id, muted, applied_rule_group_id)
        return ReconcileResult(
            entity_id, Outcome.TRANSITIONED, backend=backend, persisted=persisted_ok
        )

    def current_state(self, entity_id: str) -> MuteState | None:
        with self._unit_of_work_factory() as uow:
            return uow.mute_states.get(entity_id)

    def all_states(self) -> list[MuteState]:
        with self._unit_of_work_factory() as uow:
            return uow.mute_states.list_all()

    def _record(self, entity_id: str, muted: bool, rule_group_id: str) -> bool:
        try:
            with self._unit_of_work_factory() as uow:
                uow.mute_states.put(
                    entity_id,
                    muted=muted,
                    timestamp_ms=self._clock_ms(),
                    applied_rule_group_id=rule_group_id,
                )
                uow.commit()
        except PersistenceError as exc:
            log.error(
                "[%s] state applied but not persisted, will re-check next tick: %s",
                entity_id,
                exc,
            )
            return False
        return True

    def _notify(self, entity_id: str, message: str) -> bool:
        try:
            self._actions.send_message(entity_id, message)
        except ActionError as exc:
            log.warning("[%s] notification failed: %s", entity_id, exc)
            return False
        return True

"""Fixed-interval driver running the reconciliation pipeline for every entity."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from .errors import ConfigError, PersistenceError
from .expected_state import compute_expected_state
from .reconciliation import Outcome

if TYPE_CHECKING:
    import threading
    from collections.abc import Callable
    from datetime import tzinfo

    from .calendar import CalendarResolver
    from .model import CalendarClassification, EntityPolicy, ExpectedState, MuteState
    from .reconciliation import ReconcileResult, Reconciler
    from .schedule_index import ScheduleIndex, ScheduleRegistry

log = getLogger(__name__)

DEFAULT_INTERVAL_SECONDS: Final[float] = 60.0


@dataclass(frozen=True, slots=True)
class EntityCheck:
    """Result of running the pipeline for one entity at one instant."""

    entity_id: str
    outcome: Outcome
    checked_at: datetime
    classification: CalendarClassification | None = None
    expected: ExpectedState | None = None
    result: ReconcileResult | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class EntityPreview:
    """What the pipeline would decide for one entity, without acting on it."""

    entity_id: str
    checked_at: datetime
    classification: CalendarClassification | None = None
    expected: ExpectedState | None = None
    current: MuteState | None = None
    error: str | None = None

    @property
    def would_act(self) -> bool:
        if self.expected is None:
            return False
        return self.current is None or self.current.muted != self.expected.muted


@dataclass(frozen=True, slots=True)
class HeartbeatReport:
    started_at: datetime
    checks: tuple[EntityCheck, ...]

    def count(self, outcome: Outcome) -> int:
        return sum(1 for check in self.checks if check.outcome is outcome)

    def summary(self) -> str:
        return ", ".join(f"{outcome}={self.count(outcome)}" for outcome in Outcome)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class HeartbeatDriver:
    """Run calendar lookup, expected-state resolution and reconciliation per entity.

    Entities are processed one at a time against a single schedule snapshot
    taken at the start of the tick. Every entity runs inside its own error
    boundary so one failure never aborts the pass.
    """

    def __init__(
        self,
        *,
        registry: ScheduleRegistry,
        calendar: CalendarResolver,
        reconciler: Reconciler,
        timezone: tzinfo = UTC,
        clock: Callable[[], datetime] = _utcnow,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Heartbeat interval must be positive")
        self._registry = registry
        self._calendar = calendar
        self._reconciler = reconciler
        self._timezone = timezone
        self._clock = clock
        self.interval_seconds = interval_seconds

    def tick(self, now: datetime | None = None) -> HeartbeatReport:
        """Reconcile every configured entity once."""

        instant = self._local(now)
        snapshot = self._registry.snapshot()
        policies = snapshot.entity_policies()
        log.debug("Heartbeat at %s for %d entities", instant.isoformat(), len(policies))

        checks = tuple(self._check(snapshot, policy, instant) for policy in policies)
        report = HeartbeatReport(started_at=instant, checks=checks)
        log.debug("Heartbeat finished: %s", report.summary())
        return report

    def check_entity(self, entity_id: str, now: datetime | None = None) -> EntityCheck:
        """Run the heartbeat path for a single entity immediately."""

        instant = self._local(now)
        snapshot = self._registry.snapshot()
        try:
            policy = snapshot.policy(entity_id)
        except ConfigError as exc:
            log.warning("[%s] manual check skipped: %s", entity_id, exc)
            return EntityCheck(entity_id, Outcome.FAILED, instant, error=str(exc))
        return self._check(snapshot, policy, instant)

    def preview(self, entity_id: str, now: datetime | None = None) -> EntityPreview:
        """Resolve the expected state of ``entity_id`` and read its persisted state.

        Nothing is sent to the action backends and nothing is written.
        """

        instant = self._local(now)
        snapshot = self._registry.snapshot()
        classification: CalendarClassification | None = None
        try:
            policy = snapshot.policy(entity_id)
            classification = self._calendar.classify_or_normal(instant.date())
            expected = compute_expected_state(instant, policy, classification, snapshot)
        except ConfigError as exc:
            return EntityPreview(
                entity_id, instant, classification=classification, error=str(exc)
            )
        try:
            current = self._reconciler.current_state(entity_id)
        except PersistenceError as exc:
            log.warning("[%s] persisted state unavailable: %s", entity_id, exc)
            return EntityPreview(
                entity_id,
                instant,
                classification=classification,
                expected=expected,
                error=f"persisted state unavailable: {exc}",
            )
        return EntityPreview(
            entity_id,
            instant,
            classification=classification,
            expected=expected,
            current=current,
        )

    def run_forever(
        self,
        stop: threading.Event,
        *,
        before_tick: Callable[[], None] | None = None,
    ) -> None:
        """Tick every ``interval_seconds`` until ``stop`` is set.

        A tick that overruns the interval delays the next one; ticks never overlap.
        ``before_tick`` runs on the loop thread ahead of every tick (pending
        reloads are applied there).
        """

        log.info("Heartbeat started (every %.0fs)", self.interval_seconds)
        while not stop.is_set():
            next_fire = time.monotonic() + self.interval_seconds
            if before_tick is not None:
                try:
                    before_tick()
                except Exception:
                    log.exception("Pre-tick hook failed")
            try:
                report = self.tick()
            except Exception:
                log.exception("Heartbeat tick failed")
            else:
                if report.count(Outcome.FAILED) or report.count(Outcome.TRANSITIONED):
                    log.info("Heartbeat: %s", report.summary())
            stop.wait(max(0.0, next_fire - time.monotonic()))
        log.info("Heartbeat stopped")

    def _check(
        self,
        snapshot: ScheduleIndex,
        policy: EntityPolicy,
        now: datetime,
    ) -> EntityCheck:
        entity_id = policy.entity_id
        classification: CalendarClassification | None = None
        expected: ExpectedState | None = None
        try:
            classification = self._calendar.classify_or_normal(now.date())
            expected = compute_expected_state(now, policy, classification, snapshot)
            rule_group = snapshot.rule_group(expected.source_rule_group_id)
            result = self._reconciler.align(entity_id, expected, rule_group=rule_group)
        except ConfigError as exc:
            log.warning("[%s] skipped: %s", entity_id, exc)
            return EntityCheck(
                entity_id, Outcome.FAILED, now, classification=classification, error=str(exc)
            )
        except Exception as exc:
            log.exception("[%s] unexpected error while reconciling", entity_id)
            return EntityCheck(
                entity_id,
                Outcome.FAILED,
                now,
                classification=classification,
                expected=expected,
                error=str(exc),
            )
        return EntityCheck(
            entity_id,
            result.outcome,
            now,
            classification=classification,
            expected=expected,
            result=result,
            error=result.error,
        )

    def _local(self, now: datetime | None) -> datetime:
        instant = now or self._clock()
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self._timezone)
        return instant.astimezone(self._timezone)

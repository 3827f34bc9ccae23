"""In-memory fakes for the persistence, action and calendar ports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mutewarden.domain.errors import CalendarError, PersistenceError
from mutewarden.domain.model import DayKind, MuteState

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Iterable, Mapping
    from types import TracebackType

    from mutewarden.domain.model import HolidayTableEntry
    from mutewarden.domain.ports.actions import MuteBackend
    from mutewarden.domain.ports.calendar import (
        DayKindFetcher,
        HolidayTableFetcher,
        OfflineHolidayDataset,
    )
    from mutewarden.domain.ports.persistence import MuteStateRepository, MuteStateUnitOfWork


class FakeMuteStateRepository:
    def __init__(self, states: Iterable[MuteState] = ()) -> None:
        self.states: dict[str, MuteState] = {state.entity_id: state for state in states}
        self.puts: list[tuple[str, bool, str]] = []
        self.fail_reads = False
        self.fail_writes = False

    def get(self, entity_id: str) -> MuteState | None:
        if self.fail_reads:
            raise PersistenceError("read failed")
        return self.states.get(entity_id)

    def put(
        self,
        entity_id: str,
        *,
        muted: bool,
        timestamp_ms: int,
        applied_rule_group_id: str,
    ) -> MuteState:
        if self.fail_writes:
            raise PersistenceError("write failed")
        state = MuteState(
            entity_id=entity_id,
            muted=muted,
            updated_at_ms=timestamp_ms,
            last_applied_rule_group_id=applied_rule_group_id,
        )
        self.puts.append((entity_id, muted, applied_rule_group_id))
        self.states[entity_id] = state
        return state

    def list_all(self) -> list[MuteState]:
        return [self.states[key] for key in sorted(self.states)]


class FakeMuteStateUnitOfWork:
    """Shares one repository across instances so tests can inspect it afterwards."""

    def __init__(self, repository: FakeMuteStateRepository) -> None:
        self._repository = repository
        self.committed = False
        self.rolled_back = False

    @property
    def mute_states(self) -> FakeMuteStateRepository:
        return self._repository

    def __enter__(self) -> FakeMuteStateUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        if exc_type is not None:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True


class FakeBackend:
    """Action backend recording calls; ``fail`` makes every call raise."""

    def __init__(self, name: str = "fake", *, fail: bool = False) -> None:
        self._name = name
        self.fail = fail
        self.mutes: list[tuple[str, bool]] = []
        self.messages: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    def set_muted(self, entity_id: str, muted: bool) -> None:
        if self.fail:
            raise ConnectionError(f"{self._name} unavailable")
        self.mutes.append((entity_id, muted))

    def send_message(self, entity_id: str, text: str) -> None:
        if self.fail:
            raise ConnectionError(f"{self._name} unavailable")
        self.messages.append((entity_id, text))


class FakeDataset:
    """Offline dataset answering from a mapping; other dates are plain weekdays."""

    def __init__(
        self,
        details: Mapping[dt.date, tuple[bool, str | None]] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self._details = dict(details or {})
        self._error = error
        self.calls: list[dt.date] = []

    def get_holiday_detail(self, day: dt.date) -> tuple[bool, str | None]:
        self.calls.append(day)
        if self._error is not None:
            raise self._error
        return self._details.get(day, (day.weekday() > 4, None))


class FakeTableFetcher:
    """Serves tables from a mapping; each call advances ``clock`` by ``delay``."""

    def __init__(
        self,
        tables: Mapping[int, list[HolidayTableEntry]] | None = None,
        *,
        fail: bool = False,
        clock: ManualClock | None = None,
        delay: float = 0.0,
    ) -> None:
        self.tables = dict(tables or {})
        self.fail = fail
        self.clock = clock
        self.delay = delay
        self.calls: list[int] = []
        self.timeouts: list[float | None] = []

    def __call__(self, year: int, *, timeout: float | None = None) -> list[HolidayTableEntry]:
        self.calls.append(year)
        self.timeouts.append(timeout)
        if self.clock is not None:
            self.clock.advance(self.delay)
        if self.fail:
            raise CalendarError("holiday API unreachable")
        return list(self.tables.get(year, []))


class FakeDayFetcher:
    def __init__(
        self,
        kinds: Mapping[dt.date, tuple[DayKind, str | None]] | None = None,
        *,
        fail: bool = False,
    ) -> None:
        self.kinds = dict(kinds or {})
        self.fail = fail
        self.calls: list[dt.date] = []

    def __call__(self, day: dt.date) -> tuple[DayKind, str | None]:
        self.calls.append(day)
        if self.fail:
            raise CalendarError("holiday API unreachable")
        return self.kinds.get(day, (DayKind.NORMAL, None))


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


if TYPE_CHECKING:
    _repo_check: MuteStateRepository = FakeMuteStateRepository()
    _uow_check: MuteStateUnitOfWork = FakeMuteStateUnitOfWork(FakeMuteStateRepository())
    _backend_check: MuteBackend = FakeBackend()
    _dataset_check: OfflineHolidayDataset = FakeDataset()
    _table_check: HolidayTableFetcher = FakeTableFetcher()
    _day_check: DayKindFetcher = FakeDayFetcher()

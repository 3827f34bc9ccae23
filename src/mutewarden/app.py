"""Application wiring and administrative entry points."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from mutewarden.adapters.holidays import (
    ChineseCalendarDataset,
    HolidayApiClient,
    should_cache_year_payload,
)
from mutewarden.adapters.onebot import OneBotBackend
from mutewarden.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyMuteStateUnitOfWork,
    is_started,
    startup,
)
from mutewarden.config import (
    ConfigurationError,
    get_database_config,
    get_holiday_cache_path,
    load_app_config,
)
from mutewarden.domain.actions import FailoverActions
from mutewarden.domain.calendar import (
    CalendarResolver,
    DayKindCalendar,
    OfflineCalendar,
    OnlineCalendar,
    YearTableCalendar,
)
from mutewarden.domain.errors import CalendarError
from mutewarden.domain.heartbeat import HeartbeatDriver
from mutewarden.domain.model import HolidayMethod
from mutewarden.domain.ports.persistence import MuteStateUnitOfWork
from mutewarden.domain.reconciliation import Reconciler
from mutewarden.domain.schedule_index import ScheduleRegistry

if TYPE_CHECKING:
    import threading
    from datetime import date
    from pathlib import Path

    from mutewarden.config import AppConfig, CalendarConfig, OneBotConfig, StorageConfig
    from mutewarden.domain.heartbeat import EntityCheck, EntityPreview, HeartbeatReport
    from mutewarden.domain.model import CalendarClassification, MuteState
    from mutewarden.domain.ports.actions import MuteBackend
    from mutewarden.domain.ports.calendar import OfflineHolidayDataset
    from mutewarden.domain.reconciliation import ReconcileResult

UnitOfWorkFactory = Callable[[], MuteStateUnitOfWork]
LookupMethod = Literal["offline", "online", "hybrid", "both"]

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class Runtime:
    """The wired object graph of one running process."""

    config: AppConfig
    registry: ScheduleRegistry
    offline: OfflineCalendar
    online: OnlineCalendar
    calendar: CalendarResolver
    actions: FailoverActions
    reconciler: Reconciler
    driver: HeartbeatDriver


@dataclass(frozen=True, slots=True)
class HolidayLookup:
    source: str
    classification: CalendarClassification | None = None
    error: str | None = None


def build_online_calendar(
    config: CalendarConfig,
    *,
    api_client: HolidayApiClient | None = None,
    storage: StorageConfig | None = None,
) -> OnlineCalendar:
    """Online calendar for the configured endpoint flavour.

    Yearly tables are cached on disk in ``storage`` when HTTP caching is on;
    only payloads that validate as a table are stored.
    """

    if api_client is None:
        resilience = config.resilience
        cache = resilience.cache
        if cache is not None:
            if cache.backend == "sqlite" and cache.sqlite_path is None:
                cache = replace(cache, sqlite_path=str(get_holiday_cache_path(storage=storage)))
            if config.endpoint == "table":
                cache = replace(cache, should_cache=should_cache_year_payload)
            resilience = replace(resilience, cache=cache)
        api_client = HolidayApiClient(config=replace(config, resilience=resilience))

    if config.endpoint == "day":
        return DayKindCalendar(api_client.fetch_day)
    return YearTableCalendar(
        api_client.fetch_year,
        ttl_seconds=config.year_cache_ttl_seconds,
        timeout_seconds=config.timeout_seconds,
    )


def build_actions(
    config: OneBotConfig,
    *,
    backends: Sequence[MuteBackend] | None = None,
) -> FailoverActions:
    if backends is None:
        backends = [
            OneBotBackend(backend, timeout_seconds=config.timeout_seconds)
            for backend in config.backends
        ]
    if not backends:
        log.warning("No action backends configured; every transition will fail")
    return FailoverActions(backends)


def build_runtime(
    config: AppConfig,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    backends: Sequence[MuteBackend] | None = None,
    dataset: OfflineHolidayDataset | None = None,
    online: OnlineCalendar | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Runtime:
    """Wire adapters and core components from ``config``.

    Explicit collaborators replace the default adapters (tests, embedding).
    """

    if unit_of_work_factory is None:
        if not is_started():
            database = get_database_config(storage=config.storage, uri=config.database_uri)
            startup(database_uri=database.uri)
        unit_of_work_factory = SqlAlchemyMuteStateUnitOfWork

    registry = ScheduleRegistry(config.schedule)
    offline = OfflineCalendar(dataset if dataset is not None else ChineseCalendarDataset())
    online_calendar = online or build_online_calendar(config.calendar, storage=config.storage)
    calendar = CalendarResolver(
        config.calendar.method,
        offline=offline,
        online=online_calendar,
        day_ttl_seconds=config.calendar.day_cache_ttl_seconds,
    )
    actions = build_actions(config.onebot, backends=backends)
    reconciler = Reconciler(unit_of_work_factory=unit_of_work_factory, actions=actions)

    driver = HeartbeatDriver(
        registry=registry,
        calendar=calendar,
        reconciler=reconciler,
        timezone=config.timezone,
        clock=clock or _utcnow,
        interval_seconds=config.heartbeat_seconds,
    )
    log.info(
        "Runtime ready: %d entities, holiday method %s, backends %s",
        len(config.schedule.policies),
        config.calendar.method,
        ", ".join(actions.backend_names) or "-",
    )
    return Runtime(
        config=config,
        registry=registry,
        offline=offline,
        online=online_calendar,
        calendar=calendar,
        actions=actions,
        reconciler=reconciler,
        driver=driver,
    )


def reload_schedule(runtime: Runtime, path: str | Path | None = None) -> bool:
    """Re-read the configuration file and swap in its schedule.

    An invalid file is logged and the previous schedule stays active.
    """

    source = path if path is not None else runtime.config.source
    try:
        config = load_app_config(source)
    except ConfigurationError as exc:
        log.error("Configuration reload rejected, keeping the current schedule: %s", exc)
        return False
    runtime.registry.replace(config.schedule)
    runtime.calendar.clear_caches()
    return True


def run_heartbeat(
    runtime: Runtime,
    stop: threading.Event,
    reload_requested: threading.Event | None = None,
) -> None:
    """Run the heartbeat loop until ``stop`` is set.

    Setting ``reload_requested`` (from a signal handler, say) reloads the
    configuration on the loop thread before the next tick.
    """

    def apply_pending_reload() -> None:
        if reload_requested is not None and reload_requested.is_set():
            reload_requested.clear()
            reload_schedule(runtime)

    runtime.driver.run_forever(stop, before_tick=apply_pending_reload)


def trigger_heartbeat(runtime: Runtime, now: datetime | None = None) -> HeartbeatReport:
    report = runtime.driver.tick(now)
    log.info("Heartbeat: %s", report.summary())
    return report


def check_entity(runtime: Runtime, entity_id: str, now: datetime | None = None) -> EntityCheck:
    return runtime.driver.check_entity(entity_id, now)


def explain_entity(
    runtime: Runtime, entity_id: str, now: datetime | None = None
) -> EntityPreview:
    """Report what the heartbeat would do for ``entity_id`` right now, without acting."""

    return runtime.driver.preview(entity_id, now)


def query_state(runtime: Runtime, entity_id: str | None = None) -> list[MuteState]:
    if entity_id is None:
        return runtime.reconciler.all_states()
    state = runtime.reconciler.current_state(entity_id)
    return [state] if state is not None else []


def set_state(runtime: Runtime, entity_id: str, *, muted: bool) -> ReconcileResult:
    """Manually mute or unmute ``entity_id`` and record it as a manual transition."""

    return runtime.reconciler.force(entity_id, muted)


def classify_date(
    runtime: Runtime,
    day: date,
    method: LookupMethod | None = None,
) -> list[HolidayLookup]:
    """Classify ``day`` with the configured method, a named one, or offline and online."""

    if method is None:
        return [_lookup(runtime, day, runtime.calendar.method)]
    if method == "both":
        return [
            _lookup(runtime, day, HolidayMethod.OFFLINE),
            _lookup(runtime, day, HolidayMethod.ONLINE),
        ]
    return [_lookup(runtime, day, HolidayMethod(method))]


def _lookup(runtime: Runtime, day: date, method: HolidayMethod) -> HolidayLookup:
    resolver = (
        runtime.calendar
        if method is runtime.calendar.method
        else CalendarResolver(method, offline=runtime.offline, online=runtime.online)
    )
    try:
        return HolidayLookup(source=str(method), classification=resolver.classify(day))
    except CalendarError as exc:
        return HolidayLookup(source=str(method), error=str(exc))

"""SQLAlchemy-backed unit of work for mute state.

The heartbeat loop and one-off CLI commands (``set``, ``state``) may open
the same SQLite file concurrently, so SQLite connections wait on a locked
database instead of failing straight away.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mutewarden.config.storage import get_database_config
from mutewarden.domain.errors import PersistenceError

from .mappings import start_mappers
from .migrations import upgrade_head
from .repositories import SqlAlchemyMuteStateRepository

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine
    from sqlalchemy.pool import ConnectionPoolEntry

    from mutewarden.domain.ports.persistence import MuteStateUnitOfWork

log = getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS: Final[int] = 5_000


class StartupError(RuntimeError):
    """Raised when the mute state store is used before ``startup()`` or twice started."""


class _Database:
    """Process-wide engine plus the session factory bound to it."""

    def __init__(self) -> None:
        self.engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None

    def attach(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def detach(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._sessions = None

    def sessions(self) -> sessionmaker[Session]:
        if self._sessions is None:
            raise StartupError(
                "Mute state store not initialised; call "
                "mutewarden.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        return self._sessions


_DATABASE = _Database()


def _configure_sqlite(dbapi_connection: object, _record: ConnectionPoolEntry) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    try:
        cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
    finally:
        cursor.close()


def create_state_engine(database_uri: str) -> Engine:
    engine = create_engine(database_uri, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _configure_sqlite)
    return engine


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Open the mute state database, migrate it to head and bind sessions to it."""

    if _DATABASE.engine is not None and not force:
        raise StartupError("Mute state store already initialised; pass force=True.")

    resolved = engine or create_state_engine(database_uri or get_database_config().uri)
    start_mappers()
    upgrade_head(engine=resolved)
    _DATABASE.attach(resolved)
    log.debug("Mute state store ready (%s)", resolved.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _DATABASE.engine


def is_started() -> bool:
    return _DATABASE.engine is not None


def shutdown() -> None:
    """Dispose the engine; tests call this between cases."""

    _DATABASE.detach()


class SqlAlchemyMuteStateUnitOfWork:
    """One session per ``with`` block; nothing is written without ``commit``."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _DATABASE.sessions()
        self._session: Session | None = None
        self._mute_states: SqlAlchemyMuteStateRepository | None = None

    def __enter__(self) -> SqlAlchemyMuteStateUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._mute_states = SqlAlchemyMuteStateRepository(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self._session = None
        self._mute_states = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @property
    def mute_states(self) -> SqlAlchemyMuteStateRepository:
        if self._mute_states is None:
            raise StartupError("Unit of work session not initialised")
        return self._mute_states

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(f"Failed to commit mute state: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    _uow_check: MuteStateUnitOfWork = SqlAlchemyMuteStateUnitOfWork()

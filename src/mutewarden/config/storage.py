"""Locations of the mute state database and the holiday response cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import DATA_DIR_ENV, DATABASE_URI_ENV, get_env

APP_DIR_NAME: Final[str] = "mutewarden"
STATE_DB_FILENAME: Final[str] = "mute_state.db"
HOLIDAY_CACHE_FILENAME: Final[str] = "holiday_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Directory holding both SQLite files. It is created on first use."""

    data_dir: Path
    state_db_filename: str = STATE_DB_FILENAME
    holiday_cache_filename: str = HOLIDAY_CACHE_FILENAME

    def directory(self, *, create: bool = True) -> Path:
        path = self.data_dir.expanduser().resolve()
        if create:
            path.mkdir(parents=True, exist_ok=True)
        return path

    def state_db_path(self, *, create: bool = True) -> Path:
        return self.directory(create=create) / self.state_db_filename

    def holiday_cache_path(self, *, create: bool = True) -> Path:
        return self.directory(create=create) / self.holiday_cache_filename

    def state_db_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.state_db_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def default_data_dir() -> Path:
    """``%LOCALAPPDATA%\\mutewarden`` on Windows, ``$XDG_STATE_HOME/mutewarden`` elsewhere."""

    if os.name == "nt":
        root = get_env("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    else:
        root = get_env("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return Path(root) / APP_DIR_NAME


def get_storage_config(data_dir: str | Path | None = None) -> StorageConfig:
    """Storage rooted at ``data_dir``, else ``$MUTEWARDEN_DATA_DIR``, else the default."""

    if data_dir is None:
        data_dir = get_env(DATA_DIR_ENV) or default_data_dir()
    return StorageConfig(data_dir=Path(data_dir))


def get_database_config(
    *,
    storage: StorageConfig | None = None,
    uri: str | None = None,
) -> DatabaseConfig:
    """``$DATABASE_URI`` beats an explicit ``uri``, which beats the file in ``storage``."""

    chosen = get_env(DATABASE_URI_ENV) or uri
    if chosen:
        return DatabaseConfig(uri=chosen)
    return DatabaseConfig(uri=(storage or get_storage_config()).state_db_uri())


def get_holiday_cache_path(*, storage: StorageConfig | None = None) -> Path:
    return (storage or get_storage_config()).holiday_cache_path()

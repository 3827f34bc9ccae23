"""Alembic migrations for the mute state schema.

The scripts ship inside the package, so ``upgrade_head`` works the same from
a source checkout and from an installed wheel. ``[tool.alembic]`` in
pyproject.toml points the ``alembic`` command line at the same directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from mutewarden.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent


def build_config(database_uri: str | None = None) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Bring the mute state schema to the newest revision.

    With ``engine`` the upgrade runs on one of its connections, which keeps
    in-memory SQLite databases intact.
    """

    if engine is None:
        command.upgrade(build_config(database_uri or get_database_config().uri), "head")
        return
    config = build_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")

"""SQLAlchemy adapter package for mute state persistence."""

from __future__ import annotations

from .mappings import mapper_registry, mute_state_table, start_mappers
from .repositories import SqlAlchemyMuteStateRepository
from .unit_of_work import (
    SqlAlchemyMuteStateUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyMuteStateRepository",
    "SqlAlchemyMuteStateUnitOfWork",
    "StartupError",
    "configured_engine",
    "is_started",
    "mapper_registry",
    "mute_state_table",
    "shutdown",
    "start_mappers",
    "startup",
]

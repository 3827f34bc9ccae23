"""SQLAlchemy mapping metadata for persisted mute state."""

from __future__ import annotations

import logging
from functools import cache

from sqlalchemy import BigInteger, Boolean, Column, String, Table, orm

from mutewarden.domain.model import MuteState

log = logging.getLogger(__name__)

mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}

mute_state_table = Table(
    "mute_state",
    mapper_registry.metadata,
    Column("entity_id", String, primary_key=True),
    Column("muted", Boolean, nullable=False),
    Column("updated_at_ms", BigInteger, nullable=False),
    Column("last_applied_rule_group_id", String, nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map ``MuteState`` onto ``mute_state``; idempotent."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(MuteState, mute_state_table)
    return mapper_registry

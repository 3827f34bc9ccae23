"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from mutewarden.domain.errors import PersistenceError
from mutewarden.domain.model import MuteState

from .mappings import mute_state_table

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from mutewarden.domain.ports.persistence import MuteStateRepository


class SqlAlchemyMuteStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_id: str) -> MuteState | None:
        try:
            return self.session.get(MuteState, entity_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read mute state of {entity_id}: {exc}") from exc

    def put(
        self,
        entity_id: str,
        *,
        muted: bool,
        timestamp_ms: int,
        applied_rule_group_id: str,
    ) -> MuteState:
        """Insert or update the row of ``entity_id``; the caller commits."""

        try:
            state = self.session.get(MuteState, entity_id)
            if state is None:
                state = MuteState(
                    entity_id=entity_id,
                    muted=muted,
                    updated_at_ms=timestamp_ms,
                    last_applied_rule_group_id=applied_rule_group_id,
                )
                self.session.add(state)
            else:
                state.muted = muted
                state.updated_at_ms = timestamp_ms
                state.last_applied_rule_group_id = applied_rule_group_id
            self.session.flush()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write mute state of {entity_id}: {exc}") from exc
        return state

    def list_all(self) -> list[MuteState]:
        stmt = select(MuteState).order_by(mute_state_table.c.entity_id)
        try:
            return list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list mute states: {exc}") from exc


if TYPE_CHECKING:
    _repository_check: MuteStateRepository = SqlAlchemyMuteStateRepository(Session())

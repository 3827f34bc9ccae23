"""Ports for persisting the actual mute state of entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from mutewarden.domain.model import MuteState


@runtime_checkable
class MuteStateRepository(Protocol):
    """Keyed store of ``MuteState`` rows, one per entity."""

    def get(self, entity_id: str) -> MuteState | None: ...

    def put(
        self,
        entity_id: str,
        *,
        muted: bool,
        timestamp_ms: int,
        applied_rule_group_id: str,
    ) -> MuteState: ...

    def list_all(self) -> list[MuteState]: ...


@runtime_checkable
class MuteStateUnitOfWork(Protocol):
    """Transaction boundary around a ``MuteStateRepository``."""

    @property
    def mute_states(self) -> MuteStateRepository: ...

    def __enter__(self) -> MuteStateUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

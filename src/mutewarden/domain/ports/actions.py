"""Ports for changing real-world mute state."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MuteBackend(Protocol):
    """One session able to mute groups and post messages (e.g. a bot account)."""

    @property
    def name(self) -> str: ...

    def set_muted(self, entity_id: str, muted: bool) -> None: ...

    def send_message(self, entity_id: str, text: str) -> None: ...


@runtime_checkable
class MuteActions(Protocol):
    """What the reconciler needs; implemented by ``FailoverActions``."""

    def set_muted(self, entity_id: str, muted: bool) -> str: ...

    def send_message(self, entity_id: str, text: str) -> str: ...

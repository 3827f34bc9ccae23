"""Dispatch mute actions across several backends in a fixed order."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import ActionError

if TYPE_CHECKING:
    from .ports.actions import MuteBackend

log = getLogger(__name__)


class FailoverActions:
    """Try each backend in registration order; the first success wins.

    When every backend fails the last error is surfaced as ``ActionError``.
    """

    def __init__(self, backends: Sequence[MuteBackend]) -> None:
        self._backends = tuple(backends)

    @property
    def backend_names(self) -> tuple[str, ...]:
        return tuple(backend.name for backend in self._backends)

    def set_muted(self, entity_id: str, muted: bool) -> str:
        """Apply ``muted`` to ``entity_id`` and return the name of the backend that did it."""

        verb = "mute" if muted else "unmute"
        return self._dispatch(
            entity_id,
            verb,
            lambda backend: backend.set_muted(entity_id, muted),
        )

    def send_message(self, entity_id: str, text: str) -> str:
        return self._dispatch(
            entity_id,
            "message",
            lambda backend: backend.send_message(entity_id, text),
        )

    def _dispatch(
        self,
        entity_id: str,
        operation: str,
        call: Callable[[MuteBackend], None],
    ) -> str:
        if not self._backends:
            raise ActionError(f"No action backends configured for {operation}", entity_id=entity_id)

        last_error: Exception | None = None
        for backend in self._backends:
            try:
                call(backend)
            except Exception as exc:  # noqa: BLE001
                last_error = exc
                log.debug(
                    "[%s] backend %s failed to %s, trying next: %s",
                    entity_id,
                    backend.name,
                    operation,
                    exc,
                )
                continue
            log.debug("[%s] %s via backend %s", entity_id, operation, backend.name)
            return backend.name

        log.error("[%s] all %d backends failed to %s", entity_id, len(self._backends), operation)
        raise ActionError(
            f"All backends failed to {operation} {entity_id}: {last_error}",
            entity_id=entity_id,
        ) from last_error


if TYPE_CHECKING:
    from .ports.actions import MuteActions

    _actions_check: MuteActions = FailoverActions(())

"""OneBot v11 HTTP backend for group mute actions."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from mutewarden.adapters.http_resilience import ResilientClient
from mutewarden.domain.errors import ActionError

from .schema import OneBotResponse, SendGroupMessageRequest, SetGroupWholeBanRequest

if TYPE_CHECKING:
    from collections.abc import Callable

    from mutewarden.config.http_resilience import ResilienceConfig
    from mutewarden.config.onebot import OneBotBackendConfig
    from mutewarden.domain.ports.actions import MuteBackend

log = getLogger(__name__)

SET_GROUP_WHOLE_BAN = "/set_group_whole_ban"
SEND_GROUP_MSG = "/send_group_msg"


def _group_id(entity_id: str) -> int:
    try:
        return int(entity_id)
    except ValueError:
        raise ActionError(f"Not a numeric group id: {entity_id!r}", entity_id=entity_id) from None


class OneBotBackend:
    """One bot account reachable over the OneBot HTTP API."""

    def __init__(
        self,
        config: OneBotBackendConfig,
        *,
        timeout_seconds: float | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = (
            config.resilience(timeout_seconds=timeout_seconds)
            if timeout_seconds is not None
            else config.resilience()
        )
        self._client_factory = client_factory or ResilientClient

    @property
    def name(self) -> str:
        return self._config.name

    def set_muted(self, entity_id: str, muted: bool) -> None:
        request = SetGroupWholeBanRequest(group_id=_group_id(entity_id), enable=muted)
        asyncio.run(self._call(SET_GROUP_WHOLE_BAN, request, entity_id=entity_id))
        log.info("[%s] %s via %s", entity_id, "muted" if muted else "unmuted", self.name)

    def send_message(self, entity_id: str, text: str) -> None:
        request = SendGroupMessageRequest(group_id=_group_id(entity_id), message=text)
        asyncio.run(self._call(SEND_GROUP_MSG, request, entity_id=entity_id))

    async def _call(self, action: str, body: BaseModel, *, entity_id: str) -> OneBotResponse:
        try:
            async with self._client_factory(self._resilience) as client:
                raw = await client.request_json("POST", action, json=body.model_dump())
            payload = OneBotResponse.model_validate(raw)
        except httpx.HTTPError as exc:
            raise ActionError(
                f"{self.name}: {action} request failed: {exc}", entity_id=entity_id
            ) from exc
        except (ValidationError, ValueError) as exc:
            raise ActionError(
                f"{self.name}: {action} returned an unexpected payload: {exc}",
                entity_id=entity_id,
            ) from exc

        if not payload.succeeded:
            raise ActionError(
                f"{self.name}: {action} rejected ({payload.describe()})", entity_id=entity_id
            )
        return payload


if TYPE_CHECKING:
    _backend_check: MuteBackend = OneBotBackend(
        OneBotBackendConfig(name="check", base_url="http://localhost")
    )

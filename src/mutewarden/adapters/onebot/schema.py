"""Pydantic models describing OneBot v11 HTTP API payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class OneBotModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SetGroupWholeBanRequest(OneBotModel):
    group_id: int
    enable: bool


class SendGroupMessageRequest(OneBotModel):
    group_id: int
    message: str


class OneBotResponse(OneBotModel):
    """Action response envelope.

    ``retcode`` is 0 for ``ok`` and 1 for ``async`` (accepted, not yet done).
    """

    status: Literal["ok", "async", "failed"]
    retcode: int
    data: object | None = None
    message: str | None = None
    wording: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status in {"ok", "async"} and self.retcode in {0, 1}

    def describe(self) -> str:
        detail = self.wording or self.message or ""
        return f"status={self.status} retcode={self.retcode} {detail}".strip()

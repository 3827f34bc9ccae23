"""OneBot v11 action backend."""

from __future__ import annotations

from .client import OneBotBackend
from .schema import OneBotResponse

__all__ = ["OneBotBackend", "OneBotResponse"]

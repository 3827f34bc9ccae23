"""OneBot HTTP API backend configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final

from .http_resilience import ResilienceConfig, RetryPolicy

ONEBOT_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True, slots=True)
class OneBotBackendConfig:
    """One OneBot v11 HTTP endpoint (one bot account)."""

    name: str
    base_url: str
    access_token: str | None = None

    def resilience(self, *, timeout_seconds: float = ONEBOT_TIMEOUT_SECONDS) -> ResilienceConfig:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        # Failover to the next backend replaces transport-level retries.
        return ResilienceConfig(
            name=f"onebot:{self.name}",
            base_url=self.base_url,
            timeout_seconds=timeout_seconds,
            retry=RetryPolicy.disabled(),
            cache=None,
            default_headers=headers,
        )


@dataclass(frozen=True, slots=True)
class OneBotConfig:
    backends: tuple[OneBotBackendConfig, ...] = field(default_factory=tuple)
    timeout_seconds: float = ONEBOT_TIMEOUT_SECONDS

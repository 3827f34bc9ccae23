"""Holiday calendar source configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Literal

from mutewarden.domain.calendar import DAY_RESULT_TTL_SECONDS, YEAR_TABLE_TTL_SECONDS
from mutewarden.domain.model import HolidayMethod

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

HOLIDAY_TABLE_URL: Final[str] = "https://holiday.cyi.me/api/holidays"
HOLIDAY_TIMEOUT_SECONDS: Final[float] = 5.0
USER_AGENT: Final[str] = "mutewarden/1.0"

CalendarEndpoint = Literal["table", "day"]


def _default_resilience() -> ResilienceConfig:
    return calendar_resilience()


def calendar_resilience(
    *,
    http_cache: bool = True,
    timeout_seconds: float = HOLIDAY_TIMEOUT_SECONDS,
) -> ResilienceConfig:
    return ResilienceConfig(
        name="holiday-calendar",
        timeout_seconds=timeout_seconds,
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        cache=CacheConfig(backend="sqlite", default_ttl_seconds=YEAR_TABLE_TTL_SECONDS)
        if http_cache
        else None,
        default_headers={"Accept": "application/json", "User-Agent": USER_AGENT},
    )


@dataclass(frozen=True, slots=True)
class CalendarConfig:
    """Where and how holiday classifications are looked up.

    ``endpoint="table"`` fetches ``{table_url}?year=YYYY``; ``endpoint="day"``
    fetches ``day_url`` formatted with ``date=YYYY-MM-DD``.
    """

    method: HolidayMethod = HolidayMethod.HYBRID
    endpoint: CalendarEndpoint = "table"
    table_url: str = HOLIDAY_TABLE_URL
    day_url: str | None = None
    timeout_seconds: float = HOLIDAY_TIMEOUT_SECONDS
    year_cache_ttl_seconds: float = YEAR_TABLE_TTL_SECONDS
    day_cache_ttl_seconds: float = DAY_RESULT_TTL_SECONDS
    resilience: ResilienceConfig = field(default_factory=_default_resilience)

"""HTTP client for the online holiday calendar."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from mutewarden.adapters.http_resilience import ResilientClient
from mutewarden.config.calendar import CalendarConfig
from mutewarden.domain.errors import CalendarError

from .schema import DayKindResponse, HolidayYearResponse

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Callable

    from mutewarden.config.http_resilience import ResilienceConfig
    from mutewarden.domain.model import DayKind, HolidayTableEntry
    from mutewarden.domain.ports.calendar import DayKindFetcher, HolidayTableFetcher

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def should_cache_year_payload(payload: object) -> bool:
    """Only well-formed yearly tables end up in the HTTP cache."""

    try:
        HolidayYearResponse.model_validate(payload)
    except ValidationError:
        return False
    return True


@dataclass(slots=True)
class HolidayApiClient:
    """Fetches yearly holiday tables or per-day classifications.

    Every request runs under ``asyncio.timeout(config.timeout_seconds)`` so a
    slow server cancels the request instead of stalling the heartbeat.
    ``fetch_year(timeout=...)`` narrows that to what a caller has left.
    """

    config: CalendarConfig = field(default_factory=CalendarConfig)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def fetch_year(self, year: int, *, timeout: float | None = None) -> list[HolidayTableEntry]:
        if year <= 0:
            raise CalendarError(f"Invalid year for holiday table: {year}")
        payload = asyncio.run(
            self._get_json(self.config.table_url, params={"year": year}, timeout=timeout)
        )
        try:
            response = HolidayYearResponse.model_validate(payload)
        except ValidationError as exc:
            raise CalendarError(f"Malformed holiday table for {year}: {exc}") from exc
        entries = response.entries()
        log.debug("Fetched holiday table for %s: %d entries", year, len(entries))
        return entries

    def fetch_day(self, day: dt.date) -> tuple[DayKind, str | None]:
        if not self.config.day_url:
            raise CalendarError("No per-day holiday endpoint configured")
        url = self.config.day_url.format(date=day.isoformat())
        payload = asyncio.run(self._get_json(url))
        try:
            response = DayKindResponse.model_validate(payload)
        except ValidationError as exc:
            raise CalendarError(f"Malformed day classification for {day}: {exc}") from exc
        return response.kind, response.name

    async def _get_json(
        self,
        url: str,
        *,
        params: dict[str, int] | None = None,
        timeout: float | None = None,
    ) -> object:
        budget = self.config.timeout_seconds if timeout is None else timeout
        try:
            async with asyncio.timeout(budget):
                async with self.client_factory(self.config.resilience) as client:
                    return await client.request_json("GET", url, params=params)
        except TimeoutError as exc:
            raise CalendarError(f"Holiday API request timed out after {budget:g}s") from exc
        except httpx.HTTPError as exc:
            raise CalendarError(f"Holiday API request failed: {exc}") from exc
        except ValueError as exc:
            raise CalendarError(f"Holiday API returned invalid JSON: {exc}") from exc


if TYPE_CHECKING:
    _table_check: HolidayTableFetcher = HolidayApiClient().fetch_year
    _day_check: DayKindFetcher = HolidayApiClient().fetch_day

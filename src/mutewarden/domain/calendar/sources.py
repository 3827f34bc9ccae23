"""Calendar sources: the offline dataset and the two online flavours."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING, Final, Protocol

from mutewarden.domain.errors import CalendarError
from mutewarden.domain.model import NORMAL_DAY, CalendarClassification

from .cache import Clock, TtlCache

if TYPE_CHECKING:
    from datetime import date

    from mutewarden.domain.model import HolidayTableEntry
    from mutewarden.domain.ports.calendar import (
        DayKindFetcher,
        HolidayTableFetcher,
        OfflineHolidayDataset,
    )

log = getLogger(__name__)

YEAR_TABLE_TTL_SECONDS: Final[float] = 12 * 60 * 60


class OnlineCalendar(Protocol):
    """Remote classification; raises ``CalendarError`` on failure."""

    def classify(self, day: date) -> CalendarClassification: ...

    def clear(self) -> None: ...


class OfflineCalendar:
    """Classify dates from a local dataset, degrading to a normal day on any problem."""

    def __init__(self, dataset: OfflineHolidayDataset | None) -> None:
        self._dataset = dataset

    def classify(self, day: date) -> CalendarClassification:
        if self._dataset is None:
            return NORMAL_DAY
        try:
            is_rest_day, name = self._dataset.get_holiday_detail(day)
        except Exception as exc:  # noqa: BLE001
            log.warning("Offline holiday lookup failed for %s: %s", day, exc)
            return NORMAL_DAY
        if name is None:
            return NORMAL_DAY
        if is_rest_day:
            return CalendarClassification.holiday(name)
        return CalendarClassification.compensation_workday(name)


def candidate_years(day: date) -> tuple[int, ...]:
    """Years whose published table may contain ``day``.

    Tables around new year list dates of the neighbouring year (a compensation
    workday in late December can be published with the next year's holidays),
    so December also probes the next year and January the previous one.
    """

    years = [day.year]
    if day.month == 12:
        years.append(day.year + 1)
    elif day.month == 1:
        years.append(day.year - 1)
    return tuple(year for year in years if year > 0)


class YearTableCalendar:
    """Online classification backed by yearly holiday tables.

    With ``timeout_seconds`` set, one classification shares a single deadline
    across every table it has to fetch: each fetch gets the remaining budget.
    """

    def __init__(
        self,
        fetch_year: HolidayTableFetcher,
        *,
        ttl_seconds: float = YEAR_TABLE_TTL_SECONDS,
        timeout_seconds: float | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._fetch_year = fetch_year
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._tables: TtlCache[int, dict[date, HolidayTableEntry]] = TtlCache(
            ttl_seconds=ttl_seconds, clock=clock
        )

    def classify(self, day: date) -> CalendarClassification:
        deadline = (
            self._clock() + self._timeout_seconds if self._timeout_seconds is not None else None
        )
        for year in candidate_years(day):
            entry = self.table(year, deadline=deadline).get(day)
            if entry is not None:
                return entry.classification()
        return NORMAL_DAY

    def table(self, year: int, *, deadline: float | None = None) -> dict[date, HolidayTableEntry]:
        cached = self._tables.get(year)
        if cached is not None:
            return cached
        timeout: float | None = None
        if deadline is not None:
            timeout = deadline - self._clock()
            if timeout <= 0:
                raise CalendarError(
                    f"Holiday lookup ran out of its {self._timeout_seconds}s budget "
                    f"before fetching {year}"
                )
        table: dict[date, HolidayTableEntry] = {}
        for entry in self._fetch_year(year, timeout=timeout):
            table.setdefault(entry.day, entry)
        self._tables.set(year, table)
        log.debug("Cached holiday table for %s (%d entries)", year, len(table))
        return table

    def clear(self) -> None:
        self._tables.clear()


class DayKindCalendar:
    """Online classification backed by a per-day endpoint."""

    def __init__(self, fetch_day: DayKindFetcher) -> None:
        self._fetch_day = fetch_day

    def classify(self, day: date) -> CalendarClassification:
        kind, name = self._fetch_day(day)
        return CalendarClassification.from_day_kind(kind, name)

    def clear(self) -> None:
        return None

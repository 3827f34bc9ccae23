"""Calendar resolver: classify dates as normal, holiday or compensation workday."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING, Final

from mutewarden.domain.errors import CalendarError
from mutewarden.domain.model import NORMAL_DAY, CalendarClassification, HolidayMethod

from .cache import Clock, TtlCache

if TYPE_CHECKING:
    from datetime import date

    from .sources import OfflineCalendar, OnlineCalendar

log = getLogger(__name__)

DAY_RESULT_TTL_SECONDS: Final[float] = 24 * 60 * 60


class CalendarResolver:
    """Classify calendar dates using the source selected at startup.

    * ``offline`` never raises.
    * ``online`` raises ``CalendarError`` when the remote source fails.
    * ``hybrid`` asks the remote source first and caches successful answers per
      day; failures fall back to the offline dataset and are not cached.
    """

    def __init__(
        self,
        method: HolidayMethod,
        *,
        offline: OfflineCalendar,
        online: OnlineCalendar | None = None,
        day_ttl_seconds: float = DAY_RESULT_TTL_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        if method is not HolidayMethod.OFFLINE and online is None:
            raise ValueError(f"Holiday method {method} requires an online calendar source")
        self.method = method
        self._offline = offline
        self._online = online
        self._days: TtlCache[date, CalendarClassification] = TtlCache(
            ttl_seconds=day_ttl_seconds, clock=clock
        )

    def classify(self, day: date) -> CalendarClassification:
        if self.method is HolidayMethod.OFFLINE:
            return self._offline.classify(day)
        if self.method is HolidayMethod.ONLINE:
            return self._classify_online(day)
        return self._classify_hybrid(day)

    def classify_or_normal(self, day: date) -> CalendarClassification:
        """Like ``classify`` but fail open to a normal day."""

        try:
            return self.classify(day)
        except CalendarError as exc:
            log.warning("Calendar lookup for %s failed, assuming a normal day: %s", day, exc)
            return NORMAL_DAY

    def clear_caches(self) -> None:
        self._days.clear()
        if self._online is not None:
            self._online.clear()

    def _classify_online(self, day: date) -> CalendarClassification:
        if self._online is None:
            raise CalendarError("No online calendar source configured")
        try:
            return self._online.classify(day)
        except CalendarError:
            raise
        except Exception as exc:
            raise CalendarError(f"Calendar lookup for {day} failed: {exc}") from exc

    def _classify_hybrid(self, day: date) -> CalendarClassification:
        cached = self._days.get(day)
        if cached is not None:
            return cached
        try:
            result = self._classify_online(day)
        except CalendarError as exc:
            log.warning("Online calendar lookup failed for %s, using offline data: %s", day, exc)
            return self._offline.classify(day)
        self._days.set(day, result)
        return result

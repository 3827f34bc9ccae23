"""Small time-bounded cache owned by calendar components."""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field

Clock = Callable[[], float]


@dataclass(slots=True)
class _Entry[V]:
    value: V
    stored_at: float


@dataclass(slots=True)
class TtlCache[K: Hashable, V]:
    """Check-then-set cache whose entries expire ``ttl_seconds`` after storage.

    Not locked: two concurrent misses may both refill the same key, which is
    harmless because refills are idempotent.
    """

    ttl_seconds: float
    clock: Clock = time.monotonic
    _entries: dict[K, _Entry[V]] = field(default_factory=dict)

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self.clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

"""Redding Backend - In-memory caches (report TTL cache, geocode cache)"""

import time
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("redding.cache")

# Fraction of entries dropped when a store is full
EVICT_FRACTION = 0.10


def _evict_count(size: int) -> int:
    return max(1, int(size * EVICT_FRACTION))


class TTLCache:
    """In-memory cache with a fixed TTL since write and max-size eviction.

    Expired entries are dropped lazily on read. When the store grows past
    ``max_size`` every expired entry is swept; if that is not enough, the
    oldest ~10% go as well.
    """

    def __init__(self, ttl: float = 60, max_size: int = 200,
                 clock: Callable[[], float] = time.time):
        self._store: dict[str, tuple[Any, float]] = {}
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock

    @property
    def ttl(self) -> float:
        return self._ttl

    def _expired(self, stored_at: float, now: float) -> bool:
        return now - stored_at > self._ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._expired(stored_at, self._clock()):
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any):
        self._store.pop(key, None)
        self._store[key] = (value, self._clock())
        if len(self._store) > self._max_size:
            self.evict_expired()
        if len(self._store) > self._max_size:
            # dict preserves insertion order and set() re-inserts, so the front is oldest
            for old_key in list(self._store)[:_evict_count(len(self._store))]:
                del self._store[old_key]
            logger.info(f"Report cache over {self._max_size} entries, evicted oldest")

    def evict_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, stored_at) in self._store.items() if self._expired(stored_at, now)]
        for k in expired:
            del self._store[k]
        return len(expired)

    def clear(self):
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class GeocodeCache:
    """Bounded coordinate -> address cache. ``None`` is a valid cached value."""

    MISSING = object()

    def __init__(self, max_size: int = 5000):
        self._store: dict[str, Optional[str]] = {}
        self._max_size = max_size

    def get(self, key: str) -> Any:
        """Cached address (possibly None), or ``GeocodeCache.MISSING``."""
        return self._store.get(key, self.MISSING)

    def set(self, key: str, value: Optional[str]):
        if key not in self._store and len(self._store) >= self._max_size:
            for old_key in list(self._store)[:_evict_count(len(self._store))]:
                del self._store[old_key]
        self._store[key] = value

    def clear(self):
        self._store.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)


def report_cache_key(hours: int, enrich: bool, lite: bool, limit: Optional[int]) -> str:
    """Every request parameter that changes the report body must be in here."""
    return f"redding:h={hours}:geo={int(bool(enrich))}:lite={int(bool(lite))}:limit={'all' if limit is None else limit}"

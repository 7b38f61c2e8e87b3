"""Redding Backend - Address Resolver (Nominatim reverse geocoding)"""

import time
import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from cache import GeocodeCache
from config import (
    NOMINATIM_URL, GEOCODE_USER_AGENT, GEOCODE_TIMEOUT_SEC,
    GEOCODE_PRECISION, ADDRESS_MAX_LEN,
)

logger = logging.getLogger("redding.geocoding")

ELLIPSIS = "…"


# ─────────────────────────── Throttle ───────────────────────────

class GeocodeThrottle:
    """Per-batch limiter for external lookups.

    Grants at most ``max_lookups`` lookups and spaces consecutive grants at
    least ``min_interval`` seconds apart. One instance per batch.
    """

    def __init__(self, max_lookups: int, min_interval: float,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.max_lookups = max_lookups
        self.min_interval = min_interval
        self.granted = 0
        self._sleep = sleep
        self._clock = clock
        self._last: Optional[float] = None

    @property
    def exhausted(self) -> bool:
        return self.granted >= self.max_lookups

    async def acquire(self) -> bool:
        if self.exhausted:
            return False
        if self._last is not None:
            wait = self._last + self.min_interval - self._clock()
            if wait > 0:
                await self._sleep(wait)
        self.granted += 1
        self._last = self._clock()
        return True


# ─────────────────────────── Formatting ─────────────────────────

def truncate(text: str, max_len: int = ADDRESS_MAX_LEN) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len - len(ELLIPSIS)].rstrip() + ELLIPSIS


def format_address(data: dict, max_len: int = ADDRESS_MAX_LEN) -> Optional[str]:
    """Short display line from a Nominatim reverse response."""
    if not isinstance(data, dict):
        return None
    a = data.get("address") or {}
    if not isinstance(a, dict):
        a = {}

    road = a.get("road")
    if a.get("house_number") and road:
        first = f"{a['house_number']} {road}"
    else:
        first = road or a.get("neighbourhood") or a.get("suburb")
    place = a.get("city") or a.get("town") or a.get("village") or a.get("hamlet")

    line = ", ".join(str(p).strip() for p in (first, place) if p and str(p).strip())
    if not line:
        display = data.get("display_name")
        line = display.strip() if isinstance(display, str) else ""
    if not line:
        return None
    return truncate(line, max_len)


# ─────────────────────────── Resolver ───────────────────────────

class AddressResolver:
    """Reverse geocoder with a bounded local cache.

    Failed lookups are cached as None so a bad coordinate is not retried.
    Throttling is the caller's job: pass a ``GeocodeThrottle`` per batch.
    """

    def __init__(self, client: httpx.AsyncClient, enabled: bool = True,
                 precision: int = GEOCODE_PRECISION,
                 cache: Optional[GeocodeCache] = None,
                 url: str = NOMINATIM_URL,
                 user_agent: str = GEOCODE_USER_AGENT,
                 timeout: float = GEOCODE_TIMEOUT_SEC):
        self.client = client
        self.enabled = enabled
        self.precision = precision
        self.cache = cache if cache is not None else GeocodeCache()
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self.lookups = 0

    def cache_key(self, lat: float, lon: float) -> str:
        return f"{lat:.{self.precision}f},{lon:.{self.precision}f}"

    async def resolve(self, lat: Optional[float], lon: Optional[float],
                      throttle: Optional[GeocodeThrottle] = None) -> Optional[str]:
        if not self.enabled or lat is None or lon is None:
            return None

        key = self.cache_key(lat, lon)
        cached = self.cache.get(key)
        if cached is not GeocodeCache.MISSING:
            return cached

        if throttle is not None and not await throttle.acquire():
            return None

        address = await self._lookup(lat, lon)
        self.cache.set(key, address)
        return address

    async def _lookup(self, lat: float, lon: float) -> Optional[str]:
        self.lookups += 1
        try:
            r = await self.client.get(
                self.url,
                params={
                    "format": "jsonv2",
                    "lat": lat,
                    "lon": lon,
                    "zoom": 18,
                    "addressdetails": 1,
                },
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            if r.status_code != 200:
                logger.warning(f"Nominatim returned {r.status_code} for ({lat}, {lon})")
                return None
            return format_address(r.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Reverse geocode error for ({lat}, {lon}): {e}")
            return None

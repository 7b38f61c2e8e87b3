"""Redding Backend - Report service (cache -> fetch -> normalize -> aggregate)"""

import logging
from typing import Optional, Protocol

import httpx

import config
from cache import GeocodeCache, TTLCache, report_cache_key
from data_fetchers import PortalClient
from geocoding import AddressResolver, GeocodeThrottle
from models import AggregateReport
from normalizer import NormalizeOptions, build_report, normalize
from notifier import Notifier, WebhookSink

logger = logging.getLogger("redding.service")


class IncidentSource(Protocol):
    async def fetch_incidents(self, hours: int) -> list[dict]: ...

    async def fetch_raw(self, hours: int) -> tuple[int, str]: ...


class IncidentService:
    """Owns the caches, the upstream source, the geocoder and the notifier."""

    def __init__(self, source: IncidentSource, resolver: AddressResolver,
                 notifier: Notifier, cache: Optional[TTLCache] = None,
                 geocode_max_per_batch: int = config.GEOCODE_MAX_PER_BATCH,
                 geocode_min_interval: float = config.GEOCODE_MIN_INTERVAL_SEC,
                 client: Optional[httpx.AsyncClient] = None):
        self.source = source
        self.resolver = resolver
        self.notifier = notifier
        self.cache = cache if cache is not None else TTLCache(
            ttl=config.REPORT_CACHE_TTL_SEC, max_size=config.REPORT_CACHE_MAX
        )
        self.geocode_max_per_batch = geocode_max_per_batch
        self.geocode_min_interval = geocode_min_interval
        self._client = client

    @classmethod
    def from_config(cls) -> "IncidentService":
        client = httpx.AsyncClient(timeout=config.PORTAL_TIMEOUT_SEC)
        resolver = AddressResolver(
            client,
            enabled=config.ENABLE_REVERSE_GEOCODE,
            precision=config.GEOCODE_PRECISION,
            cache=GeocodeCache(max_size=config.GEOCODE_CACHE_MAX),
        )
        notifier = Notifier(WebhookSink(config.DISCORD_WEBHOOK_URL, client))
        return cls(PortalClient(client), resolver, notifier, client=client)

    def new_throttle(self) -> GeocodeThrottle:
        return GeocodeThrottle(self.geocode_max_per_batch, self.geocode_min_interval)

    async def get_report(self, hours: int, enrich: bool = False, lite: bool = False,
                         limit: Optional[int] = None) -> AggregateReport:
        key = report_cache_key(hours, enrich, lite, limit)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"Report cache hit for {key}")
            return cached

        raw = await self.source.fetch_incidents(hours)
        throttle = self.new_throttle()
        incidents = await normalize(
            raw,
            NormalizeOptions(lite_mode=lite, limit=limit, enrich_addresses=enrich),
            resolver=self.resolver,
            throttle=throttle,
        )
        if enrich:
            logger.info(f"Geocoded {throttle.granted} new coordinates for {len(incidents)} incidents")

        report = build_report(incidents, hours, lite=lite)
        self.cache.set(key, report)
        return report

    async def notify_new(self, hours: int) -> tuple[int, bool]:
        """Report incidents not seen before. Returns (new count, whether a message was sent)."""
        report = await self.get_report(hours, enrich=self.resolver.enabled)
        fresh = await self.notifier.notify(report.incidents)
        return len(fresh), bool(fresh)

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()

"""Redding Backend - Incident Normalizer & aggregation"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

import fields
from geocoding import AddressResolver, GeocodeThrottle
from models import AggregateReport, CanonicalIncident
from timestamps import first_instant, objectid_timestamp, to_iso
from zones import zone_for

logger = logging.getLogger("redding.normalizer")

COORD_PRECISION = 5
DEFAULT_LABEL = "Unknown"
OTHER_LABEL = "Other"


@dataclass(frozen=True)
class NormalizeOptions:
    lite_mode: bool = False
    limit: Optional[int] = None
    enrich_addresses: bool = False


# ─────────────────────────── Field helpers ──────────────────────

def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if f != f or f in (float("inf"), float("-inf")):
        return None
    return f


def extract_coordinates(raw: dict) -> tuple[Optional[float], Optional[float]]:
    """(lat, lon) from the first ``[lon, lat]`` pair; both None if either is missing."""
    for pair in fields.iter_present(raw, fields.COORDINATE_FIELDS):
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            continue
        lon, lat = _as_float(pair[0]), _as_float(pair[1])
        if lat is None or lon is None:
            continue
        return round(lat, COORD_PRECISION), round(lon, COORD_PRECISION)
    return None, None


def _label(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def first_label(raw: dict, candidates: fields.Candidates) -> Optional[str]:
    """First candidate that is still non-empty once stripped."""
    for value in fields.iter_present(raw, candidates):
        label = _label(value)
        if label is not None:
            return label
    return None


def extract_datetime(raw: dict, identifier: Optional[str]) -> Optional[str]:
    dt = first_instant(fields.iter_present(raw, fields.TIMESTAMP_FIELDS))
    if dt is None:
        dt = first_instant(fields.iter_present(raw, fields.NESTED_TIMESTAMP_FIELDS))
    if dt is None:
        dt = first_instant(fields.scan_date_like(raw))
    if dt is None:
        dt = objectid_timestamp(identifier)
    return to_iso(dt)


def extract_address(raw: dict) -> Optional[str]:
    for value in fields.iter_present(raw, fields.ADDRESS_FIELDS):
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


# ─────────────────────────── Normalization ──────────────────────

def normalize_record(raw: dict, lite: bool = False) -> CanonicalIncident:
    """One upstream record -> CanonicalIncident, using upstream fields only."""
    identifier = first_label(raw, fields.ID_FIELDS)
    itype = first_label(raw, fields.TYPE_FIELDS) or DEFAULT_LABEL
    parent = first_label(raw, fields.PARENT_FIELDS) or itype

    parent_type_id = None
    if not lite:
        code = fields.resolve(raw, fields.PARENT_TYPE_ID_FIELDS)
        if isinstance(code, (str, int, float)) and not isinstance(code, bool):
            parent_type_id = code

    lat, lon = extract_coordinates(raw)
    return CanonicalIncident(
        id=identifier,
        type=itype,
        parent=parent,
        parentTypeId=parent_type_id,
        lat=lat,
        lon=lon,
        zone=zone_for(lat, lon),
        datetime=extract_datetime(raw, identifier),
        address=extract_address(raw),
    )


async def normalize(raw_batch: Iterable[Any], options: NormalizeOptions = NormalizeOptions(),
                    resolver: Optional[AddressResolver] = None,
                    throttle: Optional[GeocodeThrottle] = None) -> list[CanonicalIncident]:
    """Normalize a raw batch; addresses are looked up one at a time."""
    batch = list(raw_batch)
    if options.limit is not None and options.limit >= 0:
        batch = batch[:options.limit]

    out: list[CanonicalIncident] = []
    skipped = 0
    for raw in batch:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        incident = normalize_record(raw, lite=options.lite_mode)
        if (options.enrich_addresses and resolver is not None
                and incident.address is None and incident.lat is not None):
            address = await resolver.resolve(incident.lat, incident.lon, throttle=throttle)
            if address is not None:
                incident = incident.model_copy(update={"address": address})
        out.append(incident)

    if skipped:
        logger.debug(f"Skipped {skipped} non-object records")
    return out


# ─────────────────────────── Aggregation ────────────────────────

def group_count(incidents: Iterable[CanonicalIncident],
                key_fn: Callable[[CanonicalIncident], Any]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for incident in incidents:
        key = key_fn(incident) or OTHER_LABEL
        counts[key] = counts.get(key, 0) + 1
    return counts


def build_report(incidents: list[CanonicalIncident], hours: int, lite: bool = False,
                 now: Optional[datetime] = None) -> AggregateReport:
    now = now or datetime.now(timezone.utc)
    return AggregateReport(
        updated=to_iso(now),
        hours=hours,
        total=len(incidents),
        categories=group_count(incidents, lambda i: i.parent),
        zones=group_count(incidents, lambda i: i.zone),
        incidents=incidents,
        lite=lite,
    )

"""Redding Backend - Field Resolver

The portal renames and nests fields between releases, so every lookup goes
through an ordered list of candidate names. Candidate lists are plain data;
dotted names (``"properties.id"``) walk into nested objects.
"""

from functools import lru_cache
from typing import Any, Callable, Iterator, Mapping, Optional

Accessor = Callable[[Mapping], Any]
Candidates = tuple[str, ...]

_MISSING = object()

# ─────────────────────────── Candidate Lists ────────────────────

ID_FIELDS: Candidates = (
    "id",
    "incidentId",
    "reportNumber",
    "caseNumber",
    "properties.id",
    "properties.incidentId",
    "details.incidentId",
)

TYPE_FIELDS: Candidates = (
    "incidentType",
    "type",
    "parentIncidentType",
    "properties.incidentType",
    "details.incidentType",
)

PARENT_FIELDS: Candidates = (
    "parentIncidentType",
    "parentCategory",
    "category",
    "properties.parentIncidentType",
    "details.parentIncidentType",
)

PARENT_TYPE_ID_FIELDS: Candidates = (
    "parentIncidentTypeId",
    "categoryId",
    "properties.parentIncidentTypeId",
)

# GeoJSON order: [lon, lat]
COORDINATE_FIELDS: Candidates = (
    "location.coordinates",
    "geometry.coordinates",
    "properties.location.coordinates",
    "coordinates",
)

ADDRESS_FIELDS: Candidates = (
    "address",
    "blockAddress",
    "location.address",
    "properties.address",
    "details.address",
)

TIMESTAMP_FIELDS: Candidates = (
    "datetime",
    "dateTime",
    "incidentDate",
    "occurrenceDate",
    "reportedDate",
    "eventTime",
    "createdTime",
    "created_at",
    "updated",
    "lastUpdated",
)

NESTED_TIMESTAMP_FIELDS: Candidates = (
    "properties.datetime",
    "properties.incidentDate",
    "details.datetime",
    "details.incidentDate",
    "details.occurrenceDate",
)

# Sub-objects searched by the date-like scan after the top level
_SCAN_CONTAINERS = ("properties", "details")


# ─────────────────────────── Accessors ──────────────────────────

@lru_cache(maxsize=256)
def accessor(name: str) -> Accessor:
    """Compile a field name or dotted path into a lookup function."""
    keys = tuple(name.split("."))

    def _get(record: Mapping) -> Any:
        node: Any = record
        for key in keys:
            if not isinstance(node, Mapping):
                return _MISSING
            node = node.get(key, _MISSING)
            if node is _MISSING:
                return _MISSING
        return node

    return _get


def _usable(value: Any) -> bool:
    return value is not _MISSING and value is not None and value != ""


def iter_present(record: Mapping, candidates: Candidates) -> Iterator[Any]:
    """Yield every usable candidate value, in candidate order."""
    if not isinstance(record, Mapping):
        return
    for name in candidates:
        value = accessor(name)(record)
        if _usable(value):
            yield value


def resolve(record: Mapping, candidates: Candidates, default: Optional[Any] = None) -> Any:
    """Return the first candidate value that is present, non-null and non-empty."""
    for value in iter_present(record, candidates):
        return value
    return default


def scan_date_like(record: Mapping) -> Iterator[str]:
    """Last resort: string values under keys that look like dates or times."""
    if not isinstance(record, Mapping):
        return
    containers = [record] + [
        record[k] for k in _SCAN_CONTAINERS if isinstance(record.get(k), Mapping)
    ]
    for container in containers:
        for key, value in container.items():
            if not isinstance(key, str) or not isinstance(value, str) or not value.strip():
                continue
            lowered = key.lower()
            if "date" in lowered or "time" in lowered:
                yield value

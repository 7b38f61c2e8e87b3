"""Redding Backend - Timestamp Normalizer"""

import re
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from dateutil import parser as dtp

logger = logging.getLogger("redding.timestamps")

# Anything at or above this is epoch milliseconds rather than seconds
EPOCH_MS_THRESHOLD = 10**12

_DIGITS = re.compile(r"^\d{10,}$")
_WRAPPED_EPOCH = re.compile(r"^/Date\((-?\d+)(?:[+-]\d{4})?\)/$")
_SPACE_SEPARATED = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(?:\.\d{1,6})?$")
_T_SEPARATED_NAIVE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{1,6})?$")
_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")

# Fills parts a partial date leaves out, instead of today's date
_GENERIC_DEFAULT = datetime(1970, 1, 1)


def _from_epoch(number: float) -> Optional[datetime]:
    seconds = number if abs(number) < EPOCH_MS_THRESHOLD else number / 1000.0
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _from_naive_iso(text: str) -> Optional[datetime]:
    base, _, frac = text.replace(" ", "T").partition(".")
    try:
        dt = datetime.strptime(base, "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    micros = int(frac.ljust(6, "0")) if frac else 0
    return dt.replace(microsecond=micros, tzinfo=timezone.utc)


def _from_generic(text: str) -> Optional[datetime]:
    try:
        dt = dtp.parse(text, default=_GENERIC_DEFAULT)
    except (ValueError, OverflowError, TypeError):
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def normalize_timestamp(value: Any) -> Optional[datetime]:
    """Reduce an arbitrary upstream value to a UTC instant, or None.

    Tiers, first success wins:
      1. numbers (and long digit strings): epoch seconds below 10^12, else ms
      2. ``/Date(1695782400000)/`` wrapped epoch milliseconds
      3. ``YYYY-MM-DD HH:mm:ss[.fff]`` as UTC
      4. ``YYYY-MM-DDTHH:mm:ss[.fff]`` without zone as UTC
      5. anything dateutil can make sense of
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        if value != value:  # NaN
            return None
        return _from_epoch(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _DIGITS.match(text):
        dt = _from_epoch(int(text))
        if dt is not None:
            return dt

    m = _WRAPPED_EPOCH.match(text)
    if m:
        try:
            return datetime.fromtimestamp(int(m.group(1)) / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            pass

    if _SPACE_SEPARATED.match(text) or _T_SEPARATED_NAIVE.match(text):
        dt = _from_naive_iso(text)
        if dt is not None:
            return dt

    return _from_generic(text)


def first_instant(values: Iterable[Any]) -> Optional[datetime]:
    """Normalize candidates in order and return the first valid instant."""
    for value in values:
        dt = normalize_timestamp(value)
        if dt is not None:
            return dt
    return None


def objectid_timestamp(identifier: Any) -> Optional[datetime]:
    """Creation time embedded in a MongoDB ObjectId (first 4 bytes, epoch seconds)."""
    if not isinstance(identifier, str) or not _OBJECT_ID.match(identifier):
        return None
    return datetime.fromtimestamp(int(identifier[:8], 16), tz=timezone.utc)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """``2023-09-27T02:40:00.000Z`` style, or None."""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

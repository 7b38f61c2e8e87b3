"""Redding Backend - Zone Classifier

Rough latitude/longitude bands, not real neighborhood polygons. The bands
overlap at the edges, so the check order below decides: north/south bands
win over east/west.
"""

from typing import Optional

from config import (
    ZONE_NORTH, ZONE_SOUTH, ZONE_WEST, ZONE_EAST, ZONE_CENTRAL, ZONE_UNKNOWN,
)

NORTH_MIN_LAT = 40.62
SOUTH_MAX_LAT = 40.55
WEST_MAX_LON = -122.42
EAST_MIN_LON = -122.36

ZONES = (ZONE_NORTH, ZONE_SOUTH, ZONE_WEST, ZONE_EAST, ZONE_CENTRAL, ZONE_UNKNOWN)


def zone_for(lat: Optional[float], lon: Optional[float]) -> str:
    if lat is None or lon is None:
        return ZONE_UNKNOWN
    if lat >= NORTH_MIN_LAT:
        return ZONE_NORTH
    if lat <= SOUTH_MAX_LAT:
        return ZONE_SOUTH
    if lon <= WEST_MAX_LON:
        return ZONE_WEST
    if lon >= EAST_MIN_LON:
        return ZONE_EAST
    return ZONE_CENTRAL

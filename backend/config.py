"""Redding Backend - Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# ── CityProtect / CommandCentral portal ──
PORTAL_ENDPOINT = os.environ.get(
    "PORTAL_ENDPOINT",
    "https://ce-portal-service.commandcentral.com/api/v1.0/public/incidents",
)
PORTAL_TIMEOUT_SEC = float(os.environ.get("PORTAL_TIMEOUT_SEC", "15"))
PORTAL_MAX_PAGES = int(os.environ.get("PORTAL_MAX_PAGES", "25"))

# The portal rejects requests that don't look like they came from cityprotect.com
PORTAL_HEADERS = {
    "content-type": "application/json",
    "accept": "application/json",
    "origin": "https://www.cityprotect.com",
    "referer": "https://www.cityprotect.com/",
    "user-agent": "Mozilla/5.0",
    "accept-language": "en-US,en;q=0.9",
}

# [lon, lat] ring around Redding / Anderson
REDDING_POLYGON = [[
    [-122.20872933, 40.37101482],
    [-122.55479867, 40.37101482],
    [-122.55479867, 40.77626157],
    [-122.20872933, 40.77626157],
    [-122.20872933, 40.37101482],
]]

PORTAL_BASE_QUERY = {
    "limit": 2000,
    "offset": 0,
    "geoJson": {"type": "Polygon", "coordinates": REDDING_POLYGON},
    "projection": True,
    "propertyMap": {
        "pageSize": "2000",
        "zoomLevel": "11",
        "latitude": "40.573945",
        "longitude": "-122.381764",
        "days": "1,2,3,4,5,6,7",
        "startHour": "0",
        "endHour": "24",
        "timezone": "+00:00",
        "relativeDate": "custom",
        "id": "5dfab4da933cf80011f565bc",
        "agencyIds": "112398,112005,ci.anderson.ca.us,cityofredding.org",
        "parentIncidentTypeIds": (
            "149,150,148,8,97,104,165,98,100,179,178,180,101,99,103,163,168,166,12,161,14,16,15"
        ),
    },
}

# ── Reverse geocoding (Nominatim) ──
ENABLE_REVERSE_GEOCODE = _env_flag("ENABLE_REVERSE_GEOCODE")
NOMINATIM_URL = os.environ.get("NOMINATIM_URL", "https://nominatim.openstreetmap.org/reverse")
# Nominatim's usage policy requires an identifying User-Agent
GEOCODE_USER_AGENT = os.environ.get(
    "GEOCODE_USER_AGENT", "ReddingIncidents/1.0 (contact: admin@example.com)"
)
GEOCODE_TIMEOUT_SEC = float(os.environ.get("GEOCODE_TIMEOUT_SEC", "10"))
GEOCODE_PRECISION = int(os.environ.get("GEOCODE_PRECISION", "5"))
GEOCODE_CACHE_MAX = int(os.environ.get("GEOCODE_CACHE_MAX", "5000"))
GEOCODE_MAX_PER_BATCH = int(os.environ.get("GEOCODE_MAX_PER_BATCH", "25"))
GEOCODE_MIN_INTERVAL_SEC = float(os.environ.get("GEOCODE_MIN_INTERVAL_SEC", "1.0"))
ADDRESS_MAX_LEN = 90

# ── Report cache / request window ──
REPORT_CACHE_TTL_SEC = int(os.environ.get("REPORT_CACHE_TTL_SEC", "60"))
REPORT_CACHE_MAX = int(os.environ.get("REPORT_CACHE_MAX", "200"))
DEFAULT_HOURS = int(os.environ.get("DEFAULT_HOURS", "72"))
MAX_HOURS = int(os.environ.get("MAX_HOURS", "168"))

# ── Chat webhook (Discord-compatible) ──
DISCORD_WEBHOOK_URL = os.environ.get("DISCORD_WEBHOOK_URL", "").strip()
WEBHOOK_USERNAME = os.environ.get("WEBHOOK_USERNAME", "Redding Incidents")
WEBHOOK_TIMEOUT_SEC = float(os.environ.get("WEBHOOK_TIMEOUT_SEC", "10"))
NOTIFY_MAX_ITEMS = int(os.environ.get("NOTIFY_MAX_ITEMS", "10"))
NOTIFY_INTERVAL_SEC = int(os.environ.get("NOTIFY_INTERVAL_SEC", "0"))  # 0 disables the loop

PORT = int(os.environ.get("PORT", "8080"))

# Zone names, in the order the classifier checks them
ZONE_NORTH = "North Redding"
ZONE_SOUTH = "South Redding"
ZONE_WEST = "West Redding"
ZONE_EAST = "East Redding"
ZONE_CENTRAL = "Central Redding"
ZONE_UNKNOWN = "Unknown"

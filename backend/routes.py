"""Redding Backend - FastAPI Routes"""

import asyncio
import logging
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

import config
from data_fetchers import UpstreamError
from models import ErrorResponse, NotifyResponse
from notifier import NotificationError
from service import IncidentService

logger = logging.getLogger("redding")

_TRUTHY = ("1", "true", "yes", "on")


# ─────────────────────────── App Setup ──────────────────────────

app = FastAPI(title="Redding Incidents API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

_service: Optional[IncidentService] = None
_notify_task: Optional[asyncio.Task] = None


def get_service() -> IncidentService:
    global _service
    if _service is None:
        _service = IncidentService.from_config()
    return _service


# ─────────────────────────── Param parsing ──────────────────────

def parse_hours(raw: Optional[str], default: int = config.DEFAULT_HOURS,
                maximum: int = config.MAX_HOURS) -> int:
    try:
        hours = int(str(raw).strip())
    except (TypeError, ValueError):
        hours = 0
    if hours == 0:
        hours = default
    return max(1, min(maximum, hours))


def parse_limit(raw: Optional[str]) -> Optional[int]:
    try:
        limit = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return limit if limit > 0 else None


def parse_flag(raw: Optional[str], default: bool = False) -> bool:
    if raw is None or not str(raw).strip():
        return default
    return str(raw).strip().lower() in _TRUTHY


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content=ErrorResponse(error=message).model_dump())


# ─────────────────────────── Scheduled notifier ─────────────────

async def _notify_loop(service: IncidentService, interval: int):
    while True:
        await asyncio.sleep(interval)
        try:
            new, _ = await service.notify_new(config.DEFAULT_HOURS)
            if new:
                logger.info(f"Scheduled notify: {new} new incidents")
        except (UpstreamError, NotificationError) as e:
            logger.error(f"Scheduled notify failed: {e}")
        except Exception:
            logger.exception("Scheduled notify failed")


@app.on_event("startup")
async def startup_event():
    global _notify_task
    if config.NOTIFY_INTERVAL_SEC > 0 and config.DISCORD_WEBHOOK_URL:
        _notify_task = asyncio.create_task(_notify_loop(get_service(), config.NOTIFY_INTERVAL_SEC))
        logger.info(f"Webhook notifier running every {config.NOTIFY_INTERVAL_SEC}s")


@app.on_event("shutdown")
async def shutdown_event():
    if _notify_task is not None:
        _notify_task.cancel()
    if _service is not None:
        await _service.aclose()


# ─────────────────────────── Health ─────────────────────────────

@app.get("/", response_class=PlainTextResponse)
async def root():
    return "ok"


@app.get("/api/test")
@app.get("/api/health")
async def health():
    return {"ok": True}


# ─────────────────────────── Incident report ────────────────────

async def _report_response(service: IncidentService, hours: int, lite: Optional[str],
                           limit: Optional[str], geocode: Optional[str]):
    enrich = parse_flag(geocode, default=config.ENABLE_REVERSE_GEOCODE)
    try:
        report = await service.get_report(
            hours, enrich=enrich, lite=parse_flag(lite), limit=parse_limit(limit)
        )
    except UpstreamError as e:
        logger.error(f"Redding report failed: {e}")
        return _error(str(e))
    except Exception as e:
        logger.exception("Redding report failed")
        return _error(str(e) or "fetch-failed")
    return JSONResponse(content=report.to_payload(), headers={"Cache-Control": "no-store"})


@app.get("/api/redding")
async def redding(hours: Optional[str] = None, lite: Optional[str] = None,
                  limit: Optional[str] = None, geocode: Optional[str] = None,
                  service: IncidentService = Depends(get_service)):
    return await _report_response(service, parse_hours(hours), lite, limit, geocode)


@app.get("/api/redding-72h")
async def redding_72h(lite: Optional[str] = None, limit: Optional[str] = None,
                      geocode: Optional[str] = None,
                      service: IncidentService = Depends(get_service)):
    return await _report_response(service, 72, lite, limit, geocode)


# ─────────────────────────── Debug passthrough ──────────────────

@app.get("/api/raw", response_class=PlainTextResponse)
async def raw(hours: Optional[str] = None, service: IncidentService = Depends(get_service)):
    try:
        status, text = await service.source.fetch_raw(parse_hours(hours))
    except UpstreamError as e:
        logger.error(f"Raw fetch failed: {e}")
        return _error(str(e))
    except Exception as e:
        logger.exception("Raw fetch failed")
        return _error(str(e) or "fetch-failed")
    return PlainTextResponse(f"status={status}\n\n{text}", headers={"Cache-Control": "no-store"})


# ─────────────────────────── Notification trigger ───────────────

@app.api_route("/api/notify", methods=["GET", "POST"])
async def notify(hours: Optional[str] = None, service: IncidentService = Depends(get_service)):
    try:
        new, sent = await service.notify_new(parse_hours(hours))
    except (UpstreamError, NotificationError) as e:
        logger.error(f"Notify failed: {e}")
        return _error(str(e))
    except Exception as e:
        logger.exception("Notify failed")
        return _error(str(e) or "notify-failed")
    return NotifyResponse(new=new, sent=sent)

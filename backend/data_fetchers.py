"""Redding Backend - CityProtect portal client"""

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx

import fields
from config import (
    PORTAL_ENDPOINT, PORTAL_HEADERS, PORTAL_BASE_QUERY, PORTAL_MAX_PAGES,
)
from timestamps import to_iso

logger = logging.getLogger("redding.fetchers")

INCIDENT_LIST_PATH = "result.list.incidents"
CONTINUATION_FIELDS = (
    "result.list.requestData",
    "result.requestData",
    "requestData",
)
RAW_PREVIEW_CHARS = 2000


class UpstreamError(RuntimeError):
    """The portal could not be reached or answered with something unusable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def build_query(hours: int, now: Optional[datetime] = None) -> dict:
    """Base portal query with the ``fromDate``/``toDate`` window filled in."""
    now = now or datetime.now(timezone.utc)
    body = copy.deepcopy(PORTAL_BASE_QUERY)
    body["propertyMap"]["fromDate"] = to_iso(now - timedelta(hours=hours))
    body["propertyMap"]["toDate"] = to_iso(now)
    return body


def page_signature(body: dict) -> str:
    """offset + date window; a repeat means the portal is looping."""
    props = body.get("propertyMap") if isinstance(body.get("propertyMap"), dict) else {}
    return f"{body.get('offset')}|{props.get('fromDate')}|{props.get('toDate')}"


def extract_incidents(payload: Any) -> list:
    found = fields.resolve(payload, (INCIDENT_LIST_PATH,), default=[])
    return found if isinstance(found, list) else []


def extract_continuation(payload: Any) -> Optional[dict]:
    found = fields.resolve(payload, CONTINUATION_FIELDS)
    return found if isinstance(found, dict) and found else None


class PortalClient:
    """Fetches raw incident batches from the public incidents endpoint."""

    def __init__(self, client: httpx.AsyncClient, endpoint: str = PORTAL_ENDPOINT,
                 max_pages: int = PORTAL_MAX_PAGES):
        self.client = client
        self.endpoint = endpoint
        self.max_pages = max_pages

    async def _post_json(self, body: dict) -> Any:
        try:
            r = await self.client.post(self.endpoint, json=body, headers=PORTAL_HEADERS)
        except httpx.TimeoutException as e:
            raise UpstreamError(f"Portal request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"Portal request failed: {e}") from e

        if not r.is_success:
            raise UpstreamError(
                f"Portal returned status {r.status_code}: {r.text[:200]}", status=r.status_code
            )
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamError(
                f"Bad JSON from {self.endpoint} (status {r.status_code}): {r.text[:200]}",
                status=r.status_code,
            ) from e

    async def fetch_incidents(self, hours: int) -> list[dict]:
        """All raw records for the last ``hours``, following continuation pages."""
        body = build_query(hours)
        seen = {page_signature(body)}
        records: list = []

        for _ in range(self.max_pages):
            payload = await self._post_json(body)
            batch = extract_incidents(payload)
            records.extend(batch)

            continuation = extract_continuation(payload)
            if continuation is None:
                break
            signature = page_signature(continuation)
            if signature in seen:
                logger.warning(f"Portal pagination repeated page {signature}, stopping")
                break
            seen.add(signature)
            body = continuation
        else:
            logger.warning(f"Portal pagination hit the {self.max_pages} page ceiling")

        logger.info(f"Portal returned {len(records)} incidents for the last {hours}h")
        return records

    async def fetch_raw(self, hours: int) -> tuple[int, str]:
        """Status and a text preview of one unprocessed page, for debugging."""
        try:
            r = await self.client.post(
                self.endpoint, json=build_query(hours), headers=PORTAL_HEADERS
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Portal request failed: {e}") from e
        return r.status_code, r.text[:RAW_PREVIEW_CHARS]

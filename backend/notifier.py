"""Redding Backend - New-incident notifier (chat webhook)"""

import logging
from typing import Iterable, Optional, Protocol

import httpx

from config import WEBHOOK_USERNAME, WEBHOOK_TIMEOUT_SEC, NOTIFY_MAX_ITEMS
from models import CanonicalIncident

logger = logging.getLogger("redding.notifier")

# Discord rejects content over 2000 characters
MAX_CONTENT_CHARS = 1900


class NotificationError(RuntimeError):
    """The webhook did not accept a notification."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class Sink(Protocol):
    async def send(self, content: str) -> None: ...


class WebhookSink:
    """Posts ``{"content": ...}`` to a Discord-style webhook."""

    def __init__(self, url: str, client: httpx.AsyncClient,
                 username: str = WEBHOOK_USERNAME, timeout: float = WEBHOOK_TIMEOUT_SEC):
        self.url = url
        self.client = client
        self.username = username
        self.timeout = timeout

    async def send(self, content: str) -> None:
        if not self.url:
            raise NotificationError("DISCORD_WEBHOOK_URL is not configured")
        body = {
            "content": content,
            "username": self.username,
            "allowed_mentions": {"parse": []},
        }
        try:
            r = await self.client.post(self.url, json=body, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook request failed: {e}") from e
        if not r.is_success:
            raise NotificationError(
                f"Webhook returned status {r.status_code}: {r.text[:200]}", status=r.status_code
            )


# ─────────────────────────── Formatting ─────────────────────────

def _line(incident: CanonicalIncident) -> str:
    parts = [incident.type, incident.zone]
    if incident.address:
        parts.append(incident.address)
    if incident.datetime:
        parts.append(incident.datetime)
    return "• " + " | ".join(parts)


def format_summary(incidents: list[CanonicalIncident], max_items: int = NOTIFY_MAX_ITEMS) -> str:
    count = len(incidents)
    header = f"🚨 {count} new incident{'s' if count != 1 else ''} in Redding"
    lines = [header] + [_line(i) for i in incidents[:max_items]]
    if count > max_items:
        lines.append(f"…and {count - max_items} more")

    content = "\n".join(lines)
    if len(content) > MAX_CONTENT_CHARS:
        content = content[:MAX_CONTENT_CHARS - 1] + "…"
    return content


# ─────────────────────────── Delta tracking ─────────────────────

class Notifier:
    """Reports each incident id at most once per process lifetime.

    The seen set lives in memory only: a restart forgets it, and incidents
    still inside the query window get reported once more.
    """

    def __init__(self, sink: Sink, max_items: int = NOTIFY_MAX_ITEMS):
        self.sink = sink
        self.max_items = max_items
        self.seen: set[str] = set()

    def delta(self, incidents: Iterable[CanonicalIncident]) -> list[CanonicalIncident]:
        fresh: list[CanonicalIncident] = []
        for incident in incidents:
            if incident.id is None or incident.id in self.seen:
                continue
            self.seen.add(incident.id)
            fresh.append(incident)
        return fresh

    async def notify(self, incidents: Iterable[CanonicalIncident]) -> list[CanonicalIncident]:
        """Send new incidents to the sink. Sink errors propagate; ids stay marked seen."""
        fresh = self.delta(incidents)
        if not fresh:
            return fresh
        await self.sink.send(format_summary(fresh, self.max_items))
        logger.info(f"Notified {len(fresh)} new incidents ({len(self.seen)} seen total)")
        return fresh

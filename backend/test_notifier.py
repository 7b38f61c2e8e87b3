"""Notifier delta tracking, summary text and webhook sink."""

import asyncio
import json

import httpx
import pytest

from models import CanonicalIncident
from notifier import NotificationError, Notifier, WebhookSink, format_summary


class RecordingSink:
    def __init__(self):
        self.messages = []

    async def send(self, content: str) -> None:
        self.messages.append(content)


class FailingSink:
    async def send(self, content: str) -> None:
        raise NotificationError("Webhook returned status 500: nope", status=500)


def incident(id_, type_="Theft", **kwargs):
    return CanonicalIncident(id=id_, type=type_, parent=type_, **kwargs)


def test_each_id_is_reported_once():
    sink = RecordingSink()
    notifier = Notifier(sink)

    first = asyncio.run(notifier.notify([incident("1"), incident("2")]))
    second = asyncio.run(notifier.notify([incident("1"), incident("2"), incident("3")]))

    assert [i.id for i in first] == ["1", "2"]
    assert [i.id for i in second] == ["3"]
    assert len(sink.messages) == 2


def test_empty_delta_makes_no_sink_call():
    sink = RecordingSink()
    notifier = Notifier(sink)
    asyncio.run(notifier.notify([incident("1")]))
    assert asyncio.run(notifier.notify([incident("1"), incident(None)])) == []
    assert asyncio.run(notifier.notify([])) == []
    assert len(sink.messages) == 1


def test_incidents_without_id_are_never_reported():
    notifier = Notifier(RecordingSink())
    assert notifier.delta([incident(None), incident(None)]) == []


def test_duplicates_within_a_batch_are_collapsed():
    notifier = Notifier(RecordingSink())
    assert [i.id for i in notifier.delta([incident("1"), incident("1")])] == ["1"]


def test_sink_failure_propagates_and_ids_stay_seen():
    notifier = Notifier(FailingSink())
    with pytest.raises(NotificationError):
        asyncio.run(notifier.notify([incident("1")]))
    assert "1" in notifier.seen
    assert notifier.delta([incident("1")]) == []


def test_summary_is_bounded():
    items = [incident(str(i), zone="North Redding") for i in range(12)]
    text = format_summary(items, max_items=10)
    lines = text.splitlines()
    assert lines[0] == "🚨 12 new incidents in Redding"
    assert len(lines) == 12
    assert lines[-1] == "…and 2 more"
    assert lines[1] == "• Theft | North Redding"


def test_summary_singular_and_details():
    item = incident("1", zone="Unknown", address="Market St, Redding", datetime="2023-09-27T02:40:00.000Z")
    text = format_summary([item])
    assert text.splitlines() == [
        "🚨 1 new incident in Redding",
        "• Theft | Unknown | Market St, Redding | 2023-09-27T02:40:00.000Z",
    ]


def test_summary_respects_content_limit():
    items = [incident(str(i), type_="T" * 300) for i in range(10)]
    assert len(format_summary(items, max_items=10)) <= 1900


# ─────────────────────────── Webhook sink ───────────────────────

def make_sink(status: int, url: str = "https://hooks.test/webhook"):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(status, text="" if status < 400 else "rate limited")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return WebhookSink(url, client, username="Redding Bot"), sent


def test_webhook_posts_content():
    sink, sent = make_sink(204)
    asyncio.run(sink.send("hello"))
    assert sent == [{"content": "hello", "username": "Redding Bot", "allowed_mentions": {"parse": []}}]


def test_webhook_error_status_raises():
    sink, _ = make_sink(429)
    with pytest.raises(NotificationError) as exc:
        asyncio.run(sink.send("hello"))
    assert exc.value.status == 429
    assert "rate limited" in str(exc.value)


def test_unconfigured_webhook_raises():
    sink, sent = make_sink(204, url="")
    with pytest.raises(NotificationError, match="not configured"):
        asyncio.run(sink.send("hello"))
    assert sent == []

"""Tests for whisker.app — the HTTP boundary around watch sessions."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from whisker.app import (
    BODY_EVENT,
    KEEP_ALIVE_EVENT,
    KEEP_ALIVE_TEXT,
    STATS_ENDPOINT,
    create_app,
    relay_results,
    startup_warnings,
)
from whisker.config import WhiskerConfig
from whisker.content.renderer import Rendered, RenderFailure
from whisker.observability import EventLog, SessionCollector
from whisker.reactive.channel import DeliveryChannel
from whisker.reactive.registry import SessionRegistry


def _body(response: object) -> str:
    body = response.body  # type: ignore[attr-defined]
    return body.decode() if isinstance(body, bytes) else str(body)


class TestRelayResults:
    """relay_results() — render results to SSE frames."""

    @pytest.mark.asyncio
    async def test_results_become_body_events(self) -> None:
        channel = DeliveryChannel()
        await channel.send(Rendered("<h1>Hello</h1>"))
        await channel.send(RenderFailure("Error reading notes.md"))
        channel.close()

        events = [e async for e in relay_results(channel, heartbeat=5.0)]

        assert [e.event for e in events] == [BODY_EVENT, BODY_EVENT]
        assert events[0].data == "<h1>Hello</h1>"
        assert "Error reading notes.md" in events[1].data
        assert channel.detached

    @pytest.mark.asyncio
    async def test_idle_stream_sends_keep_alive(self) -> None:
        channel = DeliveryChannel()
        stream = relay_results(channel, heartbeat=0.05)

        event = await asyncio.wait_for(anext(stream), timeout=2.0)
        assert event.event == KEEP_ALIVE_EVENT
        assert event.data == KEEP_ALIVE_TEXT

        await channel.send(Rendered("<p>late</p>"))
        event = await asyncio.wait_for(anext(stream), timeout=2.0)
        assert event.event == BODY_EVENT
        assert event.data == "<p>late</p>"

        await stream.aclose()

    @pytest.mark.asyncio
    async def test_client_disconnect_detaches_channel(self) -> None:
        channel = DeliveryChannel()
        await channel.send(Rendered("<p>one</p>"))
        stream = relay_results(channel, heartbeat=5.0)

        await anext(stream)
        assert not channel.detached
        await stream.aclose()

        assert channel.detached

    @pytest.mark.asyncio
    async def test_no_result_lost_across_heartbeats(self) -> None:
        channel = DeliveryChannel()
        total = 500

        async def produce() -> None:
            for n in range(total):
                await channel.send(Rendered(f"<p>{n}</p>"))
                if n % 7 == 0:
                    await asyncio.sleep(0.001)
            channel.close()

        producer = asyncio.create_task(produce())
        events = [e async for e in relay_results(channel, heartbeat=0.0002)]
        await producer

        bodies = [e.data for e in events if e.event == BODY_EVENT]
        assert bodies == [f"<p>{n}</p>" for n in range(total)]


class TestCreateApp:
    """create_app() — route registration and plain pages."""

    def test_routes_registered(self, tmp_path: Path) -> None:
        app = create_app(WhiskerConfig(filename=str(tmp_path / "notes.md")))
        route_names = [r.name for r in app._pending_routes if hasattr(r, "name")]
        for name in ("whisker:index", "whisker:events", "whisker:stats", "whisker:page"):
            assert name in route_names

    @pytest.mark.asyncio
    async def test_index_serves_shell(self, md_file: Path) -> None:
        from chirp.testing.client import TestClient

        app = create_app(WhiskerConfig(filename="notes.md", dark=True))

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
            body = _body(response)

        assert 'sse-connect="/sse/notes.md"' in body
        assert 'sse-swap="body"' in body
        assert "color-scheme: dark" in body

    @pytest.mark.asyncio
    async def test_stats_endpoint(self) -> None:
        from chirp.testing.client import TestClient

        log = EventLog()
        collector = SessionCollector(log, verbosity=-1)
        collector.record_session_started("notes.md", backend="notify")
        app = create_app(
            WhiskerConfig(filename="notes.md"),
            collector=collector,
            registry=SessionRegistry(),
        )

        async with TestClient(app) as client:
            response = await client.get(STATS_ENDPOINT)
            assert response.status == 200
            payload = json.loads(_body(response))

        assert payload["sessions"]["live"] == 0
        assert payload["event_log"]["by_type"] == {"SessionStarted": 1}
        (recent,) = payload["recent"]
        assert recent["type"] == "SessionStarted"
        assert recent["path"] == "notes.md"
        assert recent["backend"] == "notify"


class TestStartupWarnings:
    """startup_warnings() — what the banner flags before serving."""

    def test_existing_file_is_quiet(self, md_file: Path) -> None:
        assert startup_warnings(WhiskerConfig(filename=str(md_file))) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        missing = tmp_path / "not-yet.md"
        (warning,) = startup_warnings(WhiskerConfig(filename=str(missing)))
        assert "does not exist" in warning
        assert "read error" in warning
        assert "waits" not in warning

    def test_dangerous_mode(self, md_file: Path) -> None:
        (warning,) = startup_warnings(WhiskerConfig(filename=str(md_file), dangerous=True))
        assert "raw HTML passthrough" in warning

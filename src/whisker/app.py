"""Whisker application — the Chirp HTTP boundary around watch sessions.

Routes:

- ``/``: page shell for the configured file
- ``/sse/<filename>``: push stream; one watch session per connection
- ``/__whisker/stats``: JSON summary of live sessions and recent session events
- ``/<filename>``: page shell for any other file, so relative links between
  markdown files keep working

Each push-stream connection gets its own delivery channel and session.  The
stream relays every render result as a ``body`` event, sends a keep-alive
frame whenever nothing was delivered for ``heartbeat`` seconds, and detaches
the channel when the client goes away so the session stops at its next push.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

from whisker._errors import ChannelClosed, ShellError
from whisker.content.watcher import WatchTarget, make_event_source
from whisker.observability import EventLog, SessionCollector
from whisker.reactive.channel import DeliveryChannel
from whisker.reactive.registry import SessionRegistry
from whisker.reactive.session import WatchSession
from whisker.shell import render_shell

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from chirp import App, Request, Response, SSEEvent

    from whisker.config import WhiskerConfig
    from whisker.content.renderer import RenderResult

BODY_EVENT = "body"
KEEP_ALIVE_EVENT = "keep-alive"
KEEP_ALIVE_TEXT = "keep-alive-text"

SSE_ENDPOINT = "/sse/{filename:path}"
STATS_ENDPOINT = "/__whisker/stats"
RECENT_EVENTS = 20


async def relay_results(
    channel: DeliveryChannel,
    *,
    heartbeat: float = 1.0,
) -> AsyncIterator[SSEEvent]:
    """Turn a delivery channel into a stream of SSE events.

    Yields one ``body`` event per render result, in order, and a keep-alive
    event after every *heartbeat* seconds without a result.  Ends when the
    session closes the channel.  However the stream ends (including the
    client disconnecting and the generator being closed), the channel is
    detached so the producing session terminates.

    """
    from chirp import SSEEvent

    # One receive stays outstanding across heartbeats; it is never cancelled
    # just because the interval elapsed.
    pending: asyncio.Future[RenderResult] | None = None
    try:
        while True:
            if pending is None:
                pending = asyncio.ensure_future(channel.receive())
            done, _ = await asyncio.wait({pending}, timeout=heartbeat)
            if not done:
                yield SSEEvent(data=KEEP_ALIVE_TEXT, event=KEEP_ALIVE_EVENT)
                continue
            finished, pending = pending, None
            try:
                result = finished.result()
            except ChannelClosed:
                return
            yield SSEEvent(data=result.markup, event=BODY_EVENT)
    finally:
        if pending is not None:
            pending.cancel()
        channel.detach()


def _shell_response(config: WhiskerConfig, filename: str) -> Response:
    """Render the page shell, or a plain-text 500 if that fails."""
    from chirp import Response

    try:
        body = render_shell(config, filename)
    except ShellError as exc:
        return Response(
            body=f"Something went wrong: {exc}",
            status=500,
            content_type="text/plain; charset=utf-8",
        )
    return Response(body=body, status=200, content_type="text/html; charset=utf-8")


def create_app(
    config: WhiskerConfig,
    *,
    collector: SessionCollector | None = None,
    registry: SessionRegistry | None = None,
) -> App:
    """Create the Chirp App serving previews for *config*.

    Args:
        config: Process-wide configuration (backend, trust policy, ...).
        collector: Recorder shared by all sessions of this app.
        registry: Where spawned sessions are parked while they run.

    """
    from chirp import App, AppConfig, EventStream

    if collector is None:
        collector = SessionCollector(EventLog(), verbosity=config.verbosity)
    if registry is None:
        registry = SessionRegistry()

    app = App(config=AppConfig(debug=config.verbosity > 0, host=config.host, port=config.port))

    async def index_handler(request: Request) -> Any:
        return _shell_response(config, config.filename)

    async def sse_handler(request: Request, filename: str) -> Any:
        target = WatchTarget(path=Path(filename), dangerous=config.dangerous)
        collector.echo(f"Starting new stream for {target.path}")
        channel = DeliveryChannel(config.channel_capacity)
        source = make_event_source(
            target.path, config.backend, poll_interval=config.poll_interval
        )
        registry.start(WatchSession(target, channel, source=source, collector=collector))
        return EventStream(relay_results(channel, heartbeat=config.heartbeat))

    async def stats_handler(request: Request) -> Any:
        from chirp import Response

        payload = json.dumps(
            {
                "sessions": {
                    "live": registry.session_count,
                    "by_path": registry.snapshot(),
                },
                "event_log": collector.log.stats(),
                "recent": [
                    {"type": type(event).__name__, **asdict(event)}
                    for event in collector.log.query(limit=RECENT_EVENTS)
                ],
            },
            indent=2,
        )
        return Response(body=payload, status=200, content_type="application/json")

    async def page_handler(request: Request, filename: str) -> Any:
        collector.echo(f"Rendering page for {filename}")
        return _shell_response(config, filename)

    app.route("/", name="whisker:index")(index_handler)
    app.route(SSE_ENDPOINT, name="whisker:events")(sse_handler)
    app.route(STATS_ENDPOINT, name="whisker:stats")(stats_handler)
    # Catch-all last: every other path is a file to preview.
    app.route("/{filename:path}", name="whisker:page")(page_handler)

    @app.on_shutdown
    async def _stop_sessions() -> None:
        registry.cancel_all()

    return app


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def startup_warnings(config: WhiskerConfig) -> list[str]:
    """Banner warnings for *config*."""
    warnings: list[str] = []
    if not Path(config.filename).exists():
        warnings.append(
            f"{config.filename} does not exist; the page shows the read error and"
            " is not updated"
        )
    if config.dangerous:
        warnings.append("raw HTML passthrough enabled; only preview files you trust")
    return warnings


def run(config: WhiskerConfig) -> None:
    """Serve live previews until interrupted.

    Args:
        config: Resolved configuration.

    """
    from whisker.banner import print_banner

    t0 = time.perf_counter()
    collector = SessionCollector(EventLog(), verbosity=config.verbosity)
    app = create_app(config, collector=collector)
    load_ms = (time.perf_counter() - t0) * 1000

    print_banner(config, load_ms=load_ms, warnings=startup_warnings(config))
    app.run(host=config.host, port=config.port)

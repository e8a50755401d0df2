"""Watch session — one file, one event source, one viewer.

A session is created per connection and drives the whole pipeline for it::

    STARTING ── initial read+render, push, attach event source
       │
    WATCHING ── next raw event → coalescer → read+render → push
       │
    TERMINATED  (viewer gone, backend failure, source ended, cancelled)

Read and render failures are content: they are pushed to the viewer as
failure payloads and the session keeps watching.  A failed push means the
viewer left and ends the session quietly.  A backend failure ends the
session and is re-raised to whoever awaits ``run()``.

Sessions share nothing mutable.  Two sessions watching the same file each
own their own event source and read the file independently.
"""

from __future__ import annotations

import asyncio
import enum
import time
from typing import TYPE_CHECKING

from whisker._errors import DeliveryError, ReadError, SessionError, WatchBackendError
from whisker.content.coalescer import accepts
from whisker.content.reader import ResilientReader
from whisker.content.renderer import RenderFailure, render_markdown

if TYPE_CHECKING:
    from pathlib import Path

    from whisker._types import EndReason
    from whisker.content.renderer import RenderResult
    from whisker.content.watcher import EventSource, WatchTarget
    from whisker.observability.collector import SessionCollector
    from whisker.reactive.channel import DeliveryChannel


class SessionState(enum.Enum):
    STARTING = "starting"
    WATCHING = "watching"
    TERMINATED = "terminated"


class WatchSession:
    """Turns filesystem events for one target into an ordered result stream.

    Args:
        target: What to watch and how to render it.
        channel: Sending side of the viewer's delivery channel.  The session
            closes it when it terminates.
        source: Event source for ``target.path``, not yet started.
        reader: File reader (defaults to the standard retry policy).
        collector: Optional recorder for lifecycle and pipeline events.

    """

    def __init__(
        self,
        target: WatchTarget,
        channel: DeliveryChannel,
        *,
        source: EventSource,
        reader: ResilientReader | None = None,
        collector: SessionCollector | None = None,
    ) -> None:
        self._target = target
        self._channel = channel
        self._source = source
        self._reader = reader if reader is not None else ResilientReader(collector=collector)
        self._collector = collector
        self._state = SessionState.STARTING
        self._started = False
        self._sequence = 0

    @property
    def target(self) -> WatchTarget:
        return self._target

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def renders(self) -> int:
        """Number of results pushed so far."""
        return self._sequence

    async def run(self) -> None:
        """Run the session until it terminates.

        Returns normally when the viewer disconnects or the event source
        ends.

        Raises:
            WatchBackendError: The event source could not be attached or
                failed while watching.
            SessionError: ``run()`` was already called.

        """
        if self._started:
            msg = f"session for {self._target.path} already ran"
            raise SessionError(msg)
        self._started = True

        reason: EndReason = "source_exhausted"
        error = ""
        try:
            # Initial result goes out before the event source is attached.
            await self._push(self._target.path)

            self._source.start()
            if self._collector is not None:
                self._collector.record_session_started(
                    str(self._target.path), backend=self._source.backend
                )
            self._state = SessionState.WATCHING

            async for event in self._source.events():
                accepted = accepts(event)
                if self._collector is not None:
                    self._collector.record_change(
                        str(event.path), kind=event.kind.value, accepted=accepted
                    )
                if accepted:
                    await self._push(event.path)
        except DeliveryError:
            reason = "consumer_gone"
        except WatchBackendError as exc:
            reason = "backend_error"
            error = str(exc)
            raise
        except asyncio.CancelledError:
            reason = "cancelled"
            raise
        finally:
            self._terminate(reason, error)

    async def _push(self, path: Path) -> None:
        """Read, render and push one result.  Raises DeliveryError if the viewer left."""
        t0 = time.perf_counter()
        result = await self._render(path)
        render_ms = (time.perf_counter() - t0) * 1000

        await self._channel.send(result)

        sequence = self._sequence
        self._sequence += 1
        if self._collector is not None:
            self._collector.record_render(
                str(path),
                ok=result.ok,
                sequence=sequence,
                render_ms=render_ms,
                error="" if result.ok else result.message,  # type: ignore[union-attr]
            )

    async def _render(self, path: Path) -> RenderResult:
        try:
            text = await self._reader.read(path)
        except ReadError as exc:
            return RenderFailure(str(exc))
        return render_markdown(text, dangerous=self._target.dangerous)

    def _terminate(self, reason: EndReason, error: str) -> None:
        self._state = SessionState.TERMINATED
        self._source.stop()
        self._channel.close()
        if self._collector is not None:
            self._collector.record_session_ended(
                str(self._target.path), reason=reason, renders=self._sequence, error=error
            )


def spawn_session(session: WatchSession) -> asyncio.Task[None]:
    """Start *session* as its own task on the running loop.

    Backend failures are already recorded by the session's collector, so the
    task retrieves them itself instead of leaving them for the loop's
    "exception was never retrieved" handler.
    """
    task = asyncio.create_task(session.run(), name=f"whisker-session:{session.target.path}")
    task.add_done_callback(_consume_backend_error)
    return task


def _consume_backend_error(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None and not isinstance(exc, WatchBackendError):
        # Anything else is a bug: let the loop report it.
        task.get_loop().call_exception_handler({
            "message": f"watch session {task.get_name()} crashed",
            "exception": exc,
            "task": task,
        })

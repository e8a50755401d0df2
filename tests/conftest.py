"""Shared test fixtures for whisker."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from whisker._errors import WatchBackendError
from whisker.content.reader import ResilientReader
from whisker.content.watcher import ChangeKind, RawChangeEvent
from whisker.observability import EventLog, SessionCollector

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable


class FakeEventSource:
    """Scriptable event source: tests decide which raw events arrive when.

    ``emit`` queues an event, ``fail`` queues a backend failure and
    ``finish`` ends the stream, all in call order.
    """

    backend = "notify"

    def __init__(self, path: Path, *, fail_on_start: Exception | None = None) -> None:
        self.path = path
        self.started = False
        self.stopped = False
        self._fail_on_start = fail_on_start
        self._queue: asyncio.Queue[object] = asyncio.Queue()

    @property
    def is_running(self) -> bool:
        return self.started and not self.stopped

    def start(self) -> None:
        if self._fail_on_start is not None:
            raise self._fail_on_start
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def emit(self, kind: ChangeKind, path: Path | None = None) -> None:
        self._queue.put_nowait(RawChangeEvent(kind=kind, paths=(path or self.path,)))

    def fail(self, exc: Exception) -> None:
        self._queue.put_nowait(exc)

    def finish(self) -> None:
        self._queue.put_nowait(None)

    async def events(self) -> AsyncIterator[RawChangeEvent]:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise WatchBackendError(str(item)) from item
            yield item  # type: ignore[misc]


@pytest.fixture
def md_file(tmp_path: Path) -> Path:
    """A markdown file containing a single heading."""
    path = tmp_path / "notes.md"
    path.write_text("# Hello\n", encoding="utf-8")
    return path


@pytest.fixture
def make_source() -> Callable[..., FakeEventSource]:
    """Factory for scriptable event sources."""
    return FakeEventSource


@pytest.fixture
def fast_reader() -> ResilientReader:
    """A reader with the standard attempt budget but a tiny backoff."""
    return ResilientReader(backoff=0.01)


@pytest.fixture
def collector() -> SessionCollector:
    """A silent collector backed by a fresh event log."""
    return SessionCollector(EventLog(), verbosity=-1)

"""File watcher — raw filesystem change events for one watched path.

Two interchangeable event sources share one output contract: ``start()``
attaches to the path, ``events()`` yields ``RawChangeEvent`` objects in
arrival order, and a failure of the backend itself surfaces from
``events()`` as ``WatchBackendError``.

- ``NotifyEventSource``: OS notifications (inotify, FSEvents, ...), recursive
  for directories.
- ``PollingEventSource``: re-stats the path on a fixed interval and
  synthesises events from metadata differences.  Works on network mounts
  and in containers where notifications are unreliable.

Both run watchfiles in a background thread and bridge its events into an
unbounded asyncio queue owned by the event source.

watchfiles always groups the raw notifications it sees between two yields
into a set, so identical (change, path) pairs inside one group arrive once.
The grouping window is held at its minimum (1 ms debounce, 10 ms step) so
that successive saves reach the coalescer as separate events.
"""

from __future__ import annotations

import asyncio
import enum
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from watchfiles import Change

from whisker._errors import ConfigError, WatchBackendError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from whisker._types import BackendName


@dataclass(frozen=True, slots=True)
class WatchTarget:
    """One file (or directory) to observe, with its trust policy.

    Attributes:
        path: Path to watch, absolute or relative to the working directory.
        dangerous: Pass raw HTML embedded in the markdown through unescaped.

    """

    path: Path
    dangerous: bool = False


class ChangeKind(enum.Enum):
    """Class of a raw filesystem notification."""

    CREATED = "created"
    REMOVED = "removed"
    DATA_MODIFIED = "data_modified"
    METADATA_MODIFIED = "metadata_modified"
    ACCESSED = "accessed"
    RENAMED = "renamed"


@dataclass(frozen=True, slots=True)
class RawChangeEvent:
    """A notification emitted by an event source.

    Attributes:
        kind: Class of the change.
        paths: Affected paths, at least one.

    """

    kind: ChangeKind
    paths: tuple[Path, ...]

    def __post_init__(self) -> None:
        if not self.paths:
            msg = "RawChangeEvent needs at least one path"
            raise ValueError(msg)

    @property
    def path(self) -> Path:
        """The first affected path."""
        return self.paths[0]


# Mapping from watchfiles Change enum to our change kinds.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: ChangeKind.CREATED,
    Change.modified: ChangeKind.DATA_MODIFIED,
    Change.deleted: ChangeKind.REMOVED,
}

# Marks the end of a watch thread's output.
_END = object()

# Milliseconds.
_DEBOUNCE_MS = 1
_STEP_MS = 10


class EventSource(Protocol):
    """What a watch session needs from a filesystem backend."""

    backend: BackendName

    @property
    def is_running(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def events(self) -> AsyncIterator[RawChangeEvent]: ...


class _WatchThread:
    """Runs ``watchfiles.watch`` on a daemon thread, feeding an asyncio queue.

    Must be started from inside a running event loop; events are handed to
    that loop with ``call_soon_threadsafe``.

    """

    def __init__(self, path: Path, *, name: str, **watch_kwargs: Any) -> None:
        self._path = path
        self._name = name
        self._watch_kwargs = watch_kwargs
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            msg = f"watcher for {self._path} already started"
            raise WatchBackendError(msg)
        if not self._path.exists():
            msg = f"cannot watch {self._path}: no such file or directory"
            raise WatchBackendError(msg)
        if not os.access(self._path, os.R_OK):
            msg = f"cannot watch {self._path}: permission denied"
            raise WatchBackendError(msg)

        self._loop = asyncio.get_running_loop()
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._watch_loop, name=self._name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread to stop and wait briefly for it to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)

    async def events(self) -> AsyncIterator[RawChangeEvent]:
        while True:
            item = await self._queue.get()
            if item is _END:
                return
            if isinstance(item, BaseException):
                msg = f"watch backend failed for {self._path}: {item}"
                raise WatchBackendError(msg) from item
            yield item

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and push events to the queue."""
        from watchfiles import watch

        try:
            for raw_changes in watch(
                self._path,
                watch_filter=None,
                stop_event=self._stop_event,
                debounce=_DEBOUNCE_MS,
                step=_STEP_MS,
                **self._watch_kwargs,
            ):
                for change_type, path_str in raw_changes:
                    kind = _CHANGE_KIND_MAP.get(change_type, ChangeKind.DATA_MODIFIED)
                    self._deliver(RawChangeEvent(kind=kind, paths=(Path(path_str),)))
        except Exception as exc:
            self._deliver(exc)
        finally:
            self._deliver(_END)

    def _deliver(self, item: object) -> None:
        assert self._loop is not None
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Event loop already closed: nobody is listening any more.
            self._stop_event.set()


class NotifyEventSource:
    """Event source driven by OS filesystem notifications."""

    backend: BackendName = "notify"

    def __init__(self, path: Path) -> None:
        self.path = path
        self._watch = _WatchThread(path, name=f"whisker-notify:{path.name}", recursive=True)

    @property
    def is_running(self) -> bool:
        return self._watch.is_running

    def start(self) -> None:
        self._watch.start()

    def stop(self) -> None:
        self._watch.stop()

    def events(self) -> AsyncIterator[RawChangeEvent]:
        return self._watch.events()


class PollingEventSource:
    """Event source that polls the path's metadata every *interval* seconds."""

    backend: BackendName = "poll"

    def __init__(self, path: Path, *, interval: float = 1.0) -> None:
        self.path = path
        self.interval = interval
        self._watch = _WatchThread(
            path,
            name=f"whisker-poll:{path.name}",
            recursive=True,
            force_polling=True,
            poll_delay_ms=max(1, int(interval * 1000)),
        )

    @property
    def is_running(self) -> bool:
        return self._watch.is_running

    def start(self) -> None:
        self._watch.start()

    def stop(self) -> None:
        self._watch.stop()

    def events(self) -> AsyncIterator[RawChangeEvent]:
        return self._watch.events()


def make_event_source(
    path: Path,
    backend: BackendName = "notify",
    *,
    poll_interval: float = 1.0,
) -> EventSource:
    """Create the event source selected by configuration.

    Raises:
        ConfigError: If *backend* names no known strategy.

    """
    if backend == "notify":
        return NotifyEventSource(path)
    if backend == "poll":
        return PollingEventSource(path, interval=poll_interval)
    msg = f"Unknown watch backend {backend!r}"
    raise ConfigError(msg)

"""Session registry — keeps live watch sessions reachable.

asyncio only holds weak references to tasks, so the HTTP layer parks every
spawned session task here until it finishes.  The registry is bookkeeping
only: sessions never look each other up and share no state through it.

Thread-safe: session map protected by a lock.
"""

from __future__ import annotations

import threading
from collections import defaultdict
from typing import TYPE_CHECKING

from whisker.reactive.session import spawn_session

if TYPE_CHECKING:
    import asyncio

    from whisker.reactive.session import WatchSession


class SessionRegistry:
    """Tracks running session tasks, grouped by watched path."""

    def __init__(self) -> None:
        self._sessions: dict[str, set[asyncio.Task[None]]] = defaultdict(set)
        self._lock = threading.Lock()

    @property
    def session_count(self) -> int:
        """Total number of live sessions across all paths."""
        with self._lock:
            return sum(len(tasks) for tasks in self._sessions.values())

    def start(self, session: WatchSession) -> asyncio.Task[None]:
        """Spawn *session* and keep its task alive until it finishes."""
        key = str(session.target.path)
        task = spawn_session(session)
        with self._lock:
            self._sessions[key].add(task)
        task.add_done_callback(lambda t: self._forget(key, t))
        return task

    def sessions_for(self, path: str) -> int:
        """Number of live sessions watching *path*."""
        with self._lock:
            return len(self._sessions.get(path, ()))

    def watched_paths(self) -> frozenset[str]:
        """Paths with at least one live session."""
        with self._lock:
            return frozenset(self._sessions.keys())

    def snapshot(self) -> dict[str, int]:
        """Live session count per path."""
        with self._lock:
            return {path: len(tasks) for path, tasks in self._sessions.items()}

    def cancel_all(self) -> int:
        """Cancel every live session (process shutdown).  Returns the count."""
        with self._lock:
            tasks = [t for group in self._sessions.values() for t in group]
        for task in tasks:
            task.cancel()
        return len(tasks)

    def _forget(self, key: str, task: asyncio.Task[None]) -> None:
        with self._lock:
            group = self._sessions.get(key)
            if group is None:
                return
            group.discard(task)
            if not group:
                del self._sessions[key]

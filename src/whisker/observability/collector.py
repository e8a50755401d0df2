"""Session collector — the recorder injected into watch sessions.

Every ``record_*`` call appends a frozen event to the ``EventLog`` and, when
the configured verbosity allows it, echoes a one-line message to stderr.
Failures are always echoed.  Sessions receive a collector instance rather
than reaching for process-wide state, so tests can inspect exactly what a
session reported.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from whisker.observability.events import (
    ChangeObserved,
    ContentRendered,
    ReadRetried,
    SessionEnded,
    SessionStarted,
    now_ns,
)
from whisker.observability.log import EventLog

if TYPE_CHECKING:
    from whisker._types import EndReason

# Verbosity levels
ERRORS = 0
LIFECYCLE = 1
TRACE = 2


class SessionCollector:
    """Event collector for watch sessions.

    Args:
        log: The EventLog to store events in.
        verbosity: Highest message level echoed to *stream*.
        stream: Where messages are echoed (defaults to ``sys.stderr``).

    """

    __slots__ = ("_log", "_stream", "_verbosity")

    def __init__(
        self,
        log: EventLog | None = None,
        *,
        verbosity: int = ERRORS,
        stream: TextIO | None = None,
    ) -> None:
        self._log = log if log is not None else EventLog()
        self._verbosity = verbosity
        self._stream = stream

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    @property
    def verbosity(self) -> int:
        return self._verbosity

    def echo(self, message: str, *, level: int = LIFECYCLE) -> None:
        """Print *message* to the stream if *level* is within verbosity."""
        if level > self._verbosity:
            return
        print(f"  {message}", file=self._stream or sys.stderr)

    # ----- Session lifecycle -----

    def record_session_started(self, path: str, *, backend: str) -> None:
        """Record a session attaching to its event source."""
        self._log.append(SessionStarted(path=path, backend=backend, timestamp_ns=now_ns()))
        self.echo(f"Watching {path} ({backend})")

    def record_session_ended(
        self,
        path: str,
        *,
        reason: EndReason,
        renders: int = 0,
        error: str = "",
    ) -> None:
        """Record a session reaching its terminal state."""
        self._log.append(
            SessionEnded(
                path=path,
                reason=reason,
                renders=renders,
                error=error,
                timestamp_ns=now_ns(),
            )
        )
        if error:
            self.echo(f"Watch error ({path}), closing session: {error}", level=ERRORS)
        else:
            self.echo(f"Session closed ({path}): {reason}, {renders} renders")

    # ----- Pipeline -----

    def record_change(self, path: str, *, kind: str, accepted: bool) -> None:
        """Record a raw filesystem event and the coalescer's verdict."""
        self._log.append(
            ChangeObserved(path=path, kind=kind, accepted=accepted, timestamp_ns=now_ns())
        )
        verdict = "updating" if accepted else "ignored"
        self.echo(f"{kind} {path}: {verdict}", level=TRACE)

    def record_read_retry(self, path: str, *, attempt: int, error: str) -> None:
        """Record a failed read attempt."""
        self._log.append(
            ReadRetried(path=path, attempt=attempt, error=error, timestamp_ns=now_ns())
        )
        self.echo(f"Read attempt {attempt} failed ({path}): {error}", level=LIFECYCLE)

    def record_render(
        self,
        path: str,
        *,
        ok: bool,
        sequence: int,
        render_ms: float = 0.0,
        error: str = "",
    ) -> None:
        """Record a render result being pushed to a viewer."""
        self._log.append(
            ContentRendered(
                path=path,
                ok=ok,
                sequence=sequence,
                render_ms=render_ms,
                timestamp_ns=now_ns(),
            )
        )
        if not ok:
            self.echo(f"Render error ({path}): {error}", level=ERRORS)
        else:
            self.echo(f"Rendered {path} #{sequence} in {render_ms:.1f}ms", level=TRACE)

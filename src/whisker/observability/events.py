"""Event model for watch-session observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Session lifecycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionStarted:
    """A watch session attached to its event source.

    Attributes:
        path: Watched path.
        backend: Event source strategy (``notify`` or ``poll``).
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    backend: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SessionEnded:
    """A watch session reached its terminal state.

    Attributes:
        path: Watched path.
        reason: Why the session stopped.
        renders: Number of render results pushed during the session.
        error: Error message for fatal endings, empty otherwise.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    reason: Literal["consumer_gone", "backend_error", "source_exhausted", "cancelled"]
    renders: int
    error: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ChangeObserved:
    """A raw filesystem event reached the coalescer.

    Attributes:
        path: First affected path.
        kind: Raw change kind value.
        accepted: True if the event triggered a re-render.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    kind: str
    accepted: bool
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReadRetried:
    """A file read attempt failed and may be retried.

    Attributes:
        path: File being read.
        attempt: 1-based attempt number that failed.
        error: Error message of the failed attempt.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    attempt: int
    error: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ContentRendered:
    """A render result was pushed into a delivery channel.

    Attributes:
        path: Rendered file path.
        ok: False if the result is a failure payload.
        sequence: Position of the result within its session (0 = initial).
        render_ms: Time spent reading and rendering, in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    ok: bool
    sequence: int
    render_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type SessionEvent = (
    SessionStarted
    | SessionEnded
    | ChangeObserved
    | ReadRetried
    | ContentRendered
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()

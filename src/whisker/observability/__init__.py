"""Session observability — a queryable record of what every watch session did.

Events cover the session lifecycle (start, end), the pipeline (raw changes,
read retries, pushed renders).  All events are frozen dataclasses with
nanosecond timestamps.

Quick Start:
    >>> from whisker.observability import EventLog, SessionCollector
    >>> log = EventLog()
    >>> collector = SessionCollector(log, verbosity=1)
    >>> # Pass collector to WatchSession; inspect log.query(...) afterwards

"""

from whisker.observability.collector import ERRORS, LIFECYCLE, TRACE, SessionCollector
from whisker.observability.events import (
    ChangeObserved,
    ContentRendered,
    ReadRetried,
    SessionEnded,
    SessionEvent,
    SessionStarted,
    now_ns,
)
from whisker.observability.log import EventLog

__all__ = [
    "ERRORS",
    "LIFECYCLE",
    "TRACE",
    "ChangeObserved",
    "ContentRendered",
    "EventLog",
    "ReadRetried",
    "SessionCollector",
    "SessionEnded",
    "SessionEvent",
    "SessionStarted",
    "now_ns",
]

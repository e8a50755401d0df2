"""Content layer — reading, rendering and watching the previewed file.

Everything here works on one path at a time and holds no state shared
between watch sessions.
"""

from whisker.content.coalescer import ACCEPTED_KINDS, accepts
from whisker.content.reader import ResilientReader, read_text_resilient
from whisker.content.renderer import Rendered, RenderFailure, RenderResult, render_markdown
from whisker.content.watcher import (
    ChangeKind,
    EventSource,
    NotifyEventSource,
    PollingEventSource,
    RawChangeEvent,
    WatchTarget,
    make_event_source,
)

__all__ = [
    "ACCEPTED_KINDS",
    "ChangeKind",
    "EventSource",
    "NotifyEventSource",
    "PollingEventSource",
    "RawChangeEvent",
    "RenderFailure",
    "RenderResult",
    "Rendered",
    "ResilientReader",
    "WatchTarget",
    "accepts",
    "make_event_source",
    "read_text_resilient",
    "render_markdown",
]

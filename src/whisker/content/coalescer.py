"""Event coalescer — decides which raw changes are worth a re-render.

Only changes to a file's data or metadata trigger a render.  Accesses,
creations, removals and renames on their own are noise: an editor that
saves by replace-and-rename also produces a modify signal for the content.

There is no debounce window.  Every accepted event yields exactly one
read+render cycle, even when several arrive in a burst.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from whisker.content.watcher import ChangeKind

if TYPE_CHECKING:
    from whisker.content.watcher import RawChangeEvent

ACCEPTED_KINDS: frozenset[ChangeKind] = frozenset({
    ChangeKind.DATA_MODIFIED,
    ChangeKind.METADATA_MODIFIED,
})


def accepts(event: RawChangeEvent) -> bool:
    """Return True if *event* should trigger a re-render."""
    return event.kind in ACCEPTED_KINDS

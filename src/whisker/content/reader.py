"""Resilient reader — read a file, riding out editors' save races.

Some editors save by deleting and recreating the file, or by writing a
temporary file and renaming it over the original.  A read that lands in that
window fails even though the file is about to be there again, so reads are
retried a fixed number of times with a fixed pause in between.

The read itself runs in a worker thread and the pause is an asyncio sleep,
so neither blocks the event loop.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from whisker._errors import ReadError

if TYPE_CHECKING:
    from whisker.observability.collector import SessionCollector

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF = 0.3  # seconds


class ResilientReader:
    """Reads whole files as UTF-8 text with bounded retry.

    Args:
        attempts: Total number of read attempts (at least 1).
        backoff: Seconds to sleep between attempts.
        collector: Optional recorder notified of every failed attempt.

    """

    __slots__ = ("_attempts", "_backoff", "_collector")

    def __init__(
        self,
        *,
        attempts: int = DEFAULT_ATTEMPTS,
        backoff: float = DEFAULT_BACKOFF,
        collector: SessionCollector | None = None,
    ) -> None:
        if attempts < 1:
            msg = f"attempts must be at least 1, got {attempts}"
            raise ValueError(msg)
        self._attempts = attempts
        self._backoff = backoff
        self._collector = collector

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def backoff(self) -> float:
        return self._backoff

    async def read(self, path: Path) -> str:
        """Return the full current text of *path*.

        Raises:
            ReadError: Every attempt failed; carries the last cause.

        """
        last_error: OSError | UnicodeDecodeError | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                return await asyncio.to_thread(self._read_once, path)
            except (OSError, UnicodeDecodeError) as exc:
                last_error = exc
                if self._collector is not None:
                    self._collector.record_read_retry(
                        str(path), attempt=attempt, error=str(exc)
                    )
            if attempt < self._attempts:
                await asyncio.sleep(self._backoff)

        assert last_error is not None
        raise ReadError(path, last_error)

    def _read_once(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")


async def read_text_resilient(
    path: Path,
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff: float = DEFAULT_BACKOFF,
) -> str:
    """Read *path* with the default retry policy (convenience wrapper)."""
    return await ResilientReader(attempts=attempts, backoff=backoff).read(path)

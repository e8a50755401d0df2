"""Delivery channel — bounded, ordered conduit from one session to one viewer.

A watch session pushes render results in; the connection handler pulls them
out and relays them over the push stream.  The buffer holds at most
``capacity`` results.  When it is full, ``send`` suspends the session until
the viewer catches up, so nothing is ever dropped.

There is no separate cancellation signal.  When the viewer goes away the
connection handler calls ``detach()``; the session's next ``send`` (or the
one it is currently blocked in) fails with ``DeliveryError``, and that is
how the session learns it should terminate.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from whisker._errors import ChannelClosed, DeliveryError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable

    from whisker.content.renderer import RenderResult

DEFAULT_CAPACITY = 30

_LOST = object()


async def _race(op: Awaitable[Any], event: asyncio.Event) -> Any:
    """Await *op* unless *event* fires first.

    Returns the result of *op*, or ``_LOST`` if the event won.  Whichever
    side did not finish is cancelled, including when the caller itself is
    cancelled.
    """
    op_task = asyncio.ensure_future(op)
    waiter = asyncio.ensure_future(event.wait())
    try:
        done, _ = await asyncio.wait({op_task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not op_task.done():
            op_task.cancel()
    if op_task in done:
        return op_task.result()
    return _LOST


class DeliveryChannel:
    """Single-producer, single-consumer FIFO of render results.

    Args:
        capacity: Maximum number of buffered results.

    """

    __slots__ = ("_capacity", "_closed", "_detached", "_held", "_queue")

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            msg = f"capacity must be at least 1, got {capacity}"
            raise ValueError(msg)
        self._capacity = capacity
        self._queue: asyncio.Queue[RenderResult] = asyncio.Queue(maxsize=capacity)
        # A result taken off the queue by a receive that was then cancelled.
        self._held: RenderResult | None = None
        self._closed = asyncio.Event()
        self._detached = asyncio.Event()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def qsize(self) -> int:
        """Number of results buffered and not yet received."""
        return self._queue.qsize() + (self._held is not None)

    @property
    def closed(self) -> bool:
        """True once the producer has closed the channel."""
        return self._closed.is_set()

    @property
    def detached(self) -> bool:
        """True once the consumer has gone away."""
        return self._detached.is_set()

    # ----- Producer side -----

    async def send(self, result: RenderResult) -> None:
        """Append *result*, waiting for space if the buffer is full.

        Raises:
            DeliveryError: The consumer detached (before or while waiting),
                or the channel is already closed.

        """
        if self._detached.is_set():
            msg = "consumer disconnected"
            raise DeliveryError(msg)
        if self._closed.is_set():
            msg = "channel closed"
            raise DeliveryError(msg)

        try:
            self._queue.put_nowait(result)
            return
        except asyncio.QueueFull:
            pass

        if await _race(self._queue.put(result), self._detached) is _LOST:
            msg = "consumer disconnected"
            raise DeliveryError(msg)

    def close(self) -> None:
        """Mark the end of the stream.  Idempotent.

        Results already buffered are still delivered to the consumer.
        """
        self._closed.set()

    # ----- Consumer side -----

    async def receive(self) -> RenderResult:
        """Return the next result in send order.

        Safe to cancel: a result already taken off the queue when the
        cancellation lands is returned by the next call.

        Raises:
            ChannelClosed: The channel is closed and drained, or the
                consumer already detached.

        """
        if self._detached.is_set():
            msg = "receiver detached"
            raise ChannelClosed(msg)
        if self._held is not None:
            result, self._held = self._held, None
            return result
        if not self._queue.empty():
            return self._queue.get_nowait()
        if not self._closed.is_set():
            getter = asyncio.ensure_future(self._queue.get())
            try:
                result = await _race(getter, self._closed)
            except asyncio.CancelledError:
                if getter.done() and not getter.cancelled():
                    self._held = getter.result()
                raise
            if result is not _LOST:
                return result
        # Closed while waiting; anything sent just before close still counts.
        if not self._queue.empty():
            return self._queue.get_nowait()
        msg = "channel closed"
        raise ChannelClosed(msg)

    def detach(self) -> None:
        """Consumer departure.  Wakes a blocked ``send`` with ``DeliveryError``."""
        self._detached.set()

    async def __aiter__(self) -> AsyncIterator[RenderResult]:
        while True:
            try:
                yield await self.receive()
            except ChannelClosed:
                return

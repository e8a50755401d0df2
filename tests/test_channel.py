"""Tests for whisker.reactive.channel — bounded ordered delivery."""

from __future__ import annotations

import asyncio

import pytest

from whisker._errors import ChannelClosed, DeliveryError
from whisker.content.renderer import Rendered, RenderFailure
from whisker.reactive.channel import DEFAULT_CAPACITY, DeliveryChannel


def _r(n: int) -> Rendered:
    return Rendered(f"<p>{n}</p>")


class TestDeliveryChannelBasics:
    """Construction and FIFO behaviour."""

    def test_default_capacity(self) -> None:
        assert DEFAULT_CAPACITY == 30
        assert DeliveryChannel().capacity == 30

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError, match="capacity"):
            DeliveryChannel(0)

    @pytest.mark.asyncio
    async def test_fifo_order(self) -> None:
        channel = DeliveryChannel()
        for n in range(5):
            await channel.send(_r(n))
        assert channel.qsize == 5

        received = [await channel.receive() for _ in range(5)]
        assert received == [_r(n) for n in range(5)]

    @pytest.mark.asyncio
    async def test_failure_payloads_are_delivered(self) -> None:
        channel = DeliveryChannel()
        await channel.send(RenderFailure("boom"))
        assert await channel.receive() == RenderFailure("boom")


class TestBackpressure:
    """A full buffer blocks the producer instead of dropping results."""

    @pytest.mark.asyncio
    async def test_31st_send_blocks(self) -> None:
        channel = DeliveryChannel(30)
        for n in range(30):
            await channel.send(_r(n))

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(channel.send(_r(30)), timeout=0.1)

        # Nothing was dropped: the first result is still first.
        assert channel.qsize == 30
        assert await channel.receive() == _r(0)

    @pytest.mark.asyncio
    async def test_blocked_send_resumes_when_consumer_reads(self) -> None:
        channel = DeliveryChannel(1)
        await channel.send(_r(0))

        pending = asyncio.create_task(channel.send(_r(1)))
        await asyncio.sleep(0.01)
        assert not pending.done()

        assert await channel.receive() == _r(0)
        await asyncio.wait_for(pending, timeout=1.0)
        assert await channel.receive() == _r(1)

    @pytest.mark.asyncio
    async def test_detach_fails_blocked_send(self) -> None:
        channel = DeliveryChannel(1)
        await channel.send(_r(0))

        pending = asyncio.create_task(channel.send(_r(1)))
        await asyncio.sleep(0.01)
        channel.detach()

        with pytest.raises(DeliveryError):
            await asyncio.wait_for(pending, timeout=1.0)


class TestLifecycle:
    """close() and detach() semantics."""

    @pytest.mark.asyncio
    async def test_send_after_detach_fails(self) -> None:
        channel = DeliveryChannel()
        channel.detach()
        assert channel.detached
        with pytest.raises(DeliveryError, match="disconnected"):
            await channel.send(_r(0))

    @pytest.mark.asyncio
    async def test_send_after_close_fails(self) -> None:
        channel = DeliveryChannel()
        channel.close()
        with pytest.raises(DeliveryError, match="closed"):
            await channel.send(_r(0))

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        channel = DeliveryChannel()
        channel.close()
        channel.close()
        assert channel.closed

    @pytest.mark.asyncio
    async def test_close_drains_before_end(self) -> None:
        channel = DeliveryChannel()
        await channel.send(_r(0))
        await channel.send(_r(1))
        channel.close()

        assert [r async for r in channel] == [_r(0), _r(1)]
        with pytest.raises(ChannelClosed):
            await channel.receive()

    @pytest.mark.asyncio
    async def test_close_wakes_waiting_receiver(self) -> None:
        channel = DeliveryChannel()
        waiting = asyncio.create_task(channel.receive())
        await asyncio.sleep(0.01)
        channel.close()

        with pytest.raises(ChannelClosed):
            await asyncio.wait_for(waiting, timeout=1.0)

    @pytest.mark.asyncio
    async def test_receive_after_detach(self) -> None:
        channel = DeliveryChannel()
        await channel.send(_r(0))
        channel.detach()
        with pytest.raises(ChannelClosed):
            await channel.receive()

    @pytest.mark.asyncio
    async def test_cancelled_receive_loses_nothing(self) -> None:
        channel = DeliveryChannel()
        with pytest.raises(TimeoutError):
            await asyncio.wait_for(channel.receive(), timeout=0.05)

        await channel.send(_r(7))
        assert await channel.receive() == _r(7)


class TestCancelledReceive:
    """A receive abandoned by a timeout never loses a result."""

    @pytest.mark.asyncio
    async def test_short_timeouts_against_steady_producer(self) -> None:
        channel = DeliveryChannel()
        total = 2000

        async def produce() -> None:
            for n in range(total):
                await channel.send(_r(n))
            channel.close()

        producer = asyncio.create_task(produce())
        received = []
        while True:
            try:
                received.append(await asyncio.wait_for(channel.receive(), timeout=0.0002))
            except TimeoutError:
                continue
            except ChannelClosed:
                break
        await producer

        assert received == [_r(n) for n in range(total)]

"""Tests for the inbound read loop and its pong-driven deadline."""

import asyncio

import pytest
from websockets.exceptions import ConnectionClosedError

from helpers import FakeConnection
from tailpush.liveness import LivenessMonitor


class TestLivenessMonitor:

    @pytest.mark.asyncio
    async def test_peer_close_ends_loop(self):
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, 1.0)
        task = asyncio.create_task(monitor.run())

        conn.incoming.put_nowait(None)

        await asyncio.wait_for(task, 1)
        assert conn.closed
        conn.transport.abort.assert_not_called()

    @pytest.mark.asyncio
    async def test_expires_without_pong(self):
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, 0.1)
        loop = asyncio.get_running_loop()
        start = loop.time()

        await asyncio.wait_for(monitor.run(), 1)

        assert 0.09 <= loop.time() - start < 0.5
        conn.transport.abort.assert_called_once()

    @pytest.mark.asyncio
    async def test_acknowledge_extends_deadline(self):
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, 0.15)
        task = asyncio.create_task(monitor.run())

        for _ in range(4):
            await asyncio.sleep(0.1)
            monitor.acknowledge()
        assert not task.done()

        await asyncio.wait_for(task, 1)
        assert monitor.acks == 4
        conn.transport.abort.assert_called_once()

    @pytest.mark.asyncio
    async def test_client_messages_do_not_refresh_deadline(self):
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, 0.15)
        task = asyncio.create_task(monitor.run())

        for _ in range(4):
            conn.incoming.put_nowait("hello")
            await asyncio.sleep(0.05)

        await asyncio.wait_for(task, 0.5)
        conn.transport.abort.assert_called_once()

    @pytest.mark.asyncio
    async def test_dropped_connection_ends_loop(self):
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, 1.0)
        task = asyncio.create_task(monitor.run())

        conn.drop()

        await asyncio.wait_for(task, 1)
        assert conn.closed

    @pytest.mark.asyncio
    async def test_track_counts_only_answered_pings(self):
        conn = FakeConnection()
        monitor = LivenessMonitor(conn, 1.0)
        loop = asyncio.get_running_loop()
        answered, failed, lost = loop.create_future(), loop.create_future(), loop.create_future()
        for fut in (answered, failed, lost):
            monitor.track(fut)

        answered.set_result(0.01)
        failed.set_exception(ConnectionClosedError(None, None))
        lost.cancel()
        await asyncio.sleep(0.01)

        assert monitor.acks == 1

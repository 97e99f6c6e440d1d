"""Unit tests for the live-reload broadcast server."""

from __future__ import annotations

import asyncio
import sys

import pytest
from aiohttp.test_utils import TestClient, TestServer

from modforge.bridge.reload_server import RELOAD_MESSAGE, ReloadServer


async def _wait_for_clients(server: ReloadServer, count: int) -> None:
    for _ in range(100):
        if server.client_count == count:
            return
        await asyncio.sleep(0.01)
    raise AssertionError(f"expected {count} client(s), have {server.client_count}")


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_every_open_client_receives_reload(self):
        server = ReloadServer(port=0)
        async with TestClient(TestServer(server.app)) as client:
            ws1 = await client.ws_connect("/")
            ws2 = await client.ws_connect("/")
            await _wait_for_clients(server, 2)

            delivered = await server.broadcast()

            assert delivered == 2
            assert await ws1.receive_str(timeout=2) == RELOAD_MESSAGE
            assert await ws2.receive_str(timeout=2) == RELOAD_MESSAGE
            await ws1.close()
            await ws2.close()

    @pytest.mark.asyncio
    async def test_closed_clients_are_skipped(self):
        server = ReloadServer(port=0)
        async with TestClient(TestServer(server.app)) as client:
            ws = await client.ws_connect("/")
            await _wait_for_clients(server, 1)
            await ws.close()
            await _wait_for_clients(server, 0)
            assert await server.broadcast() == 0

    @pytest.mark.asyncio
    async def test_no_clients(self):
        assert await ReloadServer(port=0).broadcast() == 0


class TestNotifyChange:
    @pytest.mark.asyncio
    async def test_without_restart_command(self):
        assert await ReloadServer(port=0).notify_change() is None

    @pytest.mark.asyncio
    async def test_runs_restart_command_after_broadcast(self):
        server = ReloadServer(
            port=0, restart_command=[sys.executable, "-c", "print('restarted')"]
        )
        async with TestClient(TestServer(server.app)) as client:
            ws = await client.ws_connect("/")
            await _wait_for_clients(server, 1)
            result = await server.notify_change()
            assert await ws.receive_str(timeout=2) == RELOAD_MESSAGE
            await ws.close()
        assert result is not None and result.ok
        assert result.stdout.strip() == "restarted"

    @pytest.mark.asyncio
    async def test_failed_restart_command_is_reported(self):
        server = ReloadServer(port=0, restart_command=[sys.executable, "-c", "raise SystemExit(4)"])
        result = await server.notify_change()
        assert result is not None
        assert result.exit_code == 4

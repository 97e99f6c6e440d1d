"""Live-reload broadcast server.

Clients hold a WebSocket open on ``ws://<host>:<port>/``.  Whenever watched
output changes, every open socket receives the literal text ``reload``.
Delivery is best-effort: sockets that are closing are skipped and sockets
that fail are forgotten.  An optional restart command runs after each
broadcast.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from aiohttp import web
from watchfiles import awatch

from modforge.config import DEFAULT_WS_PORT
from modforge.core.process import run_command
from modforge.models.results import CommandResult

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"


class ReloadServer:
    """Accepts reload clients and broadcasts ``reload`` to all of them.

    Parameters
    ----------
    host, port:
        Listening address; the port defaults to 3414.
    restart_command:
        Optional argv run (and awaited) after every broadcast.
    """

    def __init__(
        self,
        *,
        host: str = "0.0.0.0",
        port: int = DEFAULT_WS_PORT,
        restart_command: Sequence[str] | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.restart_command = list(restart_command or [])
        self._clients: set[web.WebSocketResponse] = set()
        self._runner: web.AppRunner | None = None
        self.app = self.create_app()

    def create_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/", self._handle_socket)
        return app

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def _handle_socket(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self._clients.add(ws)
        logger.info("Client connected for hot-reload (%d open)", len(self._clients))
        try:
            async for _message in ws:
                pass  # server -> client only
        finally:
            self._clients.discard(ws)
            logger.info("Hot-reload client disconnected (%d open)", len(self._clients))
        return ws

    # ------------------------------------------------------------------
    # Broadcasting
    # ------------------------------------------------------------------

    async def broadcast(self) -> int:
        """Send ``reload`` to every open client; return how many got it."""
        delivered = 0
        for ws in list(self._clients):
            if ws.closed:
                self._clients.discard(ws)
                continue
            try:
                await ws.send_str(RELOAD_MESSAGE)
                delivered += 1
            except (ConnectionResetError, RuntimeError) as exc:
                logger.debug("Dropping reload client: %s", exc)
                self._clients.discard(ws)
        logger.info("Broadcast reload to %d client(s)", delivered)
        return delivered

    async def notify_change(self, paths: Iterable[Path] = ()) -> CommandResult | None:
        """Broadcast a reload, then run the restart command if configured."""
        changed = list(paths)
        if changed:
            logger.info("File changed: %s; broadcasting reload", changed[0])
        await self.broadcast()
        if not self.restart_command:
            return None
        result = await run_command(self.restart_command)
        if result.ok:
            logger.info("Restart command exited with code %d", result.exit_code)
        else:
            logger.warning(
                "Restart command exited with code %d: %s",
                result.exit_code,
                result.stderr.strip(),
            )
        return result

    async def watch_outputs(
        self, paths: Sequence[Path], stop_event: asyncio.Event | None = None
    ) -> None:
        """Broadcast on every change under ``paths`` until stopped."""
        existing = [str(p) for p in paths if Path(p).exists()]
        if not existing:
            logger.error("None of the reload watch paths exist: %s", list(paths))
            return
        async for changes in awatch(*existing, stop_event=stop_event):
            await self.notify_change(sorted(Path(p) for _, p in changes))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("Hot-reload server listening on ws://%s:%d", self.host, self.port)

    async def stop(self) -> None:
        for ws in list(self._clients):
            await ws.close()
        self._clients.clear()
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

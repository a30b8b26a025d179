"""WebSocket server exposing the bill store's remote call surface.

Frames from one connection are answered in order.  Several connections are
served concurrently on the same event loop; the store lock keeps each call
atomic.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any

import websockets

from splitbill.storage.store import BillStore
from splitbill.sync.protocol import handle_frame

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9810


class BillServer:
    """Serve one ``BillStore`` to WebSocket clients."""

    def __init__(
        self,
        store: BillStore,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self.store = store
        self.host = host
        self.port = port
        self._server: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._clients: set[Any] = set()
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def thread(self) -> threading.Thread | None:
        """Background thread from :func:`start_server_thread`, if any."""
        return self._thread

    async def start(self) -> None:
        """Bind and start accepting connections.

        With ``port=0`` the OS picks a free port; :attr:`port` is updated to
        the bound value.
        """
        self._loop = asyncio.get_running_loop()
        self._server = await websockets.serve(self._handle_client, self.host, self.port)
        sockets = list(self._server.sockets or [])
        if sockets:
            self.port = sockets[0].getsockname()[1]
        logger.info("splitbill: listening on %s", self.url)

    async def run_forever(self) -> None:
        """Start and run until cancelled."""
        await self.start()
        try:
            await asyncio.Future()  # block forever
        finally:
            await self.stop()

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("splitbill: server stopped")

    async def _handle_client(self, websocket: Any, path: Any = None) -> None:  # noqa: ARG002
        client_id = str(id(websocket))
        self._clients.add(websocket)
        logger.info("splitbill: client connected: %s", client_id)
        try:
            async for message in websocket:
                await websocket.send(handle_frame(self.store, message))
        except websockets.ConnectionClosed:
            pass
        except Exception as exc:
            logger.warning("splitbill: client %s error: %s", client_id, exc)
        finally:
            self._clients.discard(websocket)
            logger.info("splitbill: client disconnected: %s", client_id)

    def stop_threadsafe(self, timeout: float = 5.0) -> None:
        """Stop a server started with :func:`start_server_thread`."""
        loop = self._loop
        if loop is None or not loop.is_running():
            return
        asyncio.run_coroutine_threadsafe(self.stop(), loop).result(timeout)
        loop.call_soon_threadsafe(loop.stop)
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


def start_server_thread(
    store: BillStore,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> BillServer:
    """Start a server in a daemon thread.  Returns once it is listening."""
    server = BillServer(store, host, port)
    ready = threading.Event()

    def _run() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        loop.run_until_complete(server.start())
        ready.set()
        loop.run_forever()
        loop.close()

    server._thread = threading.Thread(target=_run, name="splitbill-server", daemon=True)
    server._thread.start()
    if not ready.wait(timeout=5.0):
        raise RuntimeError(f"splitbill server did not start on {host}:{port}")
    return server

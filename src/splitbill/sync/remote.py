"""Async proxy for the bill store contract.

``StoreClient`` exposes the eight store operations as coroutines and sends
them through a transport:

* ``WebSocketTransport`` talks to a :class:`~splitbill.sync.server.BillServer`
  over one persistent connection.  Requests carry increasing ids and a reader
  task resolves them by id, so overlapping calls may complete in any order.
* ``InProcessTransport`` runs the same request/response frames directly
  against a local ``BillStore``.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Iterable
from typing import Any, Protocol

import websockets

from splitbill.core.bill import BillSnapshot, PercentageUpdate, PersonUpdate
from splitbill.storage.store import BillStore
from splitbill.sync.protocol import (
    ProtocolError,
    decode_response,
    encode_request,
    handle_frame,
    snapshot_from_wire,
)

logger = logging.getLogger(__name__)

TRANSPORT = "TRANSPORT"
TIMEOUT = "TIMEOUT"
BAD_RESPONSE = "BAD_RESPONSE"


class RemoteCallError(Exception):
    """A store call failed in transit or was rejected by the store."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class Transport(Protocol):
    async def call(self, method: str, params: list) -> Any: ...

    async def close(self) -> None: ...


def _unwrap(envelope: dict) -> Any:
    if envelope["ok"]:
        return envelope.get("result")
    error = envelope["error"]
    raise RemoteCallError(str(error.get("code", "UNKNOWN")), str(error.get("message", "")))


class InProcessTransport:
    """Serve calls from a local store through the wire codec."""

    def __init__(self, store: BillStore) -> None:
        self.store = store
        self._ids = itertools.count(1)

    async def call(self, method: str, params: list) -> Any:
        frame = encode_request(next(self._ids), method, params)
        return _unwrap(decode_response(handle_frame(self.store, frame)))

    async def close(self) -> None:
        pass


class WebSocketTransport:
    """One persistent WebSocket connection with id-matched responses."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self.timeout = timeout
        self._ws: Any = None
        self._reader: asyncio.Task | None = None
        self._pending: dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._connect_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        async with self._connect_lock:
            if self._ws is not None:
                return
            try:
                self._ws = await websockets.connect(self.url, open_timeout=self.timeout)
            except (OSError, asyncio.TimeoutError, websockets.WebSocketException) as exc:
                raise RemoteCallError(TRANSPORT, f"Cannot connect to {self.url}: {exc}") from None
            logger.debug("splitbill: connected to %s", self.url)
            self._reader = asyncio.create_task(self._read_loop(self._ws))

    async def call(self, method: str, params: list) -> Any:
        await self.connect()
        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            try:
                await self._ws.send(encode_request(request_id, method, params))
            except (OSError, websockets.WebSocketException) as exc:
                raise RemoteCallError(TRANSPORT, f"{method}: {exc}") from None
            try:
                envelope = await asyncio.wait_for(future, self.timeout)
            except asyncio.TimeoutError:
                raise RemoteCallError(TIMEOUT, f"{method}: no response within {self.timeout}s") from None
        finally:
            self._pending.pop(request_id, None)
        return _unwrap(envelope)

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        if self._reader is not None:
            await self._reader
            self._reader = None

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for raw in ws:
                try:
                    envelope = decode_response(raw)
                except ProtocolError as exc:
                    logger.warning("splitbill: bad response: %s", exc.message)
                    continue
                future = self._pending.get(envelope.get("id"))
                if future is not None and not future.done():
                    future.set_result(envelope)
        except websockets.ConnectionClosed:
            pass
        finally:
            if self._ws is ws:
                self._ws = None
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(RemoteCallError(TRANSPORT, "connection closed"))


class StoreClient:
    """Coroutine mirror of ``BillStore`` over a transport."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    @classmethod
    def connect_url(cls, url: str, timeout: float = 10.0) -> StoreClient:
        """Client for a remote server.  The connection opens on first call."""
        return cls(WebSocketTransport(url, timeout=timeout))

    @classmethod
    def in_process(cls, store: BillStore) -> StoreClient:
        return cls(InProcessTransport(store))

    async def __aenter__(self) -> StoreClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    async def get_bill_details(self) -> BillSnapshot:
        result = await self.transport.call("getBillDetails", [])
        try:
            return snapshot_from_wire(result)
        except ProtocolError as exc:
            raise RemoteCallError(BAD_RESPONSE, exc.message) from None

    async def set_bill_amount(self, amount: float) -> None:
        await self.transport.call("setBillAmount", [amount])

    async def add_person(self, name: str) -> int:
        result = await self.transport.call("addPerson", [name])
        if isinstance(result, bool) or not isinstance(result, int):
            raise RemoteCallError(BAD_RESPONSE, f"addPerson returned {result!r}")
        return result

    async def remove_person(self, person_id: int) -> bool:
        return bool(await self.transport.call("removePerson", [person_id]))

    async def update_person(
        self,
        person_id: int,
        name: str,
        percentage: float,
        avatar: str | None = None,
    ) -> bool:
        return bool(
            await self.transport.call("updatePerson", [person_id, name, percentage, avatar])
        )

    async def batch_update_people(self, updates: Iterable[PersonUpdate]) -> bool:
        payload = [list(u) for u in updates]
        return bool(await self.transport.call("batchUpdatePeople", [payload]))

    async def update_percentage(self, person_id: int, percentage: float) -> bool:
        return bool(await self.transport.call("updatePercentage", [person_id, percentage]))

    async def batch_update_percentages(self, updates: Iterable[PercentageUpdate]) -> bool:
        payload = [list(u) for u in updates]
        return bool(await self.transport.call("batchUpdatePercentages", [payload]))

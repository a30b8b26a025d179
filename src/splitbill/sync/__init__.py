"""Remote protocol, WebSocket server, and the debounced sync client."""

from __future__ import annotations

from splitbill.sync.client import BillSyncClient
from splitbill.sync.debounce import Debouncer, DebounceState
from splitbill.sync.remote import RemoteCallError, StoreClient
from splitbill.sync.server import BillServer, start_server_thread

__all__ = [
    "BillServer",
    "BillSyncClient",
    "DebounceState",
    "Debouncer",
    "RemoteCallError",
    "StoreClient",
    "start_server_thread",
]

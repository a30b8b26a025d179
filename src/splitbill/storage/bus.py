"""Per-store event bus for post-mutation notifications.

Listeners are fire-and-forget: a failing listener is reported on stderr and
never interrupts the mutation that triggered it.
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable

Listener = Callable[[str, dict], None]


class EventBus:
    """Listeners for one store.

    The listener list is lock-guarded: the store may be mutated from the
    WebSocket server thread while another thread registers listeners.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []

    def register(self, fn: Listener) -> None:
        """Call *fn(operation, snapshot)* after every successful mutation.

        *operation* is the remote method name, e.g. ``addPerson``.
        """
        with self._lock:
            self._listeners.append(fn)

    def unregister(self, fn: Listener) -> None:
        with self._lock:
            if fn in self._listeners:
                self._listeners.remove(fn)

    def notify(self, operation: str, snapshot: dict) -> None:
        """Fire every listener.  Never raises."""
        with self._lock:
            listeners = list(self._listeners)
        for fn in listeners:
            try:
                fn(operation, snapshot)
            except Exception as exc:
                print(f"splitbill: bus listener error: {exc}", file=sys.stderr)

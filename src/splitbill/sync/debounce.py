"""Single-slot debounced task scheduling on an asyncio loop.

A ``Debouncer`` holds at most one pending timer.  Each :meth:`Debouncer.trigger`
cancels the pending timer (if any) and starts a fresh quiescence window;
when a window elapses without another trigger, the action runs.

States::

    IDLE -> SCHEDULED -> (SCHEDULED, timer reset) -> IN_FLIGHT -> IDLE

A dispatched action is never cancelled.  A trigger that arrives while an
action is in flight starts a new window, so two dispatches can overlap.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class DebounceState(enum.Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    IN_FLIGHT = "in_flight"


class Debouncer:
    """Coalesce bursts of triggers into one call of *action*."""

    def __init__(self, action: Callable[[], Awaitable[None]], delay: float) -> None:
        if delay < 0:
            raise ValueError(f"Debounce delay must be non-negative, got {delay}")
        self.action = action
        self.delay = delay
        self._timer: asyncio.TimerHandle | None = None
        self._in_flight: set[asyncio.Task] = set()
        self.dispatch_count = 0

    @property
    def state(self) -> DebounceState:
        if self._timer is not None:
            return DebounceState.SCHEDULED
        if self._in_flight:
            return DebounceState.IN_FLIGHT
        return DebounceState.IDLE

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def trigger(self) -> None:
        """(Re)start the quiescence window.  Must run inside the event loop."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending timer.  Returns whether one was pending."""
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        return True

    async def flush(self) -> None:
        """Run a pending action now instead of waiting for the window."""
        if self.cancel():
            await self._start_dispatch()

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and no action is in flight."""
        while self._timer is not None or self._in_flight:
            if self._in_flight:
                await asyncio.gather(*self._in_flight, return_exceptions=True)
            else:
                await asyncio.sleep(self.delay / 2)

    def _fire(self) -> None:
        self._timer = None
        self._start_dispatch()

    def _start_dispatch(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._dispatch())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _dispatch(self) -> None:
        self.dispatch_count += 1
        try:
            await self.action()
        except Exception:
            # actions report their own failures
            logger.exception("splitbill: debounced action failed")

"""Optimistic local mirror of the bill, kept eventually consistent with the store.

Local edits apply immediately.  Structural operations (bill amount, add,
remove) go to the store right away; name and percentage edits are coalesced
by a :class:`~splitbill.sync.debounce.Debouncer` and sent as one batch
carrying the latest local state of every participant.

Failures never roll local state back.  They are reported through the
notifier and set :attr:`BillSyncClient.unsynced`.  A failed batch is made
good by the next successful one, since every batch carries the full state.
A failed structural call (bill amount, remove) stays marked until
:meth:`BillSyncClient.load` refetches the bill.

Overlapping batches may land out of order.  A batch that lands after a newer
one has overwritten newer values in the store, so the client marks its state
unsynced again and schedules a fresh batch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from splitbill.core.bill import (
    Participant,
    ValidationError,
    is_fully_allocated,
    is_number,
    make_participant,
    parse_bill_amount,
    split_amounts,
    total_percentage,
)
from splitbill.sync.debounce import Debouncer, DebounceState
from splitbill.sync.remote import RemoteCallError, StoreClient

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]

DEFAULT_DEBOUNCE_MS = 500

_UNSET = object()


def log_notifier(message: str) -> None:
    """Default notifier: a warning on the ``splitbill.sync.client`` logger."""
    logger.warning("splitbill: %s", message)


class BillSyncClient:
    """Locally editable bill that propagates changes to a ``StoreClient``."""

    def __init__(
        self,
        store: StoreClient,
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        notifier: Notifier | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier or log_notifier
        self.last_error: str | None = None
        self._people: dict[int, Participant] = {}
        self._bill_amount: float | None = None
        # Every local edit bumps _edit_gen; a successful batch records the
        # generation it carried.
        self._edit_gen = 0
        self._synced_gen = 0
        self._name_edit_gen = 0
        self._names_synced_gen = 0
        # Batches are numbered as they are sent; _landed_seq is the newest
        # one the store has confirmed.
        self._batch_seq = 0
        self._landed_seq = 0
        # A structural call failed after its optimistic local change.
        self._stale = False
        self._debouncer = Debouncer(self._push_batch, debounce_ms / 1000)

    # ------------------------------------------------------------------
    # Local reads
    # ------------------------------------------------------------------

    @property
    def people(self) -> list[Participant]:
        return [dict(p) for p in self._people.values()]  # type: ignore[misc]

    @property
    def bill_amount(self) -> float | None:
        return self._bill_amount

    @property
    def total_percentage(self) -> float:
        return total_percentage(list(self._people.values()))

    @property
    def is_fully_allocated(self) -> bool:
        return is_fully_allocated(list(self._people.values()))

    @property
    def unsynced(self) -> bool:
        """True while local state holds changes the store has not confirmed."""
        return self._stale or self._synced_gen < self._edit_gen

    @property
    def sync_state(self) -> DebounceState:
        return self._debouncer.state

    @property
    def batches_sent(self) -> int:
        return self._debouncer.dispatch_count

    def split_amounts(self) -> dict[int, float]:
        """Dollar amount per participant id, from local state."""
        return split_amounts(self._bill_amount, list(self._people.values()))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> bool:
        """Fetch the full snapshot and replace local state with it.

        A pending debounced batch is dropped: the refetched state wins.
        """
        try:
            snapshot = await self.store.get_bill_details()
        except RemoteCallError as exc:
            self._report("Failed to load bill details", exc)
            return False

        self._debouncer.cancel()
        self._people = {p["id"]: p for p in snapshot["people"]}
        self._bill_amount = snapshot["bill_amount"]
        self._synced_gen = self._edit_gen
        self._names_synced_gen = self._name_edit_gen
        self._stale = False
        return True

    # ------------------------------------------------------------------
    # Structural operations (sent immediately)
    # ------------------------------------------------------------------

    async def set_bill_amount(self, raw: object) -> bool:
        """Validate *raw*, apply it locally, then send it.

        Invalid input is reported and never reaches the store.
        """
        try:
            amount = parse_bill_amount(raw)
        except ValidationError as exc:
            self._notify(str(exc))
            return False

        self._bill_amount = amount
        try:
            await self.store.set_bill_amount(amount)
        except RemoteCallError as exc:
            self._stale = True
            self._report("Failed to set bill amount", exc)
            return False
        return True

    async def add_person(self, name: str = "") -> int | None:
        """Create a participant in the store, then mirror it with the new id."""
        try:
            person_id = await self.store.add_person(name)
        except RemoteCallError as exc:
            self._report("Failed to add person", exc)
            return None
        self._people[person_id] = make_participant(person_id, name)
        return person_id

    async def remove_person(self, person_id: int) -> bool:
        """Remove locally at once, then in the store.

        Returns the store's answer (``False`` for an unknown id or a failed
        call).
        """
        self._people.pop(person_id, None)
        try:
            return await self.store.remove_person(person_id)
        except RemoteCallError as exc:
            self._stale = True
            self._report("Failed to remove person", exc)
            return False

    # ------------------------------------------------------------------
    # High-frequency edits (debounced)
    # ------------------------------------------------------------------

    def edit_name(self, person_id: int, name: str) -> bool:
        return self.edit_person(person_id, name=name)

    def edit_percentage(self, person_id: int, percentage: float) -> bool:
        return self.edit_person(person_id, percentage=percentage)

    def edit_person(
        self,
        person_id: int,
        *,
        name: str | None = None,
        percentage: float | None = None,
        avatar: object = _UNSET,
    ) -> bool:
        """Apply an edit locally and (re)schedule the debounced batch.

        Returns ``False`` for ids not present locally or an invalid value.
        Invalid values are reported and never applied.  Must be called from
        inside the running event loop.
        """
        person = self._people.get(person_id)
        if person is None:
            return False
        if name is not None and not isinstance(name, str):
            self._notify(f"Invalid name: {name!r}")
            return False
        if percentage is not None and not is_number(percentage):
            self._notify(f"Invalid percentage: {percentage!r}")
            return False
        if avatar is not _UNSET and avatar is not None and not isinstance(avatar, str):
            self._notify(f"Invalid avatar: {avatar!r}")
            return False

        self._edit_gen += 1
        if name is not None:
            person["name"] = name
            self._name_edit_gen = self._edit_gen
        if avatar is not _UNSET:
            person["avatar"] = avatar  # type: ignore[typeddict-item]
            self._name_edit_gen = self._edit_gen
        if percentage is not None:
            person["percentage"] = float(percentage)

        self._debouncer.trigger()
        return True

    async def flush(self) -> None:
        """Send a pending batch now rather than at the end of the window."""
        await self._debouncer.flush()

    async def aclose(self) -> None:
        """Flush pending edits and wait for in-flight batches."""
        await self.flush()
        await self._debouncer.wait_idle()

    async def _push_batch(self) -> None:
        self._batch_seq += 1
        seq = self._batch_seq
        generation = self._edit_gen
        full = self._name_edit_gen > self._names_synced_gen
        people = list(self._people.values())
        try:
            if full:
                await self.store.batch_update_people(
                    [(p["id"], p["name"], p["percentage"], p["avatar"]) for p in people]
                )
            else:
                await self.store.batch_update_percentages(
                    [(p["id"], p["percentage"]) for p in people]
                )
        except RemoteCallError as exc:
            self._report("Failed to sync changes", exc)
            return

        if seq < self._landed_seq:
            # Landed after a newer batch and put older values back.
            logger.debug(
                "splitbill: batch %d landed after batch %d, resending", seq, self._landed_seq
            )
            self._edit_gen += 1
            if full:
                self._name_edit_gen = self._edit_gen
            self._debouncer.trigger()
            return
        self._landed_seq = seq

        logger.debug(
            "splitbill: synced %d people (%s) at generation %d",
            len(people),
            "full" if full else "percentages",
            generation,
        )
        self._synced_gen = max(self._synced_gen, generation)
        if full:
            self._names_synced_gen = max(self._names_synced_gen, generation)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _report(self, action: str, exc: RemoteCallError) -> None:
        self._notify(f"{action}: {exc.message}")

    def _notify(self, message: str) -> None:
        self.last_error = message
        try:
            self.notifier(message)
        except Exception as exc:
            logger.warning("splitbill: notifier error: %s", exc)

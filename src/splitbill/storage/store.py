"""In-memory bill store: the single source of truth for BillState.

One ``BillStore`` instance owns the bill amount and the ordered participant
collection.  Every public method holds the store lock for its whole body, so
calls are atomic with respect to each other regardless of which thread or
server issues them.

Unknown ids are never an error: single-record updates return ``False`` and
batch updates skip them.  A ``False`` return does not distinguish "not
found" from "nothing changed".
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from splitbill.core.bill import (
    BillSnapshot,
    Participant,
    PercentageUpdate,
    PersonUpdate,
    is_number,
    make_participant,
    total_percentage,
)
from splitbill.storage.bus import EventBus


class BillStore:
    """Canonical bill amount plus insertion-ordered participants."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self.bus = bus or EventBus()
        self._lock = threading.Lock()
        self._bill_amount: float | None = None
        # dicts preserve insertion order; keyed by participant id
        self._people: dict[int, Participant] = {}
        self._next_id = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_bill_details(self) -> BillSnapshot:
        """Return a fresh snapshot.  The total is recomputed on every call."""
        with self._lock:
            return self._snapshot()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def set_bill_amount(self, amount: float) -> None:
        """Replace the bill amount.  Zero and negative values are accepted."""
        if not is_number(amount):
            raise ValueError(f"Bill amount must be a finite number, got {amount!r}")
        with self._lock:
            self._bill_amount = float(amount)
            snapshot = self._snapshot()
        self.bus.notify("setBillAmount", snapshot)

    def add_person(self, name: str) -> int:
        """Append a participant with a 0% share and return its new id."""
        _check_name(name)
        with self._lock:
            person_id = self._next_id
            self._next_id += 1
            self._people[person_id] = make_participant(person_id, name)
            snapshot = self._snapshot()
        self.bus.notify("addPerson", snapshot)
        return person_id

    def remove_person(self, person_id: int) -> bool:
        """Remove a participant.  Returns ``False`` if the id is unknown."""
        _check_id(person_id)
        with self._lock:
            if self._people.pop(person_id, None) is None:
                return False
            snapshot = self._snapshot()
        self.bus.notify("removePerson", snapshot)
        return True

    def update_person(
        self,
        person_id: int,
        name: str,
        percentage: float,
        avatar: str | None = None,
    ) -> bool:
        """Replace the full record for *person_id*.  ``False`` if unknown."""
        update = _check_person_update((person_id, name, percentage, avatar))
        with self._lock:
            if not self._replace(update):
                return False
            snapshot = self._snapshot()
        self.bus.notify("updatePerson", snapshot)
        return True

    def batch_update_people(self, updates: Iterable[PersonUpdate]) -> bool:
        """Apply each full-record update, skipping unknown ids.

        Always returns ``True``; partial application is not reported.
        The whole batch is validated before anything is applied.
        """
        checked = [_check_person_update(u) for u in updates]
        with self._lock:
            for update in checked:
                self._replace(update)
            snapshot = self._snapshot()
        self.bus.notify("batchUpdatePeople", snapshot)
        return True

    def update_percentage(self, person_id: int, percentage: float) -> bool:
        """Set only the percentage for *person_id*.  ``False`` if unknown."""
        person_id, percentage = _check_percentage_update((person_id, percentage))
        with self._lock:
            person = self._people.get(person_id)
            if person is None:
                return False
            person["percentage"] = percentage
            snapshot = self._snapshot()
        self.bus.notify("updatePercentage", snapshot)
        return True

    def batch_update_percentages(self, updates: Iterable[PercentageUpdate]) -> bool:
        """Percentage-only batch; unknown ids are skipped.  Always ``True``."""
        checked = [_check_percentage_update(u) for u in updates]
        with self._lock:
            for person_id, percentage in checked:
                person = self._people.get(person_id)
                if person is not None:
                    person["percentage"] = percentage
            snapshot = self._snapshot()
        self.bus.notify("batchUpdatePercentages", snapshot)
        return True

    def reset(self) -> None:
        """Clear the bill amount and participants.

        The id counter is not rewound: ids stay unique for the lifetime of
        the store.
        """
        with self._lock:
            self._bill_amount = None
            self._people.clear()
            snapshot = self._snapshot()
        self.bus.notify("reset", snapshot)

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _replace(self, update: PersonUpdate) -> bool:
        person_id, name, percentage, avatar = update
        if person_id not in self._people:
            return False
        self._people[person_id] = make_participant(person_id, name, percentage, avatar)
        return True

    def _snapshot(self) -> BillSnapshot:
        people = [dict(p) for p in self._people.values()]
        return {
            "people": people,  # type: ignore[typeddict-item]
            "total_percentage": total_percentage(people),  # type: ignore[arg-type]
            "bill_amount": self._bill_amount,
        }


# ---------------------------------------------------------------------------
# Argument checks
# ---------------------------------------------------------------------------


def _check_id(person_id: object) -> int:
    if isinstance(person_id, bool) or not isinstance(person_id, int) or person_id < 0:
        raise ValueError(f"Participant id must be a non-negative integer, got {person_id!r}")
    return person_id


def _check_name(name: object) -> str:
    if not isinstance(name, str):
        raise ValueError(f"Name must be a string, got {name!r}")
    return name


def _check_percentage(percentage: object) -> float:
    if not is_number(percentage):
        raise ValueError(f"Percentage must be a finite number, got {percentage!r}")
    return float(percentage)  # type: ignore[arg-type]


def _check_person_update(update: object) -> PersonUpdate:
    if not isinstance(update, (tuple, list)) or len(update) not in (3, 4):
        raise ValueError(f"Expected (id, name, percentage[, avatar]), got {update!r}")
    person_id, name, percentage = update[0], update[1], update[2]
    avatar = update[3] if len(update) == 4 else None
    if avatar is not None and not isinstance(avatar, str):
        raise ValueError(f"Avatar must be a string or null, got {avatar!r}")
    return (_check_id(person_id), _check_name(name), _check_percentage(percentage), avatar)


def _check_percentage_update(update: object) -> PercentageUpdate:
    if not isinstance(update, (tuple, list)) or len(update) != 2:
        raise ValueError(f"Expected (id, percentage), got {update!r}")
    return (_check_id(update[0]), _check_percentage(update[1]))

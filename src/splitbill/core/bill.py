"""Participant and snapshot shapes, client-side validation, derived values."""

from __future__ import annotations

import math
from typing import TypedDict


class Participant(TypedDict):
    id: int
    name: str
    percentage: float
    avatar: str | None


class BillSnapshot(TypedDict):
    people: list[Participant]
    total_percentage: float
    bill_amount: float | None


class ValidationError(ValueError):
    """Raised when user input is rejected before reaching the store."""


# A full-record update: (id, name, percentage, avatar)
PersonUpdate = tuple[int, str, float, str | None]
# A percentage-only update: (id, percentage)
PercentageUpdate = tuple[int, float]


def make_participant(
    participant_id: int,
    name: str = "",
    percentage: float = 0.0,
    avatar: str | None = None,
) -> Participant:
    """Build a participant record with the canonical key set."""
    return {
        "id": participant_id,
        "name": name,
        "percentage": percentage,
        "avatar": avatar,
    }


def is_number(value: object) -> bool:
    """Return ``True`` for finite ints/floats.  Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def parse_bill_amount(raw: object) -> float:
    """Parse user input for the bill amount.

    Accepts numbers and numeric strings (surrounding whitespace allowed).
    Zero and negative amounts are accepted; only non-numeric and non-finite
    input is rejected.

    Raises:
        ValidationError: If *raw* is not a finite number.
    """
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise ValidationError("Bill amount is required")
        try:
            value = float(text)
        except ValueError:
            raise ValidationError(f"Invalid bill amount: '{raw}'") from None
    elif is_number(raw):
        value = float(raw)  # type: ignore[arg-type]
    else:
        raise ValidationError(f"Invalid bill amount: {raw!r}")

    if not math.isfinite(value):
        raise ValidationError(f"Invalid bill amount: '{raw}'")
    return value


def total_percentage(people: list[Participant]) -> float:
    """Sum of all participants' percentages.  Not normalized to 100."""
    return sum(p["percentage"] for p in people)


def is_fully_allocated(people: list[Participant]) -> bool:
    """True when the percentages add up to exactly 100."""
    return math.isclose(total_percentage(people), 100.0, abs_tol=1e-9)


def share_amount(bill_amount: float | None, percentage: float) -> float:
    """Dollar amount owed for *percentage* of *bill_amount*, rounded to cents.

    An unset bill amount yields ``0.0``.
    """
    if not bill_amount:
        return 0.0
    return round(bill_amount * percentage / 100, 2)


def split_amounts(bill_amount: float | None, people: list[Participant]) -> dict[int, float]:
    """Map participant id to the dollar amount they owe, in insertion order."""
    return {p["id"]: share_amount(bill_amount, p["percentage"]) for p in people}

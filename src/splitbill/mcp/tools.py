"""MCP tool registrations: one tool per bill store operation."""

from __future__ import annotations

import logging
from typing import Annotated

from pydantic import Field

from splitbill.mcp.server import bill_store, mcp
from splitbill.sync.protocol import snapshot_to_wire

logger = logging.getLogger(__name__)

_ID = Annotated[int, Field(description="Participant id", ge=0)]
_PERCENTAGE = Annotated[float, Field(description="Share of the bill in percent (0-100)")]


@mcp.tool()
def bill_details() -> dict:
    """Current bill: participants (with dollar amounts), total percentage, bill amount."""
    return snapshot_to_wire(bill_store.get_bill_details(), with_amounts=True)


@mcp.tool()
def bill_set_amount(
    amount: Annotated[float, Field(description="Total bill amount")],
) -> dict:
    """Set the total bill amount. Returns the updated bill."""
    bill_store.set_bill_amount(amount)
    logger.info("bill amount set to %s", amount)
    return bill_details()


@mcp.tool()
def bill_add_person(
    name: Annotated[str, Field(description="Participant name (may be empty)")] = "",
) -> dict:
    """Add a participant with a 0% share. Returns the new id."""
    person_id = bill_store.add_person(name)
    return {"id": person_id, "name": name}


@mcp.tool()
def bill_remove_person(person_id: _ID) -> dict:
    """Remove a participant. ``removed`` is false for an unknown id."""
    return {"id": person_id, "removed": bill_store.remove_person(person_id)}


@mcp.tool()
def bill_update_person(
    person_id: _ID,
    name: Annotated[str, Field(description="Participant name")],
    percentage: _PERCENTAGE,
    avatar: Annotated[str | None, Field(description="Avatar reference, e.g. an image URL")] = None,
) -> dict:
    """Replace a participant's full record. ``updated`` is false for an unknown id."""
    updated = bill_store.update_person(person_id, name, percentage, avatar)
    return {"id": person_id, "updated": updated}


@mcp.tool()
def bill_batch_update_people(
    updates: Annotated[
        list[list],
        Field(description="List of [id, name, percentage, avatar] arrays; avatar may be null or omitted"),
    ],
) -> dict:
    """Replace several records at once. Unknown ids are skipped. Returns the updated bill."""
    bill_store.batch_update_people(updates)
    return bill_details()


@mcp.tool()
def bill_update_percentage(person_id: _ID, percentage: _PERCENTAGE) -> dict:
    """Set one participant's percentage. ``updated`` is false for an unknown id."""
    updated = bill_store.update_percentage(person_id, percentage)
    return {"id": person_id, "updated": updated}


@mcp.tool()
def bill_batch_update_percentages(
    updates: Annotated[list[list], Field(description="List of [id, percentage] arrays")],
) -> dict:
    """Set several percentages at once. Unknown ids are skipped. Returns the updated bill."""
    bill_store.batch_update_percentages(updates)
    return bill_details()

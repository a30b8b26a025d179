"""MCP resource registrations: read-only views of the bill."""

from __future__ import annotations

import json

from splitbill.mcp.server import bill_store, mcp
from splitbill.sync.protocol import snapshot_to_wire


@mcp.resource("splitbill://bill")
def resource_bill() -> str:
    """Current bill snapshot, with each participant's dollar amount, as JSON."""
    snapshot = bill_store.get_bill_details()
    return json.dumps(snapshot_to_wire(snapshot, with_amounts=True), sort_keys=True, indent=2)

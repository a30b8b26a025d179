"""splitbill MCP server: entry point, FastMCP instance, and the bill store it owns."""

from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from splitbill.storage.store import BillStore

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

mcp = FastMCP("splitbill")

# One bill per server process, created at start-up.
bill_store = BillStore()

# Register tools and resources by importing the modules (decorators run at import time)
import splitbill.mcp.resources as _resources  # noqa: F401, E402
import splitbill.mcp.tools as _tools  # noqa: F401, E402


def main() -> None:
    """Run the splitbill MCP server over stdio transport."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()

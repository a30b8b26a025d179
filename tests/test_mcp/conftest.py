"""Shared fixtures for MCP tests."""

from __future__ import annotations

import pytest

from splitbill.mcp.server import bill_store


@pytest.fixture(autouse=True)
def fresh_bill():
    """Empty the server's bill before each test.

    Ids keep counting across tests, so tests use the ids tools return.
    """
    bill_store.reset()
    yield bill_store
    bill_store.reset()

"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from splitbill.core.config import CONFIG_ENV, URL_ENV
from splitbill.storage.store import BillStore


@pytest.fixture()
def store() -> BillStore:
    """Return a fresh, empty store."""
    return BillStore()


@pytest.fixture()
def seeded_store(store: BillStore) -> BillStore:
    """Return a store holding Alice (id 0, 60%) and Bob (id 1, 40%) on a $50 bill."""
    store.add_person("Alice")
    store.add_person("Bob")
    store.update_percentage(0, 60)
    store.update_percentage(1, 40)
    store.set_bill_amount(50.0)
    return store


@pytest.fixture()
def live_server(store: BillStore):
    """Serve *store* on an ephemeral port in a background thread."""
    from splitbill.sync.server import start_server_thread

    server = start_server_thread(store, port=0)
    yield server
    server.stop_threadsafe()


@pytest.fixture()
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory with no config env vars set."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.delenv(URL_ENV, raising=False)
    return tmp_path


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Click CliRunner for invoking CLI commands."""
    return CliRunner()


@pytest.fixture()
def invoke(cli_runner: CliRunner, live_server, isolated_cwd: Path):
    """Return a helper that invokes CLI commands against the live server.

    Usage::

        result = invoke("add", "Alice")
    """
    from splitbill.cli.main import cli

    env = {URL_ENV: live_server.url}

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(cli, list(args), env=env, **kwargs)

    return _invoke


@pytest.fixture()
def invoke_json(invoke):
    """Like invoke, but appends --json and parses the response.

    Returns (parsed_dict, exit_code) tuple.
    """

    def _invoke_json(*args: str) -> tuple[dict, int]:
        result = invoke(*args, "--json")
        parsed = json.loads(result.output)
        return parsed, result.exit_code

    return _invoke_json

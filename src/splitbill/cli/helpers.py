"""Shared CLI helpers: config lookup, remote calls, and output utilities."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar

import click

from splitbill.core.bill import BillSnapshot, is_fully_allocated, share_amount
from splitbill.core.config import SplitbillConfig, find_config_path, load_config, server_url
from splitbill.sync.protocol import snapshot_to_wire
from splitbill.sync.remote import RemoteCallError, StoreClient

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Config & connection
# ---------------------------------------------------------------------------


def load_cli_config(is_json: bool = False) -> SplitbillConfig:
    """Load the config named by ``--config`` / env / cwd, or exit with an error."""
    ctx = click.get_current_context()
    explicit = (ctx.find_root().obj or {}).get("config_path")
    try:
        return load_config(find_config_path(explicit))
    except (OSError, ValueError) as e:
        output_error(str(e), "CONFIG_ERROR", is_json)


def resolve_url(url: str | None, config: SplitbillConfig) -> str:
    return url or server_url(config)


def run_store_call(
    url: str,
    timeout: float,
    call: Callable[[StoreClient], Awaitable[T]],
    is_json: bool,
) -> T:
    """Open a client, run one coroutine against it, close it.

    Remote failures exit with the remote error code.
    """

    async def _run() -> T:
        async with StoreClient.connect_url(url, timeout=timeout) as client:
            return await call(client)

    try:
        return asyncio.run(_run())
    except RemoteCallError as e:
        output_error(e.message, e.code, is_json)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def json_envelope(ok: bool, *, data: object = None, error: object = None) -> str:
    """Build a structured JSON output envelope."""
    result: dict = {"ok": ok}
    if data is not None:
        result["data"] = data
    if error is not None:
        result["error"] = error
    return json.dumps(result, sort_keys=True, indent=2) + "\n"


def json_error_obj(code: str, message: str) -> dict:
    return {"code": code, "message": message}


def output_error(message: str, code: str, is_json: bool, exit_code: int = 1) -> NoReturn:
    """Print error and exit. JSON errors go to stdout; human errors to stderr."""
    if is_json:
        click.echo(json_envelope(False, error=json_error_obj(code, message)))
    else:
        click.echo(f"Error: {message}", err=True)
    raise SystemExit(exit_code)


def output_result(*, data: object, human_message: str, is_json: bool) -> None:
    """Print success result in the appropriate format."""
    if is_json:
        click.echo(json_envelope(True, data=data))
    else:
        click.echo(human_message)


# ---------------------------------------------------------------------------
# Bill formatting
# ---------------------------------------------------------------------------


def format_money(amount: float | None) -> str:
    if amount is None:
        return "not set"
    return f"${amount:,.2f}"


def format_percentage(value: float) -> str:
    return f"{value:g}%"


def snapshot_data(snapshot: BillSnapshot) -> dict:
    """Wire snapshot plus each person's computed ``amount``."""
    return snapshot_to_wire(snapshot, with_amounts=True)


def format_snapshot(snapshot: BillSnapshot) -> str:
    """Human-readable bill: amount, one line per person, total."""
    lines = [f"Bill amount: {format_money(snapshot['bill_amount'])}"]
    people = snapshot["people"]
    if not people:
        lines.append("No participants.")
    for person in people:
        name = person["name"] or "(unnamed)"
        amount = share_amount(snapshot["bill_amount"], person["percentage"])
        lines.append(
            f"  [{person['id']}] {name:<20} {format_percentage(person['percentage']):>8}"
            f"  {format_money(amount)}"
        )
    total = snapshot["total_percentage"]
    marker = "ok" if is_fully_allocated(people) else "does not add up to 100%"
    lines.append(f"Total: {format_percentage(total)} ({marker})")
    return "\n".join(lines)

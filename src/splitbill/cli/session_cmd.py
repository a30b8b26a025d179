"""Interactive editing session backed by the debounced sync client.

Reads one command per line from stdin.  Name and percentage edits apply
locally at once and reach the server after the debounce window; the session
flushes anything pending on exit.
"""

from __future__ import annotations

import asyncio
import shlex
from collections.abc import Awaitable, Callable

import click

from splitbill.cli.main import cli

SESSION_HELP = """\
Commands:
  amount AMOUNT      set the bill amount
  add [NAME]         add a participant
  rm ID              remove a participant
  name ID NAME       rename (debounced)
  pct ID PERCENT     set a percentage (debounced)
  show               print local state
  flush              send pending edits now
  reload             refetch the bill from the server
  help               this text
  quit               flush and exit"""


class SessionCommandError(ValueError):
    """A session line that cannot be parsed."""


def parse_session_line(line: str) -> tuple[str, list[str]] | None:
    """Split a line into ``(command, args)``.  Blank lines and comments give ``None``."""
    try:
        parts = shlex.split(line, comments=True)
    except ValueError as e:
        raise SessionCommandError(str(e)) from None
    if not parts:
        return None
    return parts[0].lower(), parts[1:]


def _parse_id(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise SessionCommandError(f"Not a participant id: '{raw}'") from None


def _require(args: list[str], count: int, usage: str) -> None:
    if len(args) < count:
        raise SessionCommandError(f"Usage: {usage}")


async def run_session(
    client,
    read_line: Callable[[], Awaitable[str]],
    echo: Callable[[str], None],
) -> None:
    """Drive *client* (a ``BillSyncClient``) from lines returned by *read_line*.

    An empty string from *read_line* means end of input.
    """
    from splitbill.cli.helpers import format_money, format_snapshot

    def _show() -> None:
        echo(
            format_snapshot(
                {
                    "people": client.people,
                    "total_percentage": client.total_percentage,
                    "bill_amount": client.bill_amount,
                }
            )
        )
        if client.unsynced:
            echo("(unsynced changes)")

    while True:
        line = await read_line()
        if not line:
            break
        try:
            parsed = parse_session_line(line)
            if parsed is None:
                continue
            cmd, args = parsed

            if cmd in ("quit", "exit"):
                break
            elif cmd == "help":
                echo(SESSION_HELP)
            elif cmd == "show":
                _show()
            elif cmd == "amount":
                _require(args, 1, "amount AMOUNT")
                if await client.set_bill_amount(args[0]):
                    echo(f"Bill amount: {format_money(client.bill_amount)}")
            elif cmd == "add":
                person_id = await client.add_person(" ".join(args))
                if person_id is not None:
                    echo(f"Added participant {person_id}")
            elif cmd == "rm":
                _require(args, 1, "rm ID")
                if await client.remove_person(_parse_id(args[0])):
                    echo(f"Removed participant {args[0]}")
            elif cmd == "name":
                _require(args, 2, "name ID NAME")
                if not client.edit_name(_parse_id(args[0]), " ".join(args[1:])):
                    echo(f"No participant with id {args[0]}")
            elif cmd == "pct":
                _require(args, 2, "pct ID PERCENT")
                try:
                    value = float(args[1])
                except ValueError:
                    raise SessionCommandError(f"Not a percentage: '{args[1]}'") from None
                if not client.edit_percentage(_parse_id(args[0]), value):
                    echo(f"No participant with id {args[0]}")
            elif cmd == "flush":
                await client.flush()
            elif cmd == "reload":
                if await client.load():
                    _show()
            else:
                raise SessionCommandError(f"Unknown command '{cmd}' (try 'help')")
        except SessionCommandError as e:
            echo(f"! {e}")

    await client.aclose()


@cli.command("session")
@click.option("--url", default=None, help="Server URL (default: $SPLITBILL_URL or from config).")
@click.option(
    "--debounce-ms",
    type=click.IntRange(min=0),
    default=None,
    help="Quiescence window for batched edits (default from config: 500).",
)
def session(url: str | None, debounce_ms: int | None) -> None:
    """Edit the bill interactively with debounced syncing."""
    from splitbill.cli.helpers import load_cli_config, resolve_url
    from splitbill.sync.client import BillSyncClient
    from splitbill.sync.remote import StoreClient

    cfg = load_cli_config()
    target = resolve_url(url, cfg)
    window = debounce_ms if debounce_ms is not None else cfg.get("debounce_ms", 500)
    stdin = click.get_text_stream("stdin")

    def _notify(message: str) -> None:
        click.echo(f"! {message}", err=True)

    async def _read_line() -> str:
        return await asyncio.get_running_loop().run_in_executor(None, stdin.readline)

    async def _run() -> None:
        async with StoreClient.connect_url(target, timeout=cfg.get("request_timeout", 10.0)) as store:
            client = BillSyncClient(store, debounce_ms=window, notifier=_notify)
            if not await client.load():
                raise click.ClickException(f"Cannot load the bill from {target}")
            click.echo(f"Connected to {target}. Type 'help' for commands.")
            await run_session(client, _read_line, click.echo)

    asyncio.run(_run())

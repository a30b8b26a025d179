"""CLI commands that each make one call against a running bill server."""

from __future__ import annotations

import json

import click

from splitbill.cli.helpers import (
    format_money,
    format_percentage,
    format_snapshot,
    load_cli_config,
    output_error,
    output_result,
    resolve_url,
    run_store_call,
    snapshot_data,
)
from splitbill.cli.main import cli
from splitbill.core.bill import ValidationError, parse_bill_amount

# Shared options
_url_option = click.option(
    "--url",
    default=None,
    help="Server URL (default: $SPLITBILL_URL or ws://<config host>:<config port>).",
)
_json_option = click.option("--json", "output_json", is_flag=True, help="Output as JSON.")


def _call(url: str | None, output_json: bool, call):
    cfg = load_cli_config(output_json)
    return run_store_call(
        resolve_url(url, cfg),
        cfg.get("request_timeout", 10.0),
        call,
        output_json,
    )


def _parse_percentage_pairs(pairs: tuple[str, ...], is_json: bool) -> list[tuple[int, float]]:
    """Parse ``ID=PCT`` arguments."""
    updates: list[tuple[int, float]] = []
    for pair in pairs:
        raw_id, sep, raw_pct = pair.partition("=")
        try:
            if not sep:
                raise ValueError
            updates.append((int(raw_id), float(raw_pct)))
        except ValueError:
            output_error(f"Expected ID=PERCENTAGE, got '{pair}'", "INVALID_ARGUMENT", is_json)
    return updates


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command("show")
@_url_option
@_json_option
def show(url: str | None, output_json: bool) -> None:
    """Show the bill, each participant's share, and the total percentage."""
    snapshot = _call(url, output_json, lambda c: c.get_bill_details())
    output_result(
        data=snapshot_data(snapshot),
        human_message=format_snapshot(snapshot),
        is_json=output_json,
    )


# ---------------------------------------------------------------------------
# Structural commands
# ---------------------------------------------------------------------------


@cli.command("set-amount")
@click.argument("amount")
@_url_option
@_json_option
def set_amount(amount: str, url: str | None, output_json: bool) -> None:
    """Set the total bill AMOUNT.  Use ``--`` before negative values."""
    try:
        value = parse_bill_amount(amount)
    except ValidationError as e:
        output_error(str(e), "INVALID_AMOUNT", output_json)

    _call(url, output_json, lambda c: c.set_bill_amount(value))
    output_result(
        data={"billAmount": value},
        human_message=f"Bill amount set to {format_money(value)}",
        is_json=output_json,
    )


@cli.command("add")
@click.argument("name", default="")
@_url_option
@_json_option
def add(name: str, url: str | None, output_json: bool) -> None:
    """Add a participant with a 0% share."""
    person_id = _call(url, output_json, lambda c: c.add_person(name))
    output_result(
        data={"id": person_id, "name": name},
        human_message=f"Added participant {person_id}" + (f" ({name})" if name else ""),
        is_json=output_json,
    )


@cli.command("remove")
@click.argument("person_id", type=int)
@_url_option
@_json_option
def remove(person_id: int, url: str | None, output_json: bool) -> None:
    """Remove participant PERSON_ID.  Unknown ids are reported, not an error."""
    removed = _call(url, output_json, lambda c: c.remove_person(person_id))
    output_result(
        data={"id": person_id, "removed": removed},
        human_message=(
            f"Removed participant {person_id}" if removed else f"No participant with id {person_id}"
        ),
        is_json=output_json,
    )


# ---------------------------------------------------------------------------
# Update commands
# ---------------------------------------------------------------------------


@cli.command("update")
@click.argument("person_id", type=int)
@click.option("--name", required=True, help="Participant name.")
@click.option("--percentage", type=float, required=True, help="Share of the bill (0-100).")
@click.option("--avatar", default=None, help="Avatar reference, e.g. an image URL.")
@_url_option
@_json_option
def update(
    person_id: int,
    name: str,
    percentage: float,
    avatar: str | None,
    url: str | None,
    output_json: bool,
) -> None:
    """Replace the full record of participant PERSON_ID."""
    updated = _call(
        url, output_json, lambda c: c.update_person(person_id, name, percentage, avatar)
    )
    output_result(
        data={"id": person_id, "updated": updated},
        human_message=(
            f"Updated participant {person_id}" if updated else f"No participant with id {person_id}"
        ),
        is_json=output_json,
    )


@cli.command("percent")
@click.argument("person_id", type=int)
@click.argument("percentage", type=float)
@_url_option
@_json_option
def percent(person_id: int, percentage: float, url: str | None, output_json: bool) -> None:
    """Set only the PERCENTAGE of participant PERSON_ID."""
    updated = _call(url, output_json, lambda c: c.update_percentage(person_id, percentage))
    output_result(
        data={"id": person_id, "updated": updated},
        human_message=(
            f"Participant {person_id} now pays {format_percentage(percentage)}"
            if updated
            else f"No participant with id {person_id}"
        ),
        is_json=output_json,
    )


@cli.command("batch-percent")
@click.argument("pairs", nargs=-1, required=True)
@_url_option
@_json_option
def batch_percent(pairs: tuple[str, ...], url: str | None, output_json: bool) -> None:
    """Set several percentages at once: ``batch-percent 0=60 1=40``.

    Unknown ids are skipped.
    """
    updates = _parse_percentage_pairs(pairs, output_json)
    _call(url, output_json, lambda c: c.batch_update_percentages(updates))
    output_result(
        data={"updates": [list(u) for u in updates]},
        human_message=f"Sent {len(updates)} percentage update(s)",
        is_json=output_json,
    )


@cli.command("batch-update")
@click.argument("source", type=click.File("r"))
@_url_option
@_json_option
def batch_update(source, url: str | None, output_json: bool) -> None:
    """Replace several records from a JSON file (``-`` for stdin).

    The file holds a list of ``[id, name, percentage, avatar]`` arrays;
    ``avatar`` may be null or omitted.  Unknown ids are skipped.
    """
    try:
        updates = json.load(source)
    except json.JSONDecodeError as e:
        output_error(f"Invalid JSON: {e}", "INVALID_ARGUMENT", output_json)
    if not isinstance(updates, list) or not all(isinstance(u, list) for u in updates):
        output_error(
            "Expected a JSON list of [id, name, percentage, avatar] arrays",
            "INVALID_ARGUMENT",
            output_json,
        )

    _call(url, output_json, lambda c: c.batch_update_people(updates))
    output_result(
        data={"count": len(updates)},
        human_message=f"Sent {len(updates)} participant update(s)",
        is_json=output_json,
    )

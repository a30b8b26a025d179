"""CLI command for running the bill server."""

from __future__ import annotations

import asyncio
import logging

import click

from splitbill.cli.main import cli


@cli.command("serve")
@click.option("--host", default=None, help="Bind address (default from config: 127.0.0.1).")
@click.option("--port", type=int, default=None, help="Listen port (default from config: 9810).")
@click.option("-v", "--verbose", is_flag=True, help="Log every connection and mutation.")
def serve(host: str | None, port: int | None, verbose: bool) -> None:
    """Serve a fresh in-memory bill over WebSocket."""
    from splitbill.cli.helpers import load_cli_config
    from splitbill.storage.store import BillStore
    from splitbill.sync.server import BillServer

    cfg = load_cli_config()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )
    log = logging.getLogger("splitbill.serve")

    def _log_mutation(operation: str, snapshot: dict) -> None:
        log.debug(
            "%s -> %d people, total %g%%",
            operation,
            len(snapshot["people"]),
            snapshot["total_percentage"],
        )

    server_cfg = cfg.get("server", {})
    server = BillServer(
        BillStore(),
        host=host or server_cfg.get("host", "127.0.0.1"),
        port=port if port is not None else server_cfg.get("port", 9810),
    )

    server.store.bus.register(_log_mutation)
    try:
        asyncio.run(server.run_forever())
    except KeyboardInterrupt:
        click.echo("\nsplitbill: stopped.")
    except OSError as e:
        raise click.ClickException(f"Cannot listen on {server.host}:{server.port}: {e}")

"""CLI entry point, the ``config`` commands, and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from splitbill.core.config import CONFIG_FILENAME, default_config, find_config_path, serialize_config
from splitbill.storage.fs import write_config


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Config file (default: $SPLITBILL_CONFIG or ./{CONFIG_FILENAME}).",
)
@click.version_option(package_name="splitbill")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None) -> None:
    """splitbill: split a bill between participants by percentage."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.group()
def config() -> None:
    """Inspect or create the config file."""


@config.command("init")
@click.option(
    "--path",
    "target",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Where to write the file (default: ./{CONFIG_FILENAME}).",
)
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def config_init(target: str | None, force: bool) -> None:
    """Write the default config file."""
    path = Path(target) if target else Path.cwd() / CONFIG_FILENAME
    try:
        write_config(path, default_config(), overwrite=force)
    except FileExistsError:
        raise click.ClickException(f"{path} already exists. Use --force to overwrite.")
    except OSError as e:
        raise click.ClickException(f"Failed to write {path}: {e}")
    click.echo(f"Wrote {path}")


@config.command("show")
def config_show() -> None:
    """Print the effective configuration as JSON."""
    from splitbill.cli.helpers import load_cli_config

    cfg = load_cli_config()
    ctx = click.get_current_context()
    source = find_config_path((ctx.find_root().obj or {}).get("config_path"))
    click.echo(f"# source: {source or 'defaults'}", err=True)
    click.echo(serialize_config(cfg), nl=False)


def main() -> None:
    cli(obj={})


# ---------------------------------------------------------------------------
# Register command modules (must be after cli group is defined)
# ---------------------------------------------------------------------------
from splitbill.cli import bill_cmds as _bill_cmds  # noqa: E402, F401
from splitbill.cli import server_cmds as _server_cmds  # noqa: E402, F401
from splitbill.cli import session_cmd as _session_cmd  # noqa: E402, F401

if __name__ == "__main__":
    main()

from __future__ import annotations

from typing import Annotated

import typer

from btctl.cli.common import load_settings_or_exit, resolve_config_path_or_exit
from btctl.config import Settings, render_settings_toml, write_settings

app = typer.Typer(no_args_is_help=True, help="Show or create the btctl config file.")


@app.command("show")
def show_config() -> None:
    """Print the effective settings as TOML."""
    settings = load_settings_or_exit()
    path, exists = resolve_config_path_or_exit(allow_missing=True)

    typer.echo(f"# source: {path if exists else 'built-in defaults'}")
    typer.echo(render_settings_toml(settings), nl=False)


@app.command("init")
def init_config(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an existing config file"),
    ] = False,
) -> None:
    """Write the default settings to the config file."""
    path, exists = resolve_config_path_or_exit(allow_missing=True)
    if exists and not force:
        typer.echo(f"Config already exists at {path} (use --force to replace it)")
        return

    write_settings(Settings(), path)
    typer.echo(f"{'Replaced' if exists else 'Created'} {path}")


def register(parent: typer.Typer) -> None:
    parent.add_typer(app, name="config")

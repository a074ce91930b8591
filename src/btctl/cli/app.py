from __future__ import annotations

from typing import Annotated

import typer

from btctl.utils.logging import setup_logging

from .commands import COMMAND_MODULES
from .commands.status import status

app = typer.Typer(help="btctl - control the Bluetooth adapter from the terminal")

for module in COMMAND_MODULES:
    module.register(app)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", "-v", help="Show version and exit"),
    ] = False,
) -> None:
    """Show adapter status when no command is given."""
    setup_logging()

    if version:
        from btctl import __version__

        typer.echo(f"btctl {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        status()

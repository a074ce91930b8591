from __future__ import annotations

import typer

from btctl.cli.common import client_session, load_settings_or_exit, run_or_exit
from btctl.config import Settings
from btctl.core import (
    LIST_DEVICES_COLUMNS,
    DeviceRegistry,
    filter_by_status,
    format_records,
    parse_status_flags,
    resolve_projection,
)

COLUMNS_HELP = "Comma-separated columns to show as a table"
VALUES_HELP = "Comma-separated columns to print as '/'-joined values"
STATUS_HELP = "Only show devices where all of these flags are true"


async def _list_devices(
    settings: Settings,
    columns: str | None,
    values: str | None,
    status: str | None,
) -> str:
    projection, mode = resolve_projection(columns, values, LIST_DEVICES_COLUMNS)
    flags = parse_status_flags(status)

    async with client_session(settings) as client:
        known = await client.list_known_devices()

    registry = DeviceRegistry()
    registry.seed(known)
    records = filter_by_status(registry.snapshot(), flags)
    return format_records(records, projection, mode)


def list_devices(
    columns: str | None = typer.Option(None, "--columns", "-c", help=COLUMNS_HELP),
    values: str | None = typer.Option(None, "--values", "-v", help=VALUES_HELP),
    status: str | None = typer.Option(None, "--status", "-s", help=STATUS_HELP),
) -> None:
    """List devices known to the adapter."""
    settings = load_settings_or_exit()
    output = run_or_exit(_list_devices(settings, columns, values, status))
    if output:
        typer.echo(output)


def register(app: typer.Typer) -> None:
    app.command("list-devices")(list_devices)
    app.command("ls", hidden=True)(list_devices)

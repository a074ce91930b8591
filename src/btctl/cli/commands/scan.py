from __future__ import annotations

import logging

import typer

from btctl.cli.common import (
    client_session,
    err_console,
    load_settings_or_exit,
    run_or_exit,
)
from btctl.config import Settings
from btctl.core import (
    SCAN_COLUMNS,
    DiscoverySession,
    apply_name_filter,
    filter_by_status,
    format_records,
    parse_status_flags,
    resolve_projection,
    validate_duration,
    visible_only,
)

from .list_devices import COLUMNS_HELP, STATUS_HELP, VALUES_HELP

logger = logging.getLogger(__name__)

DURATION_HELP = "Scan duration in seconds (1-60). Uses config default if omitted."
NAME_HELP = "Only show devices whose alias contains this text"
ALL_HELP = "Include known devices that are not currently broadcasting"


async def _scan(
    settings: Settings,
    duration: int,
    columns: str | None,
    values: str | None,
    status: str | None,
    contains_name: str | None,
    include_all: bool,
) -> str:
    projection, mode = resolve_projection(columns, values, SCAN_COLUMNS)
    flags = parse_status_flags(status)
    duration = validate_duration(duration)

    async with client_session(settings) as client:
        session = DiscoverySession(
            client, duration, tick_interval=settings.scanning.tick_interval
        )
        err_console.print(f"Scanning for {duration} second(s)...")
        records = await session.run()

    if not include_all:
        records = visible_only(records)
    records = apply_name_filter(records, contains_name)
    records = filter_by_status(records, flags)
    logger.info("Scan returned %d device(s)", len(records))
    return format_records(records, projection, mode)


def scan(
    duration: int | None = typer.Option(None, "--duration", "-d", help=DURATION_HELP),
    columns: str | None = typer.Option(None, "--columns", "-c", help=COLUMNS_HELP),
    values: str | None = typer.Option(None, "--values", "-v", help=VALUES_HELP),
    status: str | None = typer.Option(None, "--status", "-s", help=STATUS_HELP),
    contains_name: str | None = typer.Option(
        None, "--contains-name", "-n", help=NAME_HELP
    ),
    include_all: bool = typer.Option(False, "--all", "-a", help=ALL_HELP),
) -> None:
    """Scan for nearby devices."""
    settings = load_settings_or_exit()
    if duration is None:
        duration = settings.scanning.duration

    output = run_or_exit(
        _scan(settings, duration, columns, values, status, contains_name, include_all)
    )
    if output:
        typer.echo(output)


def register(app: typer.Typer) -> None:
    app.command("scan")(scan)
    app.command("sc", hidden=True)(scan)

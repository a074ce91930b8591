from __future__ import annotations

import typer

from btctl.cli.common import (
    client_session,
    err_console,
    exit_on_error,
    load_settings_or_exit,
    report_outcomes,
    run_or_exit,
)
from btctl.config import Settings
from btctl.core import (
    SCAN_COLUMNS,
    ConnectionOrchestrator,
    DeviceRegistry,
    DiscoverySession,
    SelectionPrompt,
    parse_columns,
    resolve_aliases,
    split_aliases,
    validate_duration,
)
from btctl.errors import DeviceNotFound
from btctl.models import DeviceRecord

from .list_devices import COLUMNS_HELP
from .scan import ALL_HELP, DURATION_HELP, NAME_HELP

ALIASES_HELP = "Comma-separated device aliases; omit to pick from a scan"


async def _connect_aliases(settings: Settings, aliases: list[str]) -> bool:
    async with client_session(settings) as client:
        registry = DeviceRegistry()
        registry.seed(await client.list_known_devices())
        resolution = resolve_aliases(registry.snapshot(), aliases)

        for alias in resolution.not_found:
            typer.echo(str(DeviceNotFound(alias)))

        labels = {
            address: record.alias
            for address in resolution.addresses
            if (record := registry.get(address)) is not None
        }
        outcomes = await ConnectionOrchestrator(client).connect_many(
            resolution.addresses
        )
    return report_outcomes(outcomes, labels) and not resolution.not_found


async def _scan(settings: Settings, duration: int) -> list[DeviceRecord]:
    async with client_session(settings) as client:
        err_console.print(f"Scanning for {duration} second(s)...")
        session = DiscoverySession(
            client, duration, tick_interval=settings.scanning.tick_interval
        )
        return await session.run()


async def _connect_records(settings: Settings, records: list[DeviceRecord]) -> bool:
    labels = {record.address: record.alias for record in records}
    async with client_session(settings) as client:
        outcomes = await ConnectionOrchestrator(client).connect_many(list(labels))
    return report_outcomes(outcomes, labels)


def _connect_interactive(
    settings: Settings,
    duration: int,
    columns: str | None,
    contains_name: str | None,
    include_all: bool,
) -> bool:
    # each scan gets its own event loop; the prompt runs between them
    with exit_on_error():
        projection = parse_columns(columns) or list(SCAN_COLUMNS)
        duration = validate_duration(duration)
        prompt = SelectionPrompt(
            lambda: run_or_exit(_scan(settings, duration)),
            projection,
            prompt=typer.prompt,
            echo=typer.echo,
            name_filter=contains_name,
            visible_only=not include_all,
        )
        chosen = prompt.choose()
    return run_or_exit(_connect_records(settings, chosen))


def connect(
    aliases: list[str] | None = typer.Argument(None, help=ALIASES_HELP),
    duration: int | None = typer.Option(None, "--duration", "-d", help=DURATION_HELP),
    columns: str | None = typer.Option(None, "--columns", "-c", help=COLUMNS_HELP),
    contains_name: str | None = typer.Option(
        None, "--contains-name", "-n", help=NAME_HELP
    ),
    include_all: bool = typer.Option(False, "--all", "-a", help=ALL_HELP),
) -> None:
    """Connect to devices by alias, or pick them from a scan."""
    settings = load_settings_or_exit()
    names = split_aliases(aliases or [])

    if names:
        ok = run_or_exit(_connect_aliases(settings, names))
    else:
        if duration is None:
            duration = settings.scanning.duration
        ok = _connect_interactive(
            settings, duration, columns, contains_name, include_all
        )

    if not ok:
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    app.command("connect")(connect)
    app.command("c", hidden=True)(connect)

from __future__ import annotations

import typer

from btctl.bluez import BluezClient
from btctl.cli.common import (
    client_session,
    exit_on_error,
    load_settings_or_exit,
    report_outcomes,
    run_or_exit,
)
from btctl.config import Settings
from btctl.core import (
    Column,
    ConnectionOrchestrator,
    DeviceRegistry,
    SelectionPrompt,
    resolve_aliases,
    split_aliases,
)
from btctl.errors import DeviceNotFound
from btctl.models import DeviceRecord

from .scan import NAME_HELP

ALIASES_HELP = "Comma-separated device aliases; omit to pick from connected devices"
FORCE_HELP = "Also remove the device from the adapter after disconnecting"

SELECTION_COLUMNS = (Column.ALIAS, Column.ADDRESS)


async def _known_records(client: BluezClient) -> list[DeviceRecord]:
    registry = DeviceRegistry()
    registry.seed(await client.list_known_devices())
    return registry.snapshot()


async def _disconnect_aliases(
    settings: Settings, aliases: list[str], force: bool
) -> bool:
    async with client_session(settings) as client:
        records = await _known_records(client)
        resolution = resolve_aliases(records, aliases)

        for alias in resolution.not_found:
            typer.echo(str(DeviceNotFound(alias)))

        labels = {record.address: record.alias for record in records}
        outcomes = await ConnectionOrchestrator(client).disconnect_many(
            resolution.addresses, force=force
        )
    return report_outcomes(outcomes, labels) and not resolution.not_found


async def _connected_devices(settings: Settings) -> list[DeviceRecord]:
    async with client_session(settings) as client:
        records = await _known_records(client)
    return [record for record in records if record.connected]


async def _disconnect_records(
    settings: Settings, records: list[DeviceRecord], force: bool
) -> bool:
    labels = {record.address: record.alias for record in records}
    async with client_session(settings) as client:
        outcomes = await ConnectionOrchestrator(client).disconnect_many(
            list(labels), force=force
        )
    return report_outcomes(outcomes, labels)


def _disconnect_interactive(
    settings: Settings, contains_name: str | None, force: bool
) -> bool:
    """Pick from connected devices; ``r`` re-reads them instead of scanning."""
    with exit_on_error():
        prompt = SelectionPrompt(
            lambda: run_or_exit(_connected_devices(settings)),
            SELECTION_COLUMNS,
            prompt=typer.prompt,
            echo=typer.echo,
            name_filter=contains_name,
        )
        chosen = prompt.choose()
    return run_or_exit(_disconnect_records(settings, chosen, force))


def disconnect(
    aliases: list[str] | None = typer.Argument(None, help=ALIASES_HELP),
    force: bool = typer.Option(False, "--force", "-f", help=FORCE_HELP),
    contains_name: str | None = typer.Option(
        None, "--contains-name", "-n", help=NAME_HELP
    ),
) -> None:
    """Disconnect devices by alias, or pick them from the connected ones."""
    settings = load_settings_or_exit()
    names = split_aliases(aliases or [])

    if names:
        ok = run_or_exit(_disconnect_aliases(settings, names, force))
    else:
        ok = _disconnect_interactive(settings, contains_name, force)

    if not ok:
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    app.command("disconnect")(disconnect)
    app.command("d", hidden=True)(disconnect)

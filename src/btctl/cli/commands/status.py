from __future__ import annotations

import typer

from btctl.cli.common import client_session, load_settings_or_exit, run_or_exit
from btctl.config import Settings
from btctl.core import alias_for
from btctl.models import RawDeviceProps


def power_label(powered: bool) -> str:
    return "enabled" if powered else "disabled"


def status_lines(powered: bool, devices: list[RawDeviceProps]) -> list[str]:
    lines = [f"bluetooth: {power_label(powered)}", "connected devices:"]
    for device in devices:
        if not device.connected or device.address is None:
            continue
        line = f"{alias_for(device.address, device.alias)}/{device.address}"
        if device.battery is not None:
            line += f" (batt: {device.battery}%)"
        lines.append(line)
    return lines


async def _status(settings: Settings) -> list[str]:
    async with client_session(settings) as client:
        powered = await client.get_adapter_power()
        devices = await client.list_known_devices()
    return status_lines(powered, devices)


def status() -> None:
    """Show adapter power and connected devices."""
    settings = load_settings_or_exit()
    for line in run_or_exit(_status(settings)):
        typer.echo(line)


def register(app: typer.Typer) -> None:
    app.command("status")(status)
    app.command("s", hidden=True)(status)

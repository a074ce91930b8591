from __future__ import annotations

import typer

from btctl.cli.common import client_session, load_settings_or_exit, run_or_exit
from btctl.config import Settings

from .status import power_label


async def _toggle(settings: Settings) -> bool:
    async with client_session(settings) as client:
        powered = await client.get_adapter_power()
        await client.set_adapter_power(not powered)
        return await client.get_adapter_power()


def toggle() -> None:
    """Flip the adapter's power state."""
    settings = load_settings_or_exit()
    powered = run_or_exit(_toggle(settings))
    typer.echo(f"bluetooth: {power_label(powered)}")


def register(app: typer.Typer) -> None:
    app.command("toggle")(toggle)
    app.command("t", hidden=True)(toggle)

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine, Iterator
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from btctl.bluez import BluezClient
from btctl.config import Settings, get_settings, resolve_config_path
from btctl.errors import BtctlError
from btctl.models import Outcome, all_succeeded

T = TypeVar("T")

err_console = Console(stderr=True)


def load_settings_or_exit() -> Settings:
    try:
        return get_settings()
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


def resolve_config_path_or_exit(allow_missing: bool = False) -> tuple[Path, bool]:
    try:
        return resolve_config_path(allow_missing=allow_missing)
    except FileNotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc


async def open_client(settings: Settings) -> BluezClient:
    return await BluezClient.connect(
        adapter_path=settings.adapter.path,
        call_timeout=settings.adapter.call_timeout,
    )


@asynccontextmanager
async def client_session(settings: Settings) -> AsyncIterator[BluezClient]:
    client = await open_client(settings)
    try:
        yield client
    finally:
        await client.close()


@contextmanager
def exit_on_error() -> Iterator[None]:
    """Turn ``BtctlError`` into exit 1 and an interrupt into exit 130.

    ``typer.prompt`` reports Ctrl+C (and end of input) as ``typer.Abort``.
    """
    try:
        yield
    except BtctlError as exc:
        err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc
    except (KeyboardInterrupt, typer.Abort):
        err_console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130) from None


def run_or_exit(coro: Coroutine[Any, Any, T]) -> T:
    """Run one command coroutine under ``exit_on_error``."""
    with exit_on_error():
        return asyncio.run(coro)


def report_outcomes(outcomes: list[Outcome], labels: dict[str, str]) -> bool:
    """Echo one line per outcome; return True when all succeeded."""
    for outcome in outcomes:
        message = outcome.describe(labels.get(outcome.address))
        typer.echo(message)
    return all_succeeded(outcomes)

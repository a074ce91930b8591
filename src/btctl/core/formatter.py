"""Table and terse rendering with column projection and status filtering."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
from io import StringIO

from rich.console import Console
from rich.table import Table
from rich.text import Text

from btctl.errors import InvalidProjection
from btctl.models import DeviceRecord

COLUMN_GAP = 2
# wide enough that rich never wraps or truncates a row
RENDER_WIDTH = 10_000
TERSE_SEPARATOR = "/"
MISSING_VALUE = "-"


class Column(str, Enum):
    ALIAS = "alias"
    ADDRESS = "address"
    CONNECTED = "connected"
    TRUSTED = "trusted"
    BONDED = "bonded"
    PAIRED = "paired"
    RSSI = "rssi"

    @property
    def header(self) -> str:
        return self.value.upper()


class OutputMode(str, Enum):
    TABLE = "table"
    TERSE = "terse"


STATUS_COLUMNS = frozenset(
    {Column.CONNECTED, Column.TRUSTED, Column.BONDED, Column.PAIRED}
)

LIST_DEVICES_COLUMNS = (
    Column.ALIAS,
    Column.ADDRESS,
    Column.CONNECTED,
    Column.TRUSTED,
    Column.BONDED,
    Column.PAIRED,
)
SCAN_COLUMNS = (Column.ALIAS, Column.ADDRESS, Column.RSSI)


def _split(names: str | Iterable[str] | None) -> list[str]:
    if names is None:
        return []
    if isinstance(names, str):
        names = names.split(",")
    return [name.strip() for name in names if name.strip()]


def parse_columns(names: str | Iterable[str] | None) -> list[Column]:
    """Parse column names, rejecting anything unrecognized."""
    columns: list[Column] = []
    for name in _split(names):
        try:
            columns.append(Column(name.lower()))
        except ValueError:
            valid = ", ".join(column.value for column in Column)
            raise InvalidProjection(
                f"unknown column '{name}' (valid columns: {valid})"
            ) from None
    return columns


def parse_status_flags(names: str | Iterable[str] | None) -> list[Column]:
    flags = parse_columns(names)
    for flag in flags:
        if flag not in STATUS_COLUMNS:
            valid = ", ".join(sorted(column.value for column in STATUS_COLUMNS))
            raise InvalidProjection(
                f"'{flag.value}' is not a status flag (valid flags: {valid})"
            )
    return flags


def resolve_projection(
    columns: str | None,
    values: str | None,
    default: Sequence[Column],
) -> tuple[list[Column], OutputMode]:
    """Pick columns and mode from --columns (table) or --values (terse)."""
    if columns is not None:
        mode, selected = OutputMode.TABLE, parse_columns(columns)
    elif values is not None:
        mode, selected = OutputMode.TERSE, parse_columns(values)
    else:
        mode, selected = OutputMode.TABLE, []
    return (selected or list(default)), mode


def filter_by_status(
    records: Iterable[DeviceRecord], flags: Iterable[Column]
) -> list[DeviceRecord]:
    """Keep records where every named boolean flag is true."""
    wanted = list(flags)
    for flag in wanted:
        if flag not in STATUS_COLUMNS:
            raise InvalidProjection(f"'{flag.value}' is not a status flag")
    return [
        record
        for record in records
        if all(getattr(record, flag.value) for flag in wanted)
    ]


def cell_value(record: DeviceRecord, column: Column) -> str:
    value = getattr(record, column.value)
    if value is None:
        return MISSING_VALUE
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_rows(
    headers: Sequence[str],
    rows: Iterable[Sequence[str]],
    mode: OutputMode,
) -> str:
    """Render already-projected rows; works for any column set."""
    materialized = [list(row) for row in rows]
    if mode is OutputMode.TERSE:
        return "\n".join(TERSE_SEPARATOR.join(row) for row in materialized)

    table = Table(
        box=None,
        show_edge=False,
        pad_edge=False,
        padding=(0, COLUMN_GAP, 0, 0),
        header_style="",
    )
    for header in headers:
        table.add_column(Text(header.upper()), no_wrap=True)
    for row in materialized:
        table.add_row(*(Text(cell) for cell in row))

    buffer = StringIO()
    console = Console(
        file=buffer,
        width=RENDER_WIDTH,
        color_system=None,
        highlight=False,
    )
    console.print(table)
    return "\n".join(line.rstrip() for line in buffer.getvalue().splitlines())


def format_records(
    records: Iterable[DeviceRecord],
    columns: Sequence[Column],
    mode: OutputMode = OutputMode.TABLE,
) -> str:
    if not columns:
        raise InvalidProjection("at least one column is required")
    rows = ([cell_value(record, column) for column in columns] for record in records)
    return format_rows([column.header for column in columns], rows, mode)

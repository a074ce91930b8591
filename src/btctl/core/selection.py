"""Indexed device listings, index/alias resolution and the interactive prompt."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from btctl.errors import DeviceNotFound, InvalidSelectionInput
from btctl.models import DeviceRecord

from .formatter import Column, OutputMode, cell_value, format_rows
from .registry import visible_only as only_visible

logger = logging.getLogger(__name__)

IDX_HEADER = "idx"
RESCAN_ANSWER = "r"


def render(records: Sequence[DeviceRecord], columns: Sequence[Column]) -> str:
    """Table with a leading ``IDX`` column; index ``i`` maps to ``records[i]``."""
    headers = [IDX_HEADER, *(column.header for column in columns)]
    rows = (
        [f"({index})", *(cell_value(record, column) for column in columns)]
        for index, record in enumerate(records)
    )
    return format_rows(headers, rows, OutputMode.TABLE)


def parse_indices(text: str, count: int) -> list[int]:
    """Parse ``"0,2"`` into ``[0, 2]``; duplicates collapse, order is kept."""
    parts = [part.strip() for part in text.split(",")]
    if not any(parts):
        raise InvalidSelectionInput("no device index given")

    indices: list[int] = []
    for part in parts:
        if not part:
            raise InvalidSelectionInput(f"empty index in '{text.strip()}'")
        try:
            index = int(part)
        except ValueError:
            raise InvalidSelectionInput(f"'{part}' is not a device index") from None
        if not 0 <= index < count:
            raise InvalidSelectionInput(
                f"index {index} is out of range (0-{count - 1})"
                if count
                else f"index {index} is out of range (no devices listed)"
            )
        if index not in indices:
            indices.append(index)
    return indices


@dataclass(frozen=True)
class Resolution:
    addresses: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


def split_aliases(text: str | Iterable[str]) -> list[str]:
    if isinstance(text, str):
        text = [text]
    aliases: list[str] = []
    for item in text:
        aliases.extend(part.strip() for part in item.split(",") if part.strip())
    return aliases


def resolve_aliases(
    records: Sequence[DeviceRecord], aliases: Iterable[str]
) -> Resolution:
    """Match aliases exactly against ``records``; the first match wins."""
    by_alias: dict[str, str] = {}
    for record in records:
        by_alias.setdefault(record.alias, record.address)

    resolution = Resolution()
    for alias in aliases:
        address = by_alias.get(alias)
        if address is None:
            if alias not in resolution.not_found:
                resolution.not_found.append(alias)
        elif address not in resolution.addresses:
            resolution.addresses.append(address)
    return resolution


def apply_name_filter(
    records: Iterable[DeviceRecord], substring: str | None
) -> list[DeviceRecord]:
    if not substring:
        return list(records)
    return [record for record in records if substring in record.alias]


class SelectionPrompt:
    """Interactive pick of one or more devices from a refreshable listing.

    ``refresh`` produces the records to choose from; it runs once up front and
    again on every re-scan request, with the same name filter applied. Both
    ``refresh`` and ``prompt`` are plain callables: the prompt reads stdin, so
    it must run outside any event loop for Ctrl+C to interrupt it.
    """

    def __init__(
        self,
        refresh: Callable[[], list[DeviceRecord]],
        columns: Sequence[Column],
        prompt: Callable[[str], str],
        echo: Callable[[str], None],
        name_filter: str | None = None,
        visible_only: bool = False,
    ) -> None:
        self._refresh = refresh
        self._columns = list(columns)
        self._prompt = prompt
        self._echo = echo
        self._name_filter = name_filter
        self._visible_only = visible_only

    def _load(self) -> list[DeviceRecord]:
        records = self._refresh()
        if self._visible_only:
            records = only_visible(records)
        return apply_name_filter(records, self._name_filter)

    def choose(self) -> list[DeviceRecord]:
        records = self._load()
        while True:
            if records:
                self._echo(render(records, self._columns))
                question = (
                    "Select device(s) by index, comma separated, "
                    f"or '{RESCAN_ANSWER}' to re-scan"
                )
            else:
                self._echo("no devices found")
                question = f"Enter '{RESCAN_ANSWER}' to re-scan"

            answer = self._prompt(question).strip()
            if answer.lower() == RESCAN_ANSWER:
                logger.debug("Re-scan requested")
                records = self._load()
                continue
            if not records:
                raise DeviceNotFound(answer or "no devices to select")
            return [records[index] for index in parse_indices(answer, len(records))]

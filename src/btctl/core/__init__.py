from __future__ import annotations

from .formatter import (
    LIST_DEVICES_COLUMNS,
    SCAN_COLUMNS,
    STATUS_COLUMNS,
    Column,
    OutputMode,
    cell_value,
    filter_by_status,
    format_records,
    format_rows,
    parse_columns,
    parse_status_flags,
    resolve_projection,
)
from .orchestrator import ConnectionOrchestrator
from .registry import DeviceRegistry, alias_for, visible_only
from .selection import (
    Resolution,
    SelectionPrompt,
    apply_name_filter,
    parse_indices,
    render,
    resolve_aliases,
    split_aliases,
)
from .session import DiscoverySession, SessionState, validate_duration

__all__ = [
    "LIST_DEVICES_COLUMNS",
    "SCAN_COLUMNS",
    "STATUS_COLUMNS",
    "Column",
    "ConnectionOrchestrator",
    "DeviceRegistry",
    "DiscoverySession",
    "OutputMode",
    "Resolution",
    "SelectionPrompt",
    "SessionState",
    "alias_for",
    "apply_name_filter",
    "cell_value",
    "filter_by_status",
    "format_records",
    "format_rows",
    "parse_columns",
    "parse_indices",
    "parse_status_flags",
    "render",
    "resolve_aliases",
    "resolve_projection",
    "split_aliases",
    "validate_duration",
]

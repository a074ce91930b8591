from __future__ import annotations

import pytest

from btctl.core import (
    Column,
    OutputMode,
    filter_by_status,
    format_records,
    format_rows,
    parse_columns,
    parse_status_flags,
    resolve_projection,
)
from btctl.core.formatter import LIST_DEVICES_COLUMNS, SCAN_COLUMNS
from btctl.errors import InvalidInput, InvalidProjection
from btctl.models import DeviceOrigin, DeviceRecord


def _record(**overrides) -> DeviceRecord:
    values = {
        "alias": "Dev1",
        "address": "AA:BB:CC:DD:EE:FF",
        "connected": False,
        "trusted": True,
        "bonded": False,
        "paired": False,
        "origin": DeviceOrigin.KNOWN,
    }
    values.update(overrides)
    return DeviceRecord(**values)


def test_table_render_projects_requested_columns():
    output = format_records([_record()], [Column.ALIAS, Column.CONNECTED])

    assert output.splitlines() == ["ALIAS  CONNECTED", "Dev1   false"]


def test_terse_render_joins_values_without_header():
    output = format_records(
        [_record()], [Column.ALIAS, Column.CONNECTED], OutputMode.TERSE
    )

    assert output == "Dev1/false"


def test_table_widths_follow_longest_cell():
    records = [
        _record(alias="A"),
        _record(alias="Living Room Speaker", address="11:22:33:44:55:66"),
    ]

    lines = format_records(records, [Column.ALIAS, Column.ADDRESS]).splitlines()

    assert lines[0] == "ALIAS                ADDRESS"
    assert lines[1] == "A                    AA:BB:CC:DD:EE:FF"
    assert lines[2] == "Living Room Speaker  11:22:33:44:55:66"


def test_missing_rssi_renders_as_dash():
    records = [_record(rssi=-47), _record(alias="Dev2")]

    output = format_records(records, [Column.ALIAS, Column.RSSI], OutputMode.TERSE)

    assert output.splitlines() == ["Dev1/-47", "Dev2/-"]


def test_empty_records_render_header_only_in_table_mode():
    assert format_records([], [Column.ALIAS]) == "ALIAS"
    assert format_records([], [Column.ALIAS], OutputMode.TERSE) == ""


def test_format_rows_handles_arbitrary_headers():
    output = format_rows(["idx", "name"], [["(0)", "x"]], OutputMode.TABLE)

    assert output.splitlines() == ["IDX  NAME", "(0)  x"]


def test_table_cells_are_plain_text():
    records = [_record(alias="[bold]Dev[/bold] :smile:")]

    output = format_records(records, [Column.ALIAS, Column.TRUSTED])

    assert "\x1b" not in output
    assert output.splitlines() == [
        "ALIAS                     TRUSTED",
        "[bold]Dev[/bold] :smile:  true",
    ]


def test_long_rows_are_not_wrapped():
    alias = "x" * 300

    lines = format_records([_record(alias=alias)], [Column.ALIAS]).splitlines()

    assert lines == ["ALIAS", alias]


def test_status_filter_is_independent_of_displayed_columns():
    records = [_record(alias="Trusted"), _record(alias="Stranger", trusted=False)]

    kept = filter_by_status(records, [Column.TRUSTED])
    output = format_records(kept, [Column.ALIAS, Column.CONNECTED])

    assert [r.alias for r in kept] == ["Trusted"]
    assert "Stranger" not in output
    assert "TRUSTED" not in output


def test_status_filter_requires_every_flag():
    records = [
        _record(alias="Both", paired=True),
        _record(alias="OnlyTrusted"),
    ]

    kept = filter_by_status(records, [Column.TRUSTED, Column.PAIRED])

    assert [r.alias for r in kept] == ["Both"]


def test_status_filter_with_no_flags_keeps_everything():
    records = [_record(), _record(alias="Other", trusted=False)]

    assert filter_by_status(records, []) == records


def test_parse_columns_accepts_comma_list_and_case():
    assert parse_columns("alias, ADDRESS,rssi") == [
        Column.ALIAS,
        Column.ADDRESS,
        Column.RSSI,
    ]
    assert parse_columns(["paired"]) == [Column.PAIRED]
    assert parse_columns(None) == []


def test_parse_columns_rejects_unknown_name():
    with pytest.raises(InvalidProjection, match="unknown column 'name'"):
        parse_columns("alias,name")


def test_parse_status_flags_rejects_non_boolean_columns():
    assert parse_status_flags("trusted,bonded") == [Column.TRUSTED, Column.BONDED]
    with pytest.raises(InvalidProjection):
        parse_status_flags("rssi")


def test_projection_errors_are_input_errors():
    with pytest.raises(InvalidInput):
        format_records([_record()], [])


def test_resolve_projection_defaults_and_modes():
    assert resolve_projection(None, None, SCAN_COLUMNS) == (
        list(SCAN_COLUMNS),
        OutputMode.TABLE,
    )
    assert resolve_projection("alias", None, SCAN_COLUMNS) == (
        [Column.ALIAS],
        OutputMode.TABLE,
    )
    assert resolve_projection(None, "alias,connected", LIST_DEVICES_COLUMNS) == (
        [Column.ALIAS, Column.CONNECTED],
        OutputMode.TERSE,
    )
    assert resolve_projection(None, "", LIST_DEVICES_COLUMNS) == (
        list(LIST_DEVICES_COLUMNS),
        OutputMode.TERSE,
    )

from __future__ import annotations

import json

from table2json.models.error_record import ErrorRecord


def test_error_record_column_minus_one_support():
    rec = ErrorRecord.create(
        file="book.xlsx",
        table="Orders",
        column=-1,  # table-level error
        error_type="EMPTY_HEADER_ROW",
        message="header row has no key paths",
    )
    assert rec.column == -1
    data = json.loads(rec.to_json_line())
    assert data["column"] == -1
    assert data["table"] == "Orders"
    assert data["error_type"] == "EMPTY_HEADER_ROW"
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == {"timestamp", "file", "table", "column", "error_type", "message"}


def test_error_record_positive_column():
    rec = ErrorRecord.create("book.xlsx", "Orders", 3, "INVALID_KEY_PATH", "invalid key path: 'a..b'")
    data = json.loads(rec.to_json_line())
    assert data["column"] == 3
    assert data["message"] == "invalid key path: 'a..b'"


def test_error_record_non_ascii_kept():
    rec = ErrorRecord.create("données.xlsx", "Tabelle", 1, "INVALID_KEY_PATH", "invalid key path: 'städte'")
    assert "données.xlsx" in rec.to_json_line()

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from conftest import make_workbook
from table2json.excel.writer import HEADER_LABELS, DirectorySink, SheetSink, SinkWriteError
from table2json.models.table_result import TableResult, TableStatus


def _valid(name: str, lines: list[str], rows: int) -> TableResult:
    return TableResult(
        name=name,
        status=TableStatus.CONVERTED,
        records=[{}] * rows,
        json_lines=lines,
        source_file="book.xlsx",
    )


def _invalid(name: str) -> TableResult:
    return TableResult(
        name=name,
        status=TableStatus.INVALID,
        source_file="book.xlsx",
        error_type="INVALID_KEY_PATH",
        error="invalid key paths: 'bad key' (column 1)",
    )


def test_sheet_sink_layout(temp_workdir: Path):
    book = make_workbook(temp_workdir / "data" / "book.xlsx", {"Data": {"rows": [["x"]]}})
    results = [
        _valid("Customers", ["[", '{"id":1},', '{"id":2}', "]"], rows=2),
        _invalid("Orders"),
    ]
    written = SheetSink(book).write(results)
    assert written.location == book
    assert written.written_tables == 1

    wb = load_workbook(book)
    ws = wb["#table2json"]
    assert wb.active.title == "#table2json"
    assert [ws.cell(row=r, column=1).value for r in range(1, 6)] == HEADER_LABELS
    assert ws.cell(row=1, column=2).value == "book.xlsx"
    assert ws.cell(row=2, column=2).value == "Customers"
    assert ws.cell(row=3, column=2).value is True
    assert ws.cell(row=4, column=2).value == 2
    assert [ws.cell(row=r, column=2).value for r in range(5, 9)] == ["[", '{"id":1},', '{"id":2}', "]"]
    assert ws.cell(row=2, column=3).value == "Orders"
    assert ws.cell(row=3, column=3).value is False
    assert ws.cell(row=4, column=3).value == 0
    assert ws.cell(row=5, column=3).value is None
    # source sheet untouched
    assert wb["Data"]["A1"].value == "x"


def test_sheet_sink_fills(temp_workdir: Path):
    book = temp_workdir / "data" / "new.xlsx"
    SheetSink(book).write([])
    ws = load_workbook(book)["#table2json"]
    assert ws["A1"].fill.start_color.rgb.endswith("AAAAFF")
    assert ws["A2"].fill.start_color.rgb.endswith("AAFFAA")


def test_sheet_sink_replaces_previous_report(temp_workdir: Path):
    book = make_workbook(temp_workdir / "data" / "book.xlsx", {"Data": {"rows": [["x"]]}})
    sink = SheetSink(book, sheet_name="Report")
    sink.write([_valid("A", ["[", '{"a":1},', '{"a":2},', '{"a":3}', "]"], rows=3)])
    sink.write([_valid("B", ["[", "]"], rows=0)])
    wb = load_workbook(book)
    assert wb.sheetnames == ["Data", "Report"]
    ws = wb["Report"]
    assert ws.max_row == 6
    assert ws.cell(row=2, column=2).value == "B"
    assert ws["B7"].value is None


def test_sheet_sink_rejects_non_workbook_path(temp_workdir: Path):
    with pytest.raises(SinkWriteError):
        SheetSink(temp_workdir / "data" / "out.csv").write([])


def test_sheet_sink_corrupt_workbook(temp_workdir: Path):
    bad = temp_workdir / "data" / "bad.xlsx"
    bad.write_bytes(b"garbage")
    with pytest.raises(SinkWriteError):
        SheetSink(bad).write([])


def test_directory_sink(temp_workdir: Path):
    out = temp_workdir / "out"
    written = DirectorySink(out).write([_valid("Customers", ["[", '{"id":1}', "]"], rows=1), _invalid("Orders")])
    assert written.written_tables == 1
    assert (out / "Customers.json").read_text(encoding="utf-8") == '[\n{"id":1}\n]\n'
    assert not (out / "Orders.json").exists()


def test_directory_sink_duplicate_names(temp_workdir: Path):
    results = [_valid("T", ["[", "]"], rows=0), _valid("T", ["[", "]"], rows=0)]
    with pytest.raises(SinkWriteError):
        DirectorySink(temp_workdir / "out").write(results)
    assert not (temp_workdir / "out").exists()


def test_directory_sink_os_error(temp_workdir: Path):
    blocker = temp_workdir / "out"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    with pytest.raises(SinkWriteError):
        DirectorySink(blocker).write([_valid("T", ["[", "]"], rows=0)])


def test_directory_sink_rerun_removes_file_of_invalid_table(temp_workdir: Path):
    out = temp_workdir / "out"
    sink = DirectorySink(out)
    sink.write([_valid("Orders", ["[", '{"no":10}', "]"], rows=1), _valid("Customers", ["[", "]"], rows=0)])
    assert (out / "Orders.json").exists()

    written = sink.write([_invalid("Orders"), _valid("Customers", ["[", '{"id":1}', "]"], rows=1)])

    assert written.written_tables == 1
    assert not (out / "Orders.json").exists()
    assert (out / "Customers.json").read_text(encoding="utf-8") == '[\n{"id":1}\n]\n'
    assert sorted(p.name for p in out.iterdir()) == ["Customers.json"]


def test_directory_sink_failed_write_keeps_previous_output(temp_workdir: Path):
    out = temp_workdir / "out"
    sink = DirectorySink(out)
    sink.write([_valid("A", ["[", '{"a":1}', "]"], rows=1), _valid("B", ["[", '{"b":1}', "]"], rows=1)])

    original = Path.write_text
    calls: list[str] = []

    def fail_second(self, *args, **kwargs):
        calls.append(self.name)
        if len(calls) == 2:
            raise OSError("disk full")
        return original(self, *args, **kwargs)

    with patch.object(Path, "write_text", fail_second):
        with pytest.raises(SinkWriteError):
            sink.write([_valid("A", ["[", '{"a":2}', "]"], rows=1), _valid("B", ["[", '{"b":2}', "]"], rows=1)])

    assert (out / "A.json").read_text(encoding="utf-8") == '[\n{"a":1}\n]\n'
    assert (out / "B.json").read_text(encoding="utf-8") == '[\n{"b":1}\n]\n'
    assert sorted(p.name for p in out.iterdir()) == ["A.json", "B.json"]

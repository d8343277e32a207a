from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.styles import PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from ..models.config_models import DEFAULT_SHEET_NAME
from ..models.table_result import TableResult

"""Conversion sinks.

SheetSink writes a report sheet into a workbook:

    A1 file     B1.. source file of each table
    A2 table    B2.. table name
    A3 isValid  B3.. validity flag
    A4 rows     B4.. row count (0 when invalid)
    A5 json     B5.. one JSON line per cell, invalid tables left empty

DirectorySink writes one ``<table>.json`` file per valid table and removes
the file of any table that is not valid.

SheetSink saves the workbook once, so a failed write leaves the previous
report untouched.
"""

__all__ = [
    "DirectorySink",
    "HEADER_LABELS",
    "SheetSink",
    "SinkWriteError",
    "WriteResult",
]

HEADER_LABELS = ["file", "table", "isValid", "rows", "json"]
LABEL_FILL = PatternFill(fill_type="solid", start_color="AAFFAA", end_color="AAFFAA")
TOP_FILL = PatternFill(fill_type="solid", start_color="AAAAFF", end_color="AAAAFF")
JSON_FIRST_ROW = len(HEADER_LABELS)


class SinkWriteError(Exception):
    """Raised when conversion output cannot be written."""


@dataclass(frozen=True)
class WriteResult:
    location: Path  # workbook file or output directory
    written_tables: int  # tables with JSON output


class SheetSink:
    """Write the report sheet into ``workbook_path``.

    The sheet is replaced when it already exists and made the active sheet.
    A missing workbook is created.
    """

    def __init__(self, workbook_path: Path, sheet_name: str = DEFAULT_SHEET_NAME) -> None:
        self.workbook_path = workbook_path
        self.sheet_name = sheet_name

    def _open(self) -> Workbook:
        if not self.workbook_path.exists():
            wb = Workbook()
            wb.remove(wb.active)
            return wb
        try:
            return load_workbook(self.workbook_path)
        except Exception as e:
            raise SinkWriteError(f"cannot open workbook {self.workbook_path.name}: {e}") from e

    def _blank_sheet(self, wb: Workbook) -> Worksheet:
        if self.sheet_name in wb.sheetnames:
            index = wb.sheetnames.index(self.sheet_name)
            wb.remove(wb[self.sheet_name])
            return wb.create_sheet(self.sheet_name, index)
        return wb.create_sheet(self.sheet_name)

    def write(self, results: Sequence[TableResult]) -> WriteResult:
        if self.workbook_path.suffix.lower() != ".xlsx":
            raise SinkWriteError(f"not a workbook path: {self.workbook_path}")
        wb = self._open()
        ws = self._blank_sheet(wb)
        render_report(ws, results)
        wb.active = wb.sheetnames.index(self.sheet_name)
        try:
            wb.save(self.workbook_path)
        except Exception as e:
            raise SinkWriteError(f"cannot save workbook {self.workbook_path}: {e}") from e
        finally:
            wb.close()
        return WriteResult(
            location=self.workbook_path,
            written_tables=sum(1 for r in results if r.is_valid),
        )


def render_report(ws: Worksheet, results: Sequence[TableResult]) -> None:
    """Fill ``ws`` with the label column and one column per table."""
    for row, label in enumerate(HEADER_LABELS, start=1):
        cell = ws.cell(row=row, column=1, value=label)
        cell.fill = TOP_FILL if row == 1 else LABEL_FILL

    for offset, result in enumerate(results):
        column = offset + 2
        ws.cell(row=1, column=column, value=result.source_file)
        ws.cell(row=2, column=column, value=result.name)
        ws.cell(row=3, column=column, value=result.is_valid)
        ws.cell(row=4, column=column, value=result.row_count)
        if not result.is_valid:
            continue
        for line_no, line in enumerate(result.json_lines):
            ws.cell(row=JSON_FIRST_ROW + line_no, column=column, value=line)


class DirectorySink:
    """Write ``<table name>.json`` per valid table into ``directory``.

    Files are staged as ``.<name>.json.tmp`` and renamed once every table is
    staged, so a failed write leaves the previous output in place. The file
    of a table that is not valid in this run is removed.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def write(self, results: Sequence[TableResult]) -> WriteResult:
        valid = [r for r in results if r.is_valid]
        names = [r.name for r in valid]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SinkWriteError(f"duplicate table names: {duplicates}")

        staged: list[tuple[Path, Path]] = []
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            for result in valid:
                target = self.directory / f"{result.name}.json"
                tmp = self.directory / f".{result.name}.json.tmp"
                staged.append((tmp, target))
                tmp.write_text("\n".join(result.json_lines) + "\n", encoding="utf-8")
        except OSError as e:
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)
            raise SinkWriteError(f"cannot write to {self.directory}: {e}") from e

        try:
            for tmp, target in staged:
                tmp.replace(target)
            for result in results:
                if not result.is_valid and result.name not in names:
                    (self.directory / f"{result.name}.json").unlink(missing_ok=True)
        except OSError as e:
            raise SinkWriteError(f"cannot write to {self.directory}: {e}") from e
        return WriteResult(location=self.directory, written_tables=len(valid))

from __future__ import annotations

import math
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.cell import range_boundaries
from openpyxl.worksheet.table import Table
from openpyxl.worksheet.worksheet import Worksheet

from ..models.config_models import DEFAULT_SHEET_NAME, ConvertConfig, SourceMode
from ..models.table_detail import TableDetail

"""Table sources.

Three ways of locating tables, selected by ``source_mode``:

- tables: defined Excel tables (Insert > Table). The row directly above a
  table holds its key paths; a table starting on row 1 has none.
- sheets: every worksheet is one table; ``header_row`` holds the key paths and
  the non-blank rows below it are the data.
- csv: the file is one table, same header_row rule as sheets.

CSV cells are kept as text. Empty data cells are reported as "" and numpy /
pandas scalars are turned into plain Python values before they reach the
record builder.
"""

__all__ = [
    "SourceUnavailableError",
    "load_tables",
    "read_csv_table",
    "read_sheet_blocks",
    "read_workbook_tables",
]


class SourceUnavailableError(Exception):
    """Raised when the source file is missing or cannot be read."""


def _header_text(value: Any) -> str:
    """Display text of a header cell."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def _cell_value(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return ""
    return value


def _check_source(path: Path) -> None:
    if not path.exists():
        raise SourceUnavailableError(f"source not found: {path}")
    if not path.is_file():
        raise SourceUnavailableError(f"source is not a file: {path}")


def _table_detail(ws: Worksheet, table: Table, file_name: str) -> TableDetail:
    min_col, min_row, max_col, max_row = range_boundaries(table.ref)
    header_count = table.headerRowCount if table.headerRowCount is not None else 1
    totals_count = table.totalsRowCount or 0

    if min_row > 1:
        above = next(
            ws.iter_rows(min_row=min_row - 1, max_row=min_row - 1,
                         min_col=min_col, max_col=max_col, values_only=True)
        )
        header_row = [_header_text(v) for v in above]
    else:
        header_row = []

    first_data = min_row + header_count
    last_data = max_row - totals_count
    rows: list[list[Any]] = []
    if first_data <= last_data:
        for raw in ws.iter_rows(min_row=first_data, max_row=last_data,
                                min_col=min_col, max_col=max_col, values_only=True):
            rows.append([_cell_value(v) for v in raw])

    return TableDetail(
        name=table.displayName or table.name,
        header_row=header_row,
        rows=rows,
        source_file=file_name,
        sheet=ws.title,
    )


def read_workbook_tables(path: Path) -> list[TableDetail]:
    """Read every defined table of a workbook, in sheet then definition order.

    Raises:
        SourceUnavailableError: If the workbook is missing or unreadable
    """
    _check_source(path)
    try:
        # cached values rather than formulas
        wb = load_workbook(path, data_only=True)
    except Exception as e:
        raise SourceUnavailableError(f"cannot open workbook {path.name}: {e}") from e
    try:
        details: list[TableDetail] = []
        for ws in wb.worksheets:
            for table in ws.tables.values():
                details.append(_table_detail(ws, table, path.name))
        return details
    finally:
        wb.close()


def _frame_to_detail(
    df: pd.DataFrame, name: str, header_row: int, file_name: str, sheet: str | None
) -> TableDetail:
    header_index = header_row - 1
    if df.shape[0] <= header_index:
        # no header row at all -> reported as an invalid table
        return TableDetail(name=name, header_row=[], rows=[], source_file=file_name, sheet=sheet)
    headers = [_header_text(v) for v in df.iloc[header_index].tolist()]
    rows: list[list[Any]] = []
    for _, raw in df.iloc[header_index + 1:].iterrows():
        if raw.isna().all():
            continue
        rows.append([_cell_value(v) for v in raw.tolist()])
    return TableDetail(name=name, header_row=headers, rows=rows, source_file=file_name, sheet=sheet)


def read_sheet_blocks(
    path: Path, header_row: int = 1, exclude_sheets: Iterable[str] | None = None
) -> list[TableDetail]:
    """Read each worksheet as one table named after the sheet.

    Parameters
    ----------
    path: workbook path
    header_row: 1-based row holding the key paths
    exclude_sheets: sheet names to skip (e.g. the report sheet)
    """
    _check_source(path)
    excluded = set(exclude_sheets or ())
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:
        raise SourceUnavailableError(f"cannot open workbook {path.name}: {e}") from e
    with xls:
        details: list[TableDetail] = []
        for name in xls.sheet_names:
            if str(name) in excluded:
                continue
            df = xls.parse(name, header=None, dtype=object)
            details.append(_frame_to_detail(df, str(name), header_row, path.name, str(name)))
    return details


def read_csv_table(path: Path, header_row: int = 1) -> TableDetail:
    """Read a CSV file as one table named after the file stem.

    Every cell is kept as text, without type inference. Rows with only blank
    cells are skipped.
    """
    _check_source(path)
    try:
        header_df = pd.read_csv(
            path, header=None, skiprows=header_row - 1, nrows=1,
            dtype=str, keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        return TableDetail(name=path.stem, header_row=[], rows=[], source_file=path.name)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise SourceUnavailableError(f"cannot read csv {path.name}: {e}") from e

    headers = [_header_text(v) for v in header_df.iloc[0].tolist()]
    try:
        # cells stay the text they are: "007" is not 7, a blank is ""
        data = pd.read_csv(
            path, header=None, skiprows=header_row,
            dtype=str, keep_default_na=False, na_values=[],
        )
    except pd.errors.EmptyDataError:
        return TableDetail(name=path.stem, header_row=headers, rows=[], source_file=path.name)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise SourceUnavailableError(f"cannot read csv {path.name}: {e}") from e

    rows: list[list[Any]] = []
    for raw in data.itertuples(index=False, name=None):
        values = [_cell_value(v) for v in raw]
        # short rows are padded with NaN, read back as ""
        if any(v != "" for v in values):
            rows.append(values)
    return TableDetail(name=path.stem, header_row=headers, rows=rows, source_file=path.name)


def load_tables(config: ConvertConfig) -> list[TableDetail]:
    """Locate the tables of ``config.source_path`` according to ``source_mode``."""
    path = Path(config.source_path)
    if config.source_mode is SourceMode.CSV:
        return [read_csv_table(path, config.header_row)]
    if config.source_mode is SourceMode.SHEETS:
        excluded = {config.sink.sheet_name or DEFAULT_SHEET_NAME}
        return read_sheet_blocks(path, config.header_row, exclude_sheets=excluded)
    return read_workbook_tables(path)

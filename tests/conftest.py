# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook
from openpyxl.worksheet.table import Table


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_path: ./data/book.xlsx
source_mode: tables
on_conflict: error
sink:
  kind: sheet
  sheet_name: "#table2json"
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "table2json.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_workbook(path: Path, sheets: dict[str, dict[str, Any]]) -> Path:
    """Build an .xlsx file.

    ``sheets`` maps sheet name -> {"rows": [[...], ...], "tables": [(name, ref), ...]}.
    Rows are written from A1 downwards; None leaves a cell empty.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for sheet_name, spec in sheets.items():
        ws = wb.create_sheet(sheet_name)
        for row in spec.get("rows", []):
            ws.append(row)
        for name, ref in spec.get("tables", []):
            ws.add_table(Table(displayName=name, ref=ref))
    wb.save(path)
    return path


@pytest.fixture()
def sample_workbook(temp_workdir: Path) -> Path:
    """Workbook with one valid table (Customers) and one invalid table (Orders)."""
    return make_workbook(
        temp_workdir / "data" / "book.xlsx",
        {
            "Data": {
                "rows": [
                    ["id", "addr.city", "addr.zip"],
                    ["ID", "City", "Zip"],
                    [1, "Paris", "75001"],
                    [2, "Lyon", "69001"],
                ],
                "tables": [("Customers", "A2:C4")],
            },
            "Orders": {
                "rows": [
                    ["bad key", None],
                    ["No", "Item"],
                    [10, "pen"],
                ],
                "tables": [("Orders", "A2:B3")],
            },
        },
    )

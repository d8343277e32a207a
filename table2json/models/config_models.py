from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..services.record_builder import ConflictPolicy

"""Config dataclasses for the table -> JSON converter.

Built by ``table2json.config.loader`` after YAML parsing and schema validation.
"""

DEFAULT_SHEET_NAME = "#table2json"


class SourceMode(Enum):
    """How tables are located in the source file.

    - TABLES: defined Excel tables, key paths in the row above each table
    - SHEETS: every worksheet is one table, key paths in ``header_row``
    - CSV: the CSV file is one table, key paths in ``header_row``
    """
    TABLES = "tables"
    SHEETS = "sheets"
    CSV = "csv"


class SinkKind(Enum):
    SHEET = "sheet"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class SinkConfig:
    """Where conversion output is written.

    For SHEET the report sheet goes into ``output_path`` when set, otherwise
    back into the source workbook. For DIRECTORY one ``<table>.json`` file per
    valid table is written to ``directory``.
    """
    kind: SinkKind = SinkKind.SHEET
    sheet_name: str = DEFAULT_SHEET_NAME
    output_path: str | None = None
    directory: str | None = None


@dataclass(frozen=True)
class ConvertConfig:
    """Root configuration object for one conversion run."""
    source_path: str  # workbook (.xlsx) or CSV file
    source_mode: SourceMode = SourceMode.TABLES
    header_row: int = 1  # 1-based, SHEETS / CSV only
    on_conflict: ConflictPolicy = ConflictPolicy.ERROR
    sink: SinkConfig = field(default_factory=SinkConfig)

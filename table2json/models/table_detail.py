from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""TableDetail: one table handed from a source to the converter."""

__all__ = [
    "TableDetail",
]


@dataclass(frozen=True)
class TableDetail:
    """A located table before conversion.

    ``header_row`` and each row of ``rows`` are positionally aligned; a short
    header row is tolerated (extra data columns are ignored).
    """
    name: str  # table identifier (Excel table name, sheet name or CSV stem)
    header_row: list[str]  # key paths or "" per column
    rows: list[list[Any]] = field(default_factory=list)  # data block
    source_file: str = ""  # file name the table was read from
    sheet: str | None = None  # worksheet holding the table (workbook sources)

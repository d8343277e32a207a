from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .table_result import TableResult

"""Aggregated outcome of one conversion run."""


@dataclass(frozen=True)
class ConversionReport:
    """Run summary returned by ``make_json_sheet``.

    ``failure`` carries the message of a fatal error (source or sink); in that
    case ``tables`` holds whatever was converted before the failure and nothing
    has been written.
    """
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    tables: list[TableResult] = field(default_factory=list)
    output: str | None = None  # sink location (workbook path or directory)
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def total_tables(self) -> int:
        return len(self.tables)

    @property
    def valid_tables(self) -> int:
        return sum(1 for t in self.tables if t.is_valid)

    @property
    def invalid_tables(self) -> int:
        return self.total_tables - self.valid_tables

    @property
    def total_rows(self) -> int:
        return sum(t.row_count for t in self.tables)

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Per-table conversion outcome handed to sinks."""

__all__ = [
    "TableResult",
    "TableStatus",
]


class TableStatus(Enum):
    """Conversion status of a single table.

    - CONVERTED: header row valid, records built
    - INVALID: header row failed validation (bad key path or no key paths)
    - FAILED: header row valid but records could not be built (key path conflict)
    """
    CONVERTED = "converted"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class TableResult:
    """What a sink writes for one table.

    Only CONVERTED tables carry records and JSON lines; the others report zero
    rows and an empty line list.
    """
    name: str
    status: TableStatus
    records: list[dict[str, Any]] = field(default_factory=list)
    json_lines: list[str] = field(default_factory=list)
    source_file: str = ""
    sheet: str | None = None
    error_type: str | None = None  # UPPER_SNAKE, None when converted
    error: str | None = None  # human readable reason
    error_column: int = -1  # 1-based column of the offending header, -1 if none

    @property
    def is_valid(self) -> bool:
        """Validity flag as reported to sinks."""
        return self.status is TableStatus.CONVERTED

    @property
    def row_count(self) -> int:
        return len(self.records) if self.is_valid else 0

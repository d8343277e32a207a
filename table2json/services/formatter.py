from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date, datetime, time
from typing import Any

"""Line-per-record JSON array rendering.

Output is meant for a grid sink that stores one line per cell, so the array
is split as: ``[``, one compact record per line (comma after every record but
the last), ``]``. Joined with newlines the lines form a valid JSON document.
"""

__all__ = [
    "format_as_json_lines",
    "record_to_json",
]


def _json_default(value: Any) -> str:
    # workbook cells may carry date/time values
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def record_to_json(record: dict[str, Any]) -> str:
    return json.dumps(
        record,
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
        default=_json_default,
    )


def format_as_json_lines(records: Sequence[dict[str, Any]]) -> list[str]:
    """Render records as JSON array lines.

    Examples:
        >>> format_as_json_lines([])
        ['[', ']']
        >>> format_as_json_lines([{"a": 1}, {"b": 2}])
        ['[', '{"a":1},', '{"b":2}', ']']
    """
    last = len(records) - 1
    lines = ["["]
    for index, record in enumerate(records):
        text = record_to_json(record)
        lines.append(text + "," if index < last else text)
    lines.append("]")
    return lines

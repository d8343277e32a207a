from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

"""Key path validation for header rows.

A key path is one or more segments of ASCII letters, digits or underscores
joined by single dots (``address.city``). Header rows may contain blank
entries which mean "skip this column".
"""

__all__ = [
    "EMPTY_HEADER_ROW",
    "INVALID_KEY_PATH",
    "HeaderCheck",
    "describe_header_row",
    "is_header_row_valid",
    "is_valid_key_path",
    "split_key_path",
]

KEY_PATH_PATTERN = re.compile(r"[A-Za-z0-9_]+(?:\.[A-Za-z0-9_]+)*")

INVALID_KEY_PATH = "INVALID_KEY_PATH"
EMPTY_HEADER_ROW = "EMPTY_HEADER_ROW"


def is_valid_key_path(s: object) -> bool:
    if not isinstance(s, str):
        return False
    # fullmatch: "$" would accept a trailing newline
    return KEY_PATH_PATTERN.fullmatch(s) is not None


def split_key_path(s: str) -> list[str]:
    """Split a valid key path into its segments.

    Raises:
        ValueError: If ``s`` is not a valid key path
    """
    if not is_valid_key_path(s):
        raise ValueError(f"invalid key path: {s!r}")
    return s.split(".")


def _is_blank(header: str | None) -> bool:
    return header is None or header == ""


def is_header_row_valid(headers: Sequence[str | None]) -> bool:
    """True iff every non-empty header is a key path and at least one is non-empty."""
    used = [h for h in headers if not _is_blank(h)]
    return bool(used) and all(is_valid_key_path(h) for h in used)


@dataclass(frozen=True)
class HeaderCheck:
    """Diagnostic verdict for a header row.

    Attributes:
        is_valid: Same value as ``is_header_row_valid`` for the row
        error_type: ``None`` when valid, else EMPTY_HEADER_ROW or INVALID_KEY_PATH
        invalid_headers: (column index, header) pairs that failed validation
    """
    is_valid: bool
    error_type: str | None = None
    invalid_headers: list[tuple[int, str]] = field(default_factory=list)

    def message(self) -> str:
        if self.is_valid:
            return ""
        if self.error_type == EMPTY_HEADER_ROW:
            return "header row has no key paths"
        bad = ", ".join(f"{h!r} (column {c + 1})" for c, h in self.invalid_headers)
        return f"invalid key paths: {bad}"


def describe_header_row(headers: Sequence[str | None]) -> HeaderCheck:
    invalid = [
        (c, str(h))
        for c, h in enumerate(headers)
        if not _is_blank(h) and not is_valid_key_path(h)
    ]
    if invalid:
        return HeaderCheck(is_valid=False, error_type=INVALID_KEY_PATH, invalid_headers=invalid)
    if all(_is_blank(h) for h in headers):
        return HeaderCheck(is_valid=False, error_type=EMPTY_HEADER_ROW)
    return HeaderCheck(is_valid=True)

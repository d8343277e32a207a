from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

"""Nested record construction from flat table rows.

Each data row becomes one record. Header key paths select where each cell
lands in the record: ``addr.city`` and ``addr.zip`` share the ``addr``
sub-object. Blank headers drop their column.

The record is first built as a tree of ``Leaf`` / ``Branch`` nodes so that a
header pair like ``a`` and ``a.b`` (a value and an object at the same place)
is detected instead of one silently overwriting the other. The tree is then
materialized into plain dicts.
"""

__all__ = [
    "Branch",
    "ConflictPolicy",
    "ConflictingKeyPathError",
    "Leaf",
    "build_record",
    "build_records",
]


class ConflictPolicy(Enum):
    """Resolution for a value and an object colliding at the same key path.

    - ERROR: raise ConflictingKeyPathError
    - LAST_WINS: the later column (by index) replaces the earlier node
    """
    ERROR = "error"
    LAST_WINS = "last_wins"


class ConflictingKeyPathError(Exception):
    """Raised when two headers need a value and an object at the same path."""

    def __init__(
        self,
        path: str,
        existing: str,
        incoming: str,
        row: int | None = None,
        column: int | None = None,
    ) -> None:
        self.path = path
        self.existing = existing
        self.incoming = incoming
        self.row = row  # 0-based
        self.column = column  # 0-based, column of the incoming header
        parts = []
        if row is not None:
            parts.append(f"row {row + 1}")
        if column is not None:
            parts.append(f"column {column + 1}")
        where = f" ({', '.join(parts)})" if parts else ""
        super().__init__(
            f"key path '{incoming}' conflicts with '{existing}' at '{path}'{where}"
        )


@dataclass
class Leaf:
    value: Any
    path: str


@dataclass
class Branch:
    path: str = ""
    children: dict[str, Node] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, child in self.children.items():
            out[key] = child.to_dict() if isinstance(child, Branch) else child.value
        return out


Node = Union[Leaf, Branch]


def _child_branch(
    parent: Branch, segment: str, path: str, key_path: str, policy: ConflictPolicy
) -> Branch:
    node = parent.children.get(segment)
    if isinstance(node, Branch):
        return node
    if isinstance(node, Leaf) and policy is ConflictPolicy.ERROR:
        raise ConflictingKeyPathError(path, node.path, key_path)
    branch = Branch(path=path)
    parent.children[segment] = branch
    return branch


def _assign(root: Branch, segments: list[str], value: Any, key_path: str, policy: ConflictPolicy) -> None:
    node = root
    for depth, segment in enumerate(segments[:-1]):
        path = ".".join(segments[: depth + 1])
        node = _child_branch(node, segment, path, key_path, policy)
    leaf_key = segments[-1]
    existing = node.children.get(leaf_key)
    if isinstance(existing, Branch) and policy is ConflictPolicy.ERROR:
        raise ConflictingKeyPathError(key_path, _first_leaf_path(existing), key_path)
    # identical full paths: later column wins
    node.children[leaf_key] = Leaf(value=value, path=key_path)


def _first_leaf_path(branch: Branch) -> str:
    for child in branch.children.values():
        if isinstance(child, Leaf):
            return child.path
        return _first_leaf_path(child)
    return branch.path


def build_record(
    row: Sequence[Any],
    headers: Sequence[str | None],
    on_conflict: ConflictPolicy = ConflictPolicy.ERROR,
) -> dict[str, Any]:
    """Build one nested record from a single row.

    Columns past the shorter of ``row`` and ``headers`` are ignored.
    Cell values are stored as given, without type coercion.
    """
    root = Branch()
    for column, (header, value) in enumerate(zip(headers, row)):
        if not header:
            continue
        try:
            _assign(root, header.split("."), value, header, on_conflict)
        except ConflictingKeyPathError as e:
            raise ConflictingKeyPathError(e.path, e.existing, e.incoming, column=column) from None
    return root.to_dict()


def build_records(
    block: Sequence[Sequence[Any]],
    headers: Sequence[str | None],
    on_conflict: ConflictPolicy = ConflictPolicy.ERROR,
) -> list[dict[str, Any]]:
    """Build one record per row of ``block``, in row order.

    Headers are expected to be valid (see ``is_header_row_valid``).

    Raises:
        ConflictingKeyPathError: Under ConflictPolicy.ERROR when a value and an
            object collide; ``row`` is set to the 0-based row index
    """
    records: list[dict[str, Any]] = []
    for index, row in enumerate(block):
        try:
            records.append(build_record(row, headers, on_conflict))
        except ConflictingKeyPathError as e:
            raise ConflictingKeyPathError(
                e.path, e.existing, e.incoming, row=index, column=e.column
            ) from None
    return records

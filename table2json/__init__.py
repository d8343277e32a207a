"""Convert tables with dot-delimited key path headers into nested JSON records."""

from .services.formatter import format_as_json_lines
from .services.keypath import is_header_row_valid, is_valid_key_path
from .services.record_builder import ConflictingKeyPathError, ConflictPolicy, build_records

__version__ = "0.1.0"

__all__ = [
    "ConflictPolicy",
    "ConflictingKeyPathError",
    "build_records",
    "format_as_json_lines",
    "is_header_row_valid",
    "is_valid_key_path",
]

"""Domain models for the table -> JSON converter.

Configuration, source tables, per-table conversion results and the run report.
"""

from .config_models import ConvertConfig, SinkConfig, SinkKind, SourceMode
from .conversion_report import ConversionReport
from .table_detail import TableDetail
from .table_result import TableResult, TableStatus

__all__ = [
    # Configuration models
    "ConvertConfig",
    "SinkConfig",
    "SinkKind",
    "SourceMode",
    # Conversion models
    "TableDetail",
    "TableResult",
    "TableStatus",
    "ConversionReport",
]

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..excel.reader import SourceUnavailableError, load_tables
from ..excel.writer import DirectorySink, SheetSink, SinkWriteError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import ConvertConfig, SinkKind, SourceMode
from ..models.conversion_report import ConversionReport
from ..models.table_detail import TableDetail
from ..models.table_result import TableResult, TableStatus
from .formatter import format_as_json_lines
from .keypath import EMPTY_HEADER_ROW, INVALID_KEY_PATH, describe_header_row
from .progress import ProgressTracker
from .record_builder import ConflictingKeyPathError, ConflictPolicy, build_records

"""Conversion orchestration.

``make_json_sheet`` is the command entry point: locate tables in the source,
convert each one, write all results to the sink, and return a report.

Table-level problems (bad key path, no key paths, key path conflict) never
stop the run: the table is reported with validity false and zero rows, a WARN
line is logged and an ErrorRecord is buffered. Source and sink failures are
fatal; they end up in ``ConversionReport.failure`` instead of being raised.
"""

__all__ = [
    "CONFLICTING_KEY_PATH",
    "ProcessingError",
    "SINK_WRITE_FAILURE",
    "SOURCE_UNAVAILABLE",
    "UNSERIALIZABLE_VALUE",
    "build_sink",
    "convert_table",
    "convert_tables",
    "make_json_sheet",
]

logger = logging.getLogger(__name__)

CONFLICTING_KEY_PATH = "CONFLICTING_KEY_PATH"
UNSERIALIZABLE_VALUE = "UNSERIALIZABLE_VALUE"
SOURCE_UNAVAILABLE = "SOURCE_UNAVAILABLE"
SINK_WRITE_FAILURE = "SINK_WRITE_FAILURE"

RUN_LEVEL = "<RUN>"


class ProcessingError(Exception):
    """Raised for configurations that cannot be turned into a sink."""


def _failed(
    detail: TableDetail, status: TableStatus, error_type: str, message: str, column: int = -1
) -> TableResult:
    return TableResult(
        name=detail.name,
        status=status,
        source_file=detail.source_file,
        sheet=detail.sheet,
        error_type=error_type,
        error=message,
        error_column=column,
    )


def convert_table(
    detail: TableDetail, on_conflict: ConflictPolicy = ConflictPolicy.ERROR
) -> TableResult:
    """Validate and convert a single table. Never raises for bad table content."""
    check = describe_header_row(detail.header_row)
    if not check.is_valid:
        return _failed(detail, TableStatus.INVALID, check.error_type or INVALID_KEY_PATH, check.message())

    try:
        records = build_records(detail.rows, detail.header_row, on_conflict)
    except ConflictingKeyPathError as e:
        column = e.column + 1 if e.column is not None else -1
        return _failed(detail, TableStatus.FAILED, CONFLICTING_KEY_PATH, str(e), column)

    try:
        lines = format_as_json_lines(records)
    except (TypeError, ValueError) as e:
        # e.g. inf/-inf, which JSON cannot represent
        return _failed(detail, TableStatus.FAILED, UNSERIALIZABLE_VALUE, str(e))

    return TableResult(
        name=detail.name,
        status=TableStatus.CONVERTED,
        records=records,
        json_lines=lines,
        source_file=detail.source_file,
        sheet=detail.sheet,
    )


def _record_table_error(error_log: ErrorLogBuffer, detail: TableDetail, result: TableResult) -> None:
    if result.error_type == INVALID_KEY_PATH:
        for column, header in describe_header_row(detail.header_row).invalid_headers:
            error_log.append(ErrorRecord.create(
                file=detail.source_file,
                table=detail.name,
                column=column + 1,
                error_type=INVALID_KEY_PATH,
                message=f"invalid key path: {header!r}",
            ))
        return
    error_log.append(ErrorRecord.create(
        file=detail.source_file,
        table=detail.name,
        column=result.error_column,
        error_type=result.error_type or EMPTY_HEADER_ROW,
        message=result.error or "",
    ))


def convert_tables(
    tables: Sequence[TableDetail],
    on_conflict: ConflictPolicy = ConflictPolicy.ERROR,
    error_log: ErrorLogBuffer | None = None,
) -> list[TableResult]:
    """Convert tables in order, one result per table."""
    results: list[TableResult] = []
    valid = 0
    rows = 0
    with ProgressTracker(len(tables)) as progress:
        for detail in tables:
            progress.start_table(detail.name)
            result = convert_table(detail, on_conflict)
            results.append(result)
            if result.is_valid:
                valid += 1
                rows += result.row_count
                logger.debug("table=%s rows=%d", detail.name, result.row_count)
            else:
                logger.warning("table=%s %s: %s", detail.name, result.status.value, result.error)
                if error_log is not None:
                    _record_table_error(error_log, detail, result)
            progress.set_postfix(valid=valid, invalid=len(results) - valid, rows=rows)
            progress.finish_table()
    return results


def build_sink(config: ConvertConfig) -> SheetSink | DirectorySink:
    sink = config.sink
    if sink.kind is SinkKind.DIRECTORY:
        if not sink.directory:
            raise ProcessingError("directory sink requires 'directory'")
        return DirectorySink(Path(sink.directory))
    if sink.output_path:
        target = Path(sink.output_path)
    elif config.source_mode is SourceMode.CSV:
        # a CSV source can't hold a sheet; write next to it
        target = Path(config.source_path).with_suffix(".xlsx")
    else:
        target = Path(config.source_path)
    return SheetSink(target, sink.sheet_name)


def _flush(error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning("error log not written: %s", e)
        return
    if path is not None:
        logger.info("error log: %s", path)


def make_json_sheet(
    config: ConvertConfig, error_log: ErrorLogBuffer | None = None
) -> ConversionReport:
    """Run one conversion: source -> records -> sink.

    Returns:
        ConversionReport; ``failure`` is set when the source could not be read
        or the sink could not be written. Nothing is written on source failure.

    Raises:
        ProcessingError: If the sink configuration is unusable
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    source_name = Path(config.source_path).name
    results: list[TableResult] = []
    output: str | None = None
    failure: str | None = None

    sink = build_sink(config)
    try:
        tables = load_tables(config)
        logger.info("found %d tables in %s", len(tables), source_name)
        results = convert_tables(tables, config.on_conflict, error_log)
        written = sink.write(results)
        output = str(written.location)
    except SourceUnavailableError as e:
        failure = f"source unavailable: {e}"
        error_log.append(ErrorRecord.create(source_name, RUN_LEVEL, -1, SOURCE_UNAVAILABLE, str(e)))
    except SinkWriteError as e:
        failure = f"sink write failure: {e}"
        error_log.append(ErrorRecord.create(source_name, RUN_LEVEL, -1, SINK_WRITE_FAILURE, str(e)))
    finally:
        _flush(error_log)

    end_time = datetime.now(UTC)
    return ConversionReport(
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        tables=results,
        output=output,
        failure=failure,
    )

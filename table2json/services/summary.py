from __future__ import annotations

from ..models.conversion_report import ConversionReport

"""SUMMARY line rendering."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(report: ConversionReport) -> str:
    """Render the end-of-run SUMMARY line.

    Format:
    SUMMARY tables={total} valid={valid} invalid={invalid} rows={rows} elapsed_sec={elapsed}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> render_summary_line(ConversionReport(start_time=t, end_time=t, elapsed_seconds=2.0))
        'SUMMARY tables=0 valid=0 invalid=0 rows=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY tables={report.total_tables} "
        f"valid={report.valid_tables} "
        f"invalid={report.invalid_tables} "
        f"rows={report.total_rows} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)}"
    )

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from table2json.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from table2json.excel.reader import SourceUnavailableError, load_tables
from table2json.logging.init import log_summary, set_debug, setup_logging
from table2json.models.config_models import ConvertConfig
from table2json.services.keypath import describe_header_row
from table2json.services.orchestrator import ProcessingError, make_json_sheet
from table2json.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load ``.env`` (TABLE2JSON_CONFIG may point at the config file)
- Load and validate the config
- Run the conversion and print the SUMMARY line

Exit codes: 0 every table converted, 2 at least one table invalid or not
converted, 1 fatal (config, source or sink failure).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_INVALID_TABLES = 2

CONFIG_ENV_VAR = "TABLE2JSON_CONFIG"


def _load_env_file(path: Path) -> None:
    """Load .env without overriding variables already set in the process."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="table2json",
        description="Convert tables with dot-path headers into nested JSON records",
    )
    p.add_argument("--config", type=Path, default=None,
                   help=f"Config file (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true",
                   help="Print each table's headers, validity and first rows then exit")
    return p.parse_args(argv)


def _resolve_config_path(args: argparse.Namespace) -> Path:
    if args.config is not None:
        return args.config
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def _inspect_data(cfg: ConvertConfig) -> int:
    try:
        tables = load_tables(cfg)
    except SourceUnavailableError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not tables:
        print("inspect: no tables")
        return EXIT_SUCCESS_ALL
    for t in tables:
        check = describe_header_row(t.header_row)
        where = f" sheet={t.sheet}" if t.sheet else ""
        print(f"TABLE: {t.name}{where} rows={len(t.rows)} valid={check.is_valid}")
        print(f"  headers={t.header_row}")
        if not check.is_valid:
            print(f"  reason={check.message()}")
        # datetime cells are shown via isoformat
        sample = [
            [v.isoformat() if hasattr(v, "isoformat") else v for v in row]
            for row in t.rows[:3]
        ]
        print("  sample_rows=", sample)
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when called without arguments (tests pass [])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    config_path = _resolve_config_path(args)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Converting tables from: {cfg.source_path}")
    try:
        report = make_json_sheet(cfg)
    except ProcessingError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL

    if report.failure is not None:
        logger.error(report.failure)
        return EXIT_FATAL

    logger.info(f"output: {report.output}")
    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(report)[len("SUMMARY "):])

    if report.invalid_tables > 0:
        return EXIT_INVALID_TABLES
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

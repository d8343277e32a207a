from __future__ import annotations

import logging
from io import StringIO

import table2json.logging.init as log_init
from table2json.logging.init import LabeledFormatter, SUMMARY_LEVEL, get_logger, reset_logging, set_debug, setup_logging


def _labeled_handlers(logger: logging.Logger) -> list[logging.Handler]:
    # pytest may attach its own capture handlers next to ours
    return [h for h in logger.handlers if isinstance(h.formatter, LabeledFormatter)]


def test_setup_logging_creates_logger_with_labeled_formatter():
    reset_logging()
    logger = setup_logging()
    assert logger.name == "table2json"
    assert logger.level == logging.INFO
    assert len(_labeled_handlers(logger)) == 1
    assert logger.propagate is False


def test_logging_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_table2json_labels")
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(SUMMARY_LEVEL, "Test summary message")

    lines = captured.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_get_logger_returns_configured_logger():
    setup_logger = setup_logging()
    assert get_logger() is setup_logger


def test_get_logger_sets_up_when_needed():
    reset_logging()
    logger = get_logger()
    assert log_init._logger is logger


def test_setup_logging_idempotent():
    reset_logging()
    logger1 = setup_logging()
    logger2 = setup_logging()
    assert logger1 is logger2
    assert len(_labeled_handlers(logger1)) == 1


def test_reset_then_setup_does_not_duplicate_handlers():
    setup_logging()
    reset_logging()
    logger = setup_logging()
    assert len(_labeled_handlers(logger)) == 1


def test_module_loggers_reach_app_handler(capsys):
    reset_logging()
    setup_logging()
    logging.getLogger("table2json.services.orchestrator").warning("table=T invalid: x")
    assert "WARN table=T invalid: x" in capsys.readouterr().out


def test_set_debug():
    reset_logging()
    logger = setup_logging()
    set_debug(logger)
    assert logger.level == logging.DEBUG
    assert all(h.level == logging.DEBUG for h in _labeled_handlers(logger))
    reset_logging()
    logging.getLogger("table2json").setLevel(logging.INFO)

"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from streakline.config import BaseConfig
from streakline.logging_config import JSONFormatter, get_logger, setup_logging


def test_json_formatter():
    """JSONFormatter emits the core fields as JSON."""
    formatter = JSONFormatter()
    record = logging.LogRecord(
        name="streakline.services.habits",
        level=logging.INFO,
        pathname="habits.py",
        lineno=42,
        msg="Created activity",
        args=(),
        exc_info=None,
    )
    record.module = "habits"
    record.funcName = "create_activity"

    log_data = json.loads(formatter.format(record))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "streakline.services.habits"
    assert log_data["message"] == "Created activity"
    assert log_data["function"] == "create_activity"
    assert log_data["line"] == 42
    assert "timestamp" in log_data


def test_json_formatter_includes_extra_fields():
    formatter = JSONFormatter()
    record = logging.LogRecord(
        name="streakline.services.outbox",
        level=logging.WARNING,
        pathname="outbox.py",
        lineno=10,
        msg="Queued write for retry",
        args=(),
        exc_info=None,
    )
    record.activity_id = 4
    record.kind = "task_mirror"

    log_data = json.loads(formatter.format(record))
    assert log_data["extra"] == {"activity_id": 4, "kind": "task_mirror"}


def test_json_formatter_with_exception():
    formatter = JSONFormatter()
    try:
        raise ValueError("bad weekday")
    except ValueError:
        import sys

        exc_info = sys.exc_info()

    record = logging.LogRecord(
        name="streakline",
        level=logging.ERROR,
        pathname="x.py",
        lineno=1,
        msg="failed",
        args=(),
        exc_info=exc_info,
    )
    log_data = json.loads(formatter.format(record))
    assert log_data["exception"]["type"] == "ValueError"
    assert "bad weekday" in log_data["exception"]["message"]


def test_setup_logging(tmp_path):
    """Logging setup writes JSON lines into the data directory."""
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "streakline"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2

    log_file = tmp_path / "logs" / "streakline.log"
    assert log_file.exists()

    get_logger("services.habits").warning("Queued write", extra={"activity_id": 3})
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text().splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]
    assert entries[-1]["message"] == "Queued write"
    assert entries[-1]["extra"]["activity_id"] == 3


def test_setup_logging_is_repeatable(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    setup_logging(config)
    logger = setup_logging(config)
    assert len(logger.handlers) == 2


def test_get_logger_namespaces():
    assert get_logger("module1").name == "streakline.module1"
    assert get_logger("streakline.services.habits").name == "streakline.services.habits"
    assert get_logger("streakline").name == "streakline"


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Console level follows dev mode."""
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)
    console_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    assert console_handler.level == (logging.INFO if dev_mode else logging.WARNING)

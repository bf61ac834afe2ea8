"""Tests for logging setup."""

from __future__ import annotations

import logging
import logging.handlers

import pytest

from vectordesk.config import LoggingCfg
from vectordesk.logging_utils import setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger("vectordesk")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


def test_setup_logging_sets_level_and_stream_handler(clean_logger):
    logger = setup_logging(LoggingCfg(level="DEBUG"))
    assert logger is clean_logger
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)


def test_setup_logging_adds_rotating_file(clean_logger, tmp_path):
    log_file = tmp_path / "logs" / "vectordesk.log"
    logger = setup_logging(LoggingCfg(level="INFO", file=str(log_file)))

    file_handlers = [
        h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert len(file_handlers) == 1
    logging.getLogger("vectordesk.store").info("hello")
    file_handlers[0].flush()
    assert "hello" in log_file.read_text(encoding="utf-8")


def test_setup_logging_is_idempotent(clean_logger):
    setup_logging(LoggingCfg(level="WARNING"))
    setup_logging(LoggingCfg(level="ERROR"))
    assert len(clean_logger.handlers) == 1
    assert clean_logger.level == logging.ERROR


def test_unknown_level_falls_back_to_warning(clean_logger):
    assert setup_logging(LoggingCfg(level="chatty")).level == logging.WARNING

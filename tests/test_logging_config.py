"""
test_logging_config.py - Tests for dashboard/logging_config.py

Verifies Loguru setup, stdlib logging interception and level selection.
Uses loguru's sink capture for assertions.

Called by: pytest
Depends on: dashboard/logging_config.py, dashboard/config.py
"""

import logging
import os
from unittest.mock import patch

import pytest
from loguru import logger

from dashboard.config import get_settings
from dashboard.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _clean_loguru():
    """Remove all handlers before/after each test for isolation."""
    logger.remove()
    yield
    logger.remove()
    get_settings.cache_clear()


def test_setup_logging_adds_handler():
    assert len(logger._core.handlers) == 0
    setup_logging()
    assert len(logger._core.handlers) > 0


def test_stdlib_logging_intercepted():
    """After setup, stdlib logging.getLogger() messages go through Loguru."""
    setup_logging()

    # setup_logging() calls logger.remove(), so the sink goes on afterwards
    messages = []
    logger.add(lambda m: messages.append(str(m)), format="{message}")

    logging.getLogger("test.intercept").warning("intercepted message")

    assert any("intercepted message" in m for m in messages)


def test_httpx_logger_quieted():
    setup_logging("DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_log_level_from_env():
    """LOG_LEVEL controls the stderr handler's minimum level."""
    get_settings.cache_clear()
    with patch.dict(os.environ, {"LOG_LEVEL": "WARNING"}):
        setup_logging()

    levels = [h.levelno for h in logger._core.handlers.values()]
    assert levels == [logger.level("WARNING").no]


def test_level_argument_overrides_settings():
    setup_logging("error")
    levels = [h.levelno for h in logger._core.handlers.values()]
    assert levels == [logger.level("ERROR").no]


def test_log_file_handler(tmp_path):
    log_file = tmp_path / "dashboard.log"
    get_settings.cache_clear()
    with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
        setup_logging("INFO")

    assert len(logger._core.handlers) == 2
    logger.info("to the file")
    logger.remove()
    assert "to the file" in log_file.read_text()

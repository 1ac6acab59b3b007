import logging
import logging.handlers
import os
from unittest.mock import patch

import pytest

from jetty_server_manager.logging import (
    DEFAULT_LOG_KEEP,
    LOGGER_NAME,
    log_separator,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logger():
    """Removes handlers added to the package logger by a test."""
    logger = logging.getLogger(LOGGER_NAME)
    original = list(logger.handlers)
    logger.handlers = []
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers = original


@pytest.fixture
def log_dir(tmp_path):
    return str(tmp_path / "test_logs")


def test_setup_logging_creates_log_directory(log_dir):
    setup_logging(log_dir=log_dir)
    assert os.path.isdir(log_dir)


def test_setup_logging_adds_file_and_console_handlers(log_dir):
    logger = setup_logging(log_dir=log_dir)

    assert len(logger.handlers) == 2
    assert any(
        isinstance(handler, logging.handlers.TimedRotatingFileHandler)
        for handler in logger.handlers
    )


def test_setup_logging_levels(log_dir):
    logger = setup_logging(
        log_dir=log_dir, file_log_level=logging.DEBUG, cli_log_level=logging.ERROR
    )

    assert logger.level == logging.DEBUG
    levels = {type(h): h.level for h in logger.handlers}
    assert levels[logging.handlers.TimedRotatingFileHandler] == logging.DEBUG
    assert levels[logging.StreamHandler] == logging.ERROR


def test_setup_logging_uses_default_rotation(log_dir):
    with patch("logging.handlers.TimedRotatingFileHandler") as mock_handler:
        mock_handler.return_value.level = logging.INFO
        setup_logging(log_dir=log_dir)

    mock_handler.assert_called_once_with(
        os.path.join(log_dir, "jetty_server_manager.log"),
        when="midnight",
        interval=1,
        backupCount=DEFAULT_LOG_KEEP,
    )


def test_setup_logging_does_not_duplicate_handlers(log_dir):
    setup_logging(log_dir=log_dir)
    logger = setup_logging(log_dir=log_dir)

    assert len(logger.handlers) == 2


def test_setup_logging_force_reconfigure(log_dir):
    first = list(setup_logging(log_dir=log_dir).handlers)
    logger = setup_logging(log_dir=log_dir, force_reconfigure=True)

    assert len(logger.handlers) == 2
    assert not set(first) & set(logger.handlers)


def test_log_separator_writes_banner(log_dir):
    logger = setup_logging(log_dir=log_dir)

    log_separator(logger, app_name="Jetty Server Manager", app_version="1.2.3")

    with open(os.path.join(log_dir, "jetty_server_manager.log")) as f:
        content = f.read()
    assert "Jetty Server Manager v1.2.3" in content
    assert "=" * 100 in content

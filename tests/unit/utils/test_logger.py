# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for logging setup and the sensitive data filter.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from config.constants import APP_LOGGER_NAME
from utils.logger import (
    SensitiveDataFilter,
    get_log_file_path,
    get_logger,
    set_log_level,
    setup_logging,
)


@pytest.fixture
def app_logger():
    logger = logging.getLogger(APP_LOGGER_NAME)
    saved = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers[:] = saved


def _record(message, *args):
    return logging.LogRecord("shadowreel.test", logging.INFO, __file__, 1, message, args, None)


class TestSensitiveDataFilter:
    """Test suite for SensitiveDataFilter."""

    def test_masks_query_key(self):
        record = _record(
            "POST https://translation.googleapis.com/language/translate/v2?key=AIzaSecret&q=hi"
        )

        assert SensitiveDataFilter().filter(record)
        assert "AIzaSecret" not in record.getMessage()
        assert "key=***" in record.getMessage()

    def test_masks_values_from_args(self):
        record = _record("api_key=%s configured", "abc123")

        SensitiveDataFilter().filter(record)

        assert record.getMessage() == "api_key=*** configured"

    def test_leaves_plain_messages(self):
        record = _record("Seek completed at %.3fs", 2.0)

        SensitiveDataFilter().filter(record)

        assert record.getMessage() == "Seek completed at 2.000s"


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_creates_rotating_log_file(self, tmp_path, app_logger):
        logger = setup_logging(log_dir=tmp_path, level="DEBUG", console_output=False)
        logging.getLogger("shadowreel.playback.scheduler").debug("transition token=abc")
        for handler in logger.handlers:
            handler.flush()

        log_file = tmp_path / "shadowreel.log"
        content = log_file.read_text(encoding="utf-8")
        assert "transition token=***" in content
        assert get_log_file_path() == log_file
        assert [type(h) for h in logger.handlers] == [RotatingFileHandler]

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path, app_logger):
        setup_logging(log_dir=tmp_path, console_output=True)
        logger = setup_logging(log_dir=tmp_path, console_output=True)

        assert len(logger.handlers) == 2

    def test_level_from_environment(self, tmp_path, app_logger, monkeypatch):
        monkeypatch.setenv("SHADOWREEL_ENV", "development")

        logger = setup_logging(log_dir=tmp_path, console_output=False)

        assert logger.handlers[0].level == logging.DEBUG

    def test_set_log_level(self, tmp_path, app_logger):
        logger = setup_logging(log_dir=tmp_path, level="INFO", console_output=False)

        set_log_level("ERROR")

        assert logger.handlers[0].level == logging.ERROR


def test_get_logger_namespaces_names():
    assert get_logger("playback.session").name == "shadowreel.playback.session"
    assert get_logger("shadowreel.stats").name == "shadowreel.stats"

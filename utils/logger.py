# SPDX-License-Identifier: Apache-2.0
#
# Copyright (c) 2024-2025 ShadowReel Contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Logging setup for ShadowReel.

Provides centralized logging with a rotating log file and console output.
"""

import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from config.app_config import get_app_dir
from config.constants import (
    APP_ENV_VARIABLE,
    APP_LOGGER_NAME,
    LOG_FILE_BACKUP_COUNT,
    LOG_FILE_MAX_BYTES,
)

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class SensitiveDataFilter(logging.Filter):
    """
    Mask sensitive values before they reach a log handler.

    Translation requests carry API keys in their query string, so any
    message mentioning a key or token is rewritten with the value masked.
    """

    SENSITIVE_KEYWORDS = [
        "api_key",
        "api-key",
        "apikey",
        "key=",
        "token",
        "password",
        "secret",
        "authorization",
        "bearer",
    ]

    PATTERNS = [
        (r"(api[_-]?key\s*[=:]\s*)[^\s,&\)]+", r"\1***"),
        (r"([?&]key=)[^\s,&\)]+", r"\1***"),
        (r"(token\s*[=:]\s*)[^\s,&\)]+", r"\1***"),
        (r"(password\s*[=:]\s*)[^\s,&\)]+", r"\1***"),
        (r"(secret\s*[=:]\s*)[^\s,&\)]+", r"\1***"),
        (r"(bearer\s+)[^\s,\)]+", r"\1***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        lowered = message.lower()

        for keyword in self.SENSITIVE_KEYWORDS:
            if keyword in lowered:
                # Freeze the formatted message so args cannot reintroduce the value
                record.msg = self._mask_sensitive_data(message)
                record.args = ()
                break

        return True

    def _mask_sensitive_data(self, message: str) -> str:
        masked = message
        for pattern, replacement in self.PATTERNS:
            masked = re.sub(pattern, replacement, masked, flags=re.IGNORECASE)
        return masked


def setup_logging(
    log_dir: Optional[Union[str, Path]] = None,
    level: Optional[str] = None,
    console_output: bool = True,
) -> logging.Logger:
    """
    Configure the application logging system.

    Args:
        log_dir: Log directory, defaults to ~/.shadowreel/logs
        level: Log level, defaults to DEBUG when SHADOWREEL_ENV=development
            and INFO otherwise
        console_output: Whether to also log to stdout

    Returns:
        The configured application root logger
    """
    if log_dir is None:
        log_dir = get_app_dir() / "logs"
    else:
        log_dir = Path(log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)

    if level is None:
        env = os.environ.get(APP_ENV_VARIABLE, "production").lower()
        level = "DEBUG" if env == "development" else "INFO"

    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    logger = logging.getLogger(APP_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # handlers decide what gets through

    # Avoid duplicate handlers when called twice
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    sensitive_filter = SensitiveDataFilter()

    log_file = log_dir / f"{APP_LOGGER_NAME}.log"
    file_handler = RotatingFileHandler(
        log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUP_COUNT, encoding="utf-8"
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )
    )
    file_handler.addFilter(sensitive_filter)
    logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(max(log_level, logging.INFO))
        console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        console_handler.addFilter(sensitive_filter)
        logger.addHandler(console_handler)

    logger.debug(f"Log file: {log_file}")
    logger.debug(f"Log level: {level}")

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger below the application root logger.

    Example:
        logger = get_logger(__name__)
        logger.info("This is an info message")
    """
    if name == APP_LOGGER_NAME or name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)

    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """Change the level of the file handler at runtime."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)
    logger = logging.getLogger(APP_LOGGER_NAME)

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            handler.setLevel(log_level)

    logger.info(f"Log level changed to: {level}")


def get_log_file_path() -> Path:
    """Return the path of the active log file."""
    logger = logging.getLogger(APP_LOGGER_NAME)

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            return Path(handler.baseFilename)

    return get_app_dir() / "logs" / f"{APP_LOGGER_NAME}.log"

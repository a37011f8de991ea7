# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Logging setup for filterbox.

Library modules log through plain ``logging.getLogger("filterbox.*")``
loggers. This module wires those loggers to console and rotating file
handlers for applications and the CLI.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class FilterBoxLogger:
    """
    Centralized logging for filterbox components.

    Features:
    - Console and file logging
    - Automatic log rotation
    - Structured log format with timestamps
    """

    def __init__(
        self,
        name: str = "filterbox",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        console_output: bool = True,
        file_output: bool = True,
    ):
        self.name = name
        self.logger = logging.getLogger(name)

        # Clear any existing handlers
        self.logger.handlers.clear()

        self.logger.setLevel(self._parse_level(level))

        console_formatter = logging.Formatter(
            fmt="[%(asctime)s] [%(name)s:%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        file_formatter = logging.Formatter(
            fmt="%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        if console_output:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(console_formatter)
            console_handler.setLevel(self._parse_level(level))
            self.logger.addHandler(console_handler)

        self.log_file: Optional[Path] = None
        if file_output:
            if log_dir is None:
                log_dir = Path.home() / ".filterbox" / "logs"

            log_dir.mkdir(parents=True, exist_ok=True)
            self.log_file = log_dir / f"{name}.log"

            # Rotate after 10MB, keep 5 backup files
            file_handler = RotatingFileHandler(
                self.log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(logging.DEBUG)  # File gets everything
            self.logger.addHandler(file_handler)

    def _parse_level(self, level: str) -> int:
        """Convert string level to logging constant"""
        return LEVELS.get(level.upper(), logging.INFO)

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra=kwargs)

    def set_level(self, level: str):
        """Change log level dynamically"""
        self.logger.setLevel(self._parse_level(level))
        for handler in self.logger.handlers:
            if not isinstance(handler, RotatingFileHandler):
                handler.setLevel(self._parse_level(level))

    def close(self):
        """Detach and close all handlers"""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


_loggers: Dict[str, FilterBoxLogger] = {}


def get_logger(
    name: str = "filterbox",
    level: Optional[str] = None,
    log_dir: Optional[Path] = None,
    console_output: bool = True,
) -> FilterBoxLogger:
    """
    Get or create a logger instance.

    Args:
        name: Logger name (usually ``filterbox`` or ``filterbox.<component>``)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the rotating log file
        console_output: Also log to stderr

    Returns:
        FilterBoxLogger instance
    """
    if name not in _loggers:
        log_level = level or os.getenv("FILTERBOX_LOG_LEVEL", "INFO")

        # CI/test runs usually disable file logging
        disable_file_logging = os.getenv("FILTERBOX_NO_FILE_LOGS", "false").lower() == "true"

        _loggers[name] = FilterBoxLogger(
            name=name,
            level=log_level,
            log_dir=log_dir,
            console_output=console_output,
            file_output=not disable_file_logging,
        )
    elif level:
        _loggers[name].set_level(level)

    return _loggers[name]


def reset_loggers():
    """Close every cached logger (used by tests and CLI re-entry)"""
    for instance in _loggers.values():
        instance.close()
    _loggers.clear()


__all__ = ["FilterBoxLogger", "get_logger", "reset_loggers", "LEVELS"]

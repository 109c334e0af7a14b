"""Centralized logging configuration.

Service loggers attach ``extra={"org_id": ...}``; every handler set up here
prints it, falling back to ``-`` for records outside an organization.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | org=%(org_id)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | org=%(org_id)s | %(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class OrgContextFilter(logging.Filter):
    """Give every record an ``org_id`` attribute so the formats never fail."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "org_id"):
            record.org_id = "-"
        return True


class ColoredFormatter(logging.Formatter):
    """Terminal formatter that colors the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Copy so file handlers sharing the record keep the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def parse_level(value: str, default: int = logging.INFO) -> int:
    """Translate a level name such as ``"debug"`` to its numeric value."""
    level = logging.getLevelName(value.strip().upper()) if value else default
    return level if isinstance(level, int) else default


def _console_handler(level: int, colored: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    formatter_cls = ColoredFormatter if colored else logging.Formatter
    handler.setFormatter(formatter_cls(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(OrgContextFilter())
    return handler


def _file_handler(log_file: str, level: int) -> logging.Handler:
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(OrgContextFilter())
    return handler


def setup_logger(
    name: str = "playday",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    colored: bool = True
) -> logging.Logger:
    """Configure and return a logger instance.

    Pass ``name=""`` to configure the root logger, which is what the entry
    points do so that every module logger reaches the same handlers.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional path of a size-rotated log file
        colored: Whether to use colored output for console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    logger.addHandler(_console_handler(level, colored))
    if log_file:
        logger.addHandler(_file_handler(log_file, level))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger by name."""
    return logging.getLogger(name)

"""
Logging configuration for the syncwatch daemon.

In stdio mode stdout carries the MCP protocol, so logs go to a file only.
The log file rotates daily. Console logging on stderr can be enabled for
HTTP mode via console=True.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"


class FlushingHandler(logging.handlers.TimedRotatingFileHandler):
    """Handler that flushes after every emit for immediate visibility."""

    def emit(self, record):
        super().emit(record)
        self.flush()


def parse_level(level: str) -> int:
    """Map a level name like "info" or "DEBUG" to a logging constant (INFO if unknown)."""
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    log_file: Optional[Path] = None,
    level: int = logging.INFO,
    backup_count: int = 7,
    console: bool = False,
) -> logging.Logger:
    """
    Set up logging for the "syncwatch" logger hierarchy.

    Calling this more than once never adds duplicate handlers.

    Args:
        log_file: Log file path (no file handler if None)
        level: Logging level (default: INFO)
        backup_count: Number of daily backup files to keep
        console: If True, also log to stderr

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("syncwatch")
    logger.setLevel(level)

    has_file_handler = any(isinstance(h, FlushingHandler) for h in logger.handlers)
    has_console_handler = any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stderr
        for h in logger.handlers
    )

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    if log_file is not None and not has_file_handler:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = FlushingHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Log file: {log_file} (level {logging.getLevelName(level)})")

    if console and not has_console_handler:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger

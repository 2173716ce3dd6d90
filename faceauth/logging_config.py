"""Logging configuration for the face authentication core.

This module provides structured logging with timestamps, module names,
and configurable log levels.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Formatter that colors level names when writing to a terminal."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, colorizing a copy so other handlers stay plain."""
        if not (hasattr(sys.stdout, "isatty") and sys.stdout.isatty()):
            return super().format(record)

        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname)
        if color:
            colored.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
            colored.name = f"{self.BOLD}{record.name}{self.RESET}"
        return super().format(colored)


def setup_logging(
    name: str = "faceauth",
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Setup and configure logger with consistent formatting.

    Args:
        name: Logger name (usually module name or 'faceauth' for the package)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, reads from environment via FaceConfig.
        log_file: Optional file path to also log to a file.

    Returns:
        Configured logger instance.

    Example:
        >>> logger = setup_logging(__name__)
        >>> logger.info("Enrollment started")
    """
    logger = logging.getLogger(name)

    # Avoid duplicate handlers on repeated calls
    if logger.handlers:
        return logger

    if level is None:
        try:
            from faceauth.config import get_config

            level = get_config().log_level
        except ValueError:
            # Invalid environment must not prevent logging from working
            level = "INFO"

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logger.level)

    # Format: 2025-11-04 15:30:45 | INFO | faceauth.enrollment | Message
    fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_fmt = "%Y-%m-%d %H:%M:%S"

    console_handler.setFormatter(ColoredFormatter(fmt, datefmt=date_fmt))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logger.level)
        file_handler.setFormatter(logging.Formatter(fmt, datefmt=date_fmt))
        logger.addHandler(file_handler)

    # Prevent propagation to root logger (avoid duplicate messages)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Configured logger instance.
    """
    return setup_logging(name)

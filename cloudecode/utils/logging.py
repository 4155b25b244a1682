"""
Logging utilities for CloudDecode.

This module provides a structured logging system for the application,
with support for different log levels, file output, and formatting.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from cloudecode.config.settings import settings

ROOT_LOGGER_NAME = "cloudecode"


class LogFormatter(logging.Formatter):
    """Custom formatter for logs with color support."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record with optional colors.

        The record's levelname is restored afterwards so other handlers
        sharing the record see the plain name.
        """
        original_levelname = record.levelname

        if self.use_colors and record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}"
                f"{record.levelname}{self.COLORS['RESET']}"
            )

        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Set up the logging system.

    Args:
        log_level (str): Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file (Optional[Union[str, Path]]): Path to log file.
        use_colors (bool): Whether to use colors in console output.

    Returns:
        logging.Logger: Configured logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Clear any existing handlers to avoid duplicate logs
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    requested = (log_level or "INFO").upper()
    if requested not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        requested = "INFO"
    numeric_level = getattr(logging, requested, logging.INFO)
    logger.setLevel(numeric_level)

    # Keep third-party request logging out of the terminal
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    from cloudecode.utils import platform_utils

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        LogFormatter(use_colors=use_colors and platform_utils.supports_ansi_colors())
    )
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        os.makedirs(log_path.parent, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized at level {requested}")

    return logger


def initialize_logging(default_level: str = "INFO") -> logging.Logger:
    """
    Initialize logging based on application settings.

    The CLI reconfigures the level per session (WARNING, or DEBUG with
    --debug).

    Returns:
        logging.Logger: Configured logger.
    """
    configured_level = settings.get("advanced", "log_level", default_level)
    return setup_logging(
        log_level=configured_level,
        log_file=settings.get_log_file_path(),
        use_colors=True,
    )


logger = initialize_logging()

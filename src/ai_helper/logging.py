"""Logging configuration for the agent runtime.

This module provides centralized logging setup with support for both
CLI flags and environment variables.
"""

import logging
import os
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Configure logging for the ai_helper package.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR).
               If not provided, checks AI_HELPER_LOG_LEVEL env var.
               Defaults to WARNING if neither is set.
        log_file: Optional path of a file that receives the same records.

    Returns:
        The configured root logger for the ai_helper package.
    """
    # resolve log level: CLI flag > env var > default
    resolved_level = (
        level
        or os.environ.get("AI_HELPER_LOG_LEVEL")
        or "WARNING"
    ).upper()

    numeric_level = getattr(logging, resolved_level, None)
    if not isinstance(numeric_level, int):
        print(f"Warning: Invalid log level '{resolved_level}', using WARNING", file=sys.stderr)
        numeric_level = logging.WARNING

    logger = logging.getLogger("ai_helper")
    logger.setLevel(numeric_level)

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    # avoid adding multiple handlers if called multiple times
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_file and not any(
        isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
        for h in logger.handlers
    ):
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(numeric_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__).

    Returns:
        Logger instance for the module.
    """
    return logging.getLogger(name)

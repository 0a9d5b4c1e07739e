"""Centralized logging setup for the document verification system.

Provides a single logging configuration with consistent formatting
across extraction, comparison, and orchestration modules.
"""

import logging
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log every request or decoded image at INFO/DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "PIL", "multipart")


def setup_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure the root logger once with a standard format.

    Third-party loggers listed in ``_NOISY_LOGGERS`` are capped at WARNING
    unless ``level`` is DEBUG. Calling again after a handler is installed
    only re-applies those caps.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
        stream: Destination of log records. Defaults to stdout.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Return the module logger for ``name``."""
    return logging.getLogger(name)

"""Logging utilities built on top of :mod:`loguru`."""
from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from loguru import logger

LOG_FORMAT = "<level>{level: <7}</level> {message}"


class LoguruHandler(logging.Handler):
    """Forward standard-library records to the loguru sink."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: object = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO", sink: Optional[TextIO] = None) -> None:
    """Configure loguru and the standard logging bridge."""

    logger.remove()
    logger.add(sink or sys.stderr, level=level, format=LOG_FORMAT, colorize=None)
    logging.basicConfig(handlers=[LoguruHandler()], level=level, force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a standard-library logger tied to loguru."""

    return logging.getLogger(name or __name__)

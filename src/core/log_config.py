"""Loguru sink configuration."""

from __future__ import annotations

import sys

from loguru import logger

from config import Settings, get_settings

CONSOLE_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(settings: Settings | None = None, level: str | None = None) -> None:
    """Replace the default loguru sink with the configured stderr/file sinks."""
    settings = settings or get_settings()
    level = level or settings.log_level

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if settings.log_file:
        logger.add(
            settings.log_file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="5 MB",
            retention=3,
            encoding="utf-8",
        )

"""
Logging setup for the API server and the CLI.

Every module logs through ``from loguru import logger``; this module only
decides where those records go.
"""
from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from config import get_settings

STDERR_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name}:{line} | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def configure_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Replace loguru's default sink with the configured ones.

    Args:
        level: Minimum level for stderr (default from settings)
        log_file: Optional file sink path (default from settings, empty disables)
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_file = settings.log_file if log_file is None else log_file

    logger.remove()
    logger.add(sys.stderr, level=level, format=STDERR_FORMAT)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )

    logger.debug("Logging configured: level={}, file={}", level, log_file or "-")

"""Logging configuration using loguru."""

import sys
from pathlib import Path
from loguru import logger

from support_assistant.utils.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger():
    """Install the console sink and the rotating file sink.

    The file sink writes one JSON record per line when ``log_format`` is
    ``json`` and plain text otherwise.
    """
    settings = get_settings()
    logger.remove()

    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=settings.log_level, colorize=True)

    log_path = Path(settings.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    serialize = settings.log_format == "json"
    logger.add(
        log_path,
        format="{message}" if serialize else FILE_FORMAT,
        serialize=serialize,
        level=settings.log_level,
        rotation=f"{settings.log_max_size_mb} MB",
        retention=settings.log_backup_count,
        encoding="utf-8",
    )

    logger.debug(f"Logging to {log_path} ({settings.log_format}, level {settings.log_level})")
    return logger


def get_logger():
    """Get the configured logger instance."""
    return logger

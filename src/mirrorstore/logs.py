"""Logging setup shared by CLI commands."""

from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from mirrorstore.config.models import LoggingSettings

ROOT_LOGGER_NAME = "mirrorstore"
_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_HANDLER_FLAG = "_mirrorstore_handler"


def log_file_path(
    settings: LoggingSettings, config_dir: Path, *, today: datetime | None = None
) -> Path:
    """Return the dated log file used when file output is enabled."""
    directory = Path(settings.directory).expanduser() if settings.directory else config_dir / "logs"
    stamp = (today or datetime.now()).strftime("%Y%m%d")
    return directory / f"mirrorstore-{stamp}.log"


def configure_logging(settings: LoggingSettings, config_dir: Path) -> logging.Logger:
    """Attach console and optional file handlers to the package logger.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        settings: Logging section of the loaded configuration.
        config_dir: Directory holding the configuration file.

    Returns:
        logging.Logger: The configured `mirrorstore` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    level = getattr(logging, settings.level)
    logger.setLevel(level)
    logger.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    console_handler.setLevel(level)
    setattr(console_handler, _HANDLER_FLAG, True)
    logger.addHandler(console_handler)

    if settings.file_output:
        path = log_file_path(settings, config_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        setattr(file_handler, _HANDLER_FLAG, True)
        logger.addHandler(file_handler)
        # file output keeps everything down to DEBUG
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = ["ROOT_LOGGER_NAME", "configure_logging", "log_file_path"]

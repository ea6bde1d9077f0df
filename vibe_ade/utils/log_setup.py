"""Loguru sink setup for the application log."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from vibe_ade.config.schema import Config
from vibe_ade.utils.helpers import ensure_dir, get_data_path

_FORMAT = "{time:YYYY-MM-DDTHH:mm:ss.SSSZZ} [{level}] {message}"


def configure_logging(config: Config, log_dir: Path | None = None, *, console: bool = True) -> Path:
    """Replace loguru's default sink with stderr + rotating file sinks.

    Returns the path of the application log file.
    """
    directory = ensure_dir(log_dir or get_data_path())
    log_path = directory / config.logging.file_name

    logger.remove()
    if console:
        logger.add(sys.stderr, level=config.logging.level, format=_FORMAT)
    logger.add(
        log_path,
        level=config.logging.level,
        format=_FORMAT,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
        encoding="utf-8",
        enqueue=False,
    )
    return log_path

"""
Package logger.

Every module logs through the shared ``log`` object:

    from methodfinder.utils.logger import log
    log.info("Loaded catalog")

Console output goes through rich on stderr. A file handler is attached when
``configure_logging`` is given a path (the CLI passes ``logging.file``
from the config manager).
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "methodfinder"
DEFAULT_LEVEL = "INFO"
FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    """Map a level name to a logging constant, falling back to INFO."""
    name = (level or os.getenv("METHODFINDER_LOG_LEVEL") or DEFAULT_LEVEL).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
    logger.setLevel(_resolve_level(None))
    logger.propagate = False
    return logger


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Reconfigure the package logger.

    Args:
        level: Level name ("DEBUG", "INFO", ...). Env var METHODFINDER_LOG_LEVEL
               is used when omitted.
        log_file: Optional path for an additional plain-text log file.

    Returns:
        The configured logger
    """
    log.setLevel(_resolve_level(level))

    if log_file:
        already_attached = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in log.handlers
        )
        if not already_attached:
            directory = os.path.dirname(os.path.abspath(log_file))
            os.makedirs(directory, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            log.addHandler(file_handler)

    return log


log = _build_logger()

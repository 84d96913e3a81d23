"""Central logger for chatguard.

A single ``chatguard`` root logger is configured once; modules obtain child
loggers through :func:`get_logger`.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

ROOT_LOGGER_NAME = "chatguard"

_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """Configure the root chatguard logger (idempotent).

    Logs go to stderr; when ``log_file`` is given a daily rotating file
    handler keeping 30 days of history is added as well.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Prevent duplicate handlers on reload / repeated engine construction
    if logger.handlers:
        return logger

    level = (level or os.environ.get("CHATGUARD_LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level, logging.INFO))
    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    log_file = log_file or os.environ.get("CHATGUARD_LOG_FILE", "")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = TimedRotatingFileHandler(
            log_file,
            when="midnight",
            backupCount=30,
            encoding="utf-8",
            utc=True,
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("moderation")`` -> chatguard.moderation."""
    return logging.getLogger(ROOT_LOGGER_NAME).getChild(module_name)

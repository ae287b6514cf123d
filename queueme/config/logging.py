"""Logging configuration for the application."""

import logging
import logging.config
import sys
from typing import Optional

from queueme.config.settings import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger with a single console handler.

    Args:
        level: Log level name. Defaults to ``settings.log_level``.
    """
    level = (level or settings.log_level).upper()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {
                "format": LOG_FORMAT,
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "simple",
                "stream": sys.stdout
            },
        },
        "loggers": {
            "queueme": {
                "level": level,
                "handlers": ["console"],
                "propagate": False
            },
            "sqlalchemy.engine": {
                "level": "INFO" if settings.app_debug else "WARNING",
                "handlers": ["console"],
                "propagate": False
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"]
        },
    })

"""Logging setup: readable console output plus a rotating JSON log file."""

import copy
import logging
import logging.config
from typing import Any


LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        },
        "console": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "WARNING",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
        "json_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "json",
            "filename": "logs/slicechart.log",
            "maxBytes": 5242880,  # 5MB
            "backupCount": 3,
        },
    },
    "loggers": {
        "slice_chart": {
            "level": "DEBUG",
            "handlers": ["console", "json_file"],
            "propagate": False,
        },
        # matplotlib's font manager is chatty at DEBUG
        "matplotlib": {
            "level": "WARNING",
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def setup_logging(json_output: bool = False, log_level: str = "WARNING") -> None:
    """Configure logging for the application.

    Args:
        json_output: If True, use JSON formatter for console output
        log_level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    import os

    os.makedirs("logs", exist_ok=True)

    config = copy.deepcopy(LOGGING_CONFIG)

    if json_output:
        config["handlers"]["console"]["formatter"] = "json"

    if log_level:
        config["handlers"]["console"]["level"] = log_level.upper()

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``slice_chart`` hierarchy; pass ``__name__``."""
    return logging.getLogger(name)

"""Logging setup (console + optional rotating file) via dictConfig."""

import sys
import logging.config
from pathlib import Path
from typing import Optional


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure application logging.

    Args:
        level: Root log level name (INFO, DEBUG, ...)
        log_file: Optional path for a rotating log file (5MB x 3 backups)
    """
    level = level.upper()
    handlers = ["console"]

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "level": level,
                "formatter": "plain",
            },
        },
        "loggers": {},
        "root": {"handlers": handlers, "level": level},
    }

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(path),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "encoding": "utf-8",
            "level": "DEBUG",
            "formatter": "plain",
        }
        handlers.append("file")

    for name in ("uvicorn.error", "uvicorn.access"):
        config["loggers"][name] = {"handlers": list(handlers), "level": level, "propagate": False}

    logging.config.dictConfig(config)

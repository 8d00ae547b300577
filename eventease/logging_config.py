import logging
import sys
from pathlib import Path
from typing import Any, Dict

from eventease.config import get_settings

JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _rotating_json_handler(path: Path, level: str) -> Dict[str, Any]:
    return {
        "level": level,
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "filename": str(path),
        "maxBytes": 10 * 1024 * 1024,
        "backupCount": 5,
        "encoding": "utf-8",
    }


def configure_logging() -> Dict[str, Any]:
    """Build the dictConfig for the application.

    Three sinks:

    * ``console``: human-readable lines on stdout
    * ``file``: every application record as JSON in ``eventease.log``
    * ``audit``: CRUD activity only (creations, registrations, status
      transitions, deletions) as JSON in ``audit.log``

    ``extra`` fields such as ``request_id`` end up as JSON keys.

    Returns:
        Dict: Logging configuration dictionary
    """
    settings = get_settings()
    level = settings.LOG_LEVEL.upper()
    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    app_handlers = ["console", "file"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": JSON_FORMAT,
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": sys.stdout,
            },
            "file": _rotating_json_handler(log_dir / "eventease.log", level),
            "audit": _rotating_json_handler(log_dir / "audit.log", "INFO"),
        },
        "loggers": {
            "eventease": {"handlers": app_handlers, "level": level, "propagate": False},
            # Propagates to "eventease" as well
            "eventease.crud": {"handlers": ["audit"], "level": "INFO", "propagate": True},
            "uvicorn": {"handlers": app_handlers, "level": level, "propagate": False},
            "sqlalchemy.engine": {"handlers": app_handlers, "level": "WARNING", "propagate": False},
        },
    }


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``eventease`` namespace.

    Args:
        name: Dotted suffix for the logger, e.g. ``"crud.event"``

    Returns:
        logging.Logger: Configured logger instance
    """
    return logging.getLogger(f"eventease.{name}")

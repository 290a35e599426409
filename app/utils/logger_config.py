import logging
import logging.config
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.config.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
PRODUCTION_LOG_DIR = Path("/var/log/delito")
MB = 1024 * 1024


def _log_dir() -> Path:
    log_dir = Path(settings.LOG_DIR) if settings.LOG_DIR else Path(__file__).parents[2] / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logger(name: str = "delito", log_file: str = "admin.log") -> logging.Logger:
    """
    Console and rotating-file logger for one part of the admin API.

    Request handlers share the ``delito`` logger; the earnings sync writes to
    ``delito.sync`` with its own file so scheduled runs can be audited apart.
    """
    logger = logging.getLogger(name)
    logger.setLevel(settings.LOG_LEVEL)

    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        file_handler = RotatingFileHandler(
            _log_dir() / log_file, maxBytes=MB, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.propagate = False

    return logger


def _rotating(filename: str, level: str = "INFO") -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "filename": str(PRODUCTION_LOG_DIR / filename),
        "maxBytes": 10 * MB,
        "backupCount": 5,
        "formatter": "verbose",
        "level": level,
    }


def configure_production_logging():
    """Route app, sync and error logs to separate files under /var/log/delito"""
    PRODUCTION_LOG_DIR.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "verbose": {
                    "format": "%(asctime)s - %(name)s - %(levelname)s - [%(process)d] - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "app": _rotating("app.log"),
                "sync": _rotating("sync.log"),
                "error": _rotating("error.log", level="ERROR"),
            },
            "loggers": {
                "delito": {"handlers": ["app", "error"], "level": settings.LOG_LEVEL},
                "delito.sync": {
                    "handlers": ["sync", "error"],
                    "level": settings.LOG_LEVEL,
                    "propagate": False,
                },
            },
        }
    )

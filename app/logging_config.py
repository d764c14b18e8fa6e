"""
Logging Configuration
Sets up centralized logging for the application, writing to the console
and, when a path is configured, to a rotating log file.
"""

import logging
import logging.config
import sys
from pathlib import Path


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level for the ``app`` logger tree.
        log_file: Optional path of a rotating log file.
    """
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "default",
            "level": log_level,
        },
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,  # 10 MB
            "backupCount": 5,
            "formatter": "default",
            "level": log_level,
            "encoding": "utf8",
        }
    handler_names = list(handlers)

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": handler_names,
                "level": log_level,
            },
            "uvicorn.access": {
                "handlers": handler_names,
                "level": "INFO",
                "propagate": False,
            },
            "app": {
                "handlers": handler_names,
                "level": log_level,
                "propagate": False,
            },
        },
    })

    logger = logging.getLogger("app")
    if log_file:
        logger.info("Logging initialized. Writing logs to %s", log_file)
    else:
        logger.info("Logging initialized (console only)")

"""Centralized logging configuration."""

import logging
import sys

from app.config import settings


ROOT_LOGGER_NAME = "healthcare_directory"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ["httpx", "httpcore", "openai", "pymongo"]


def setup_logging() -> logging.Logger:
    """Configure the application logger and quiet the provider clients."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(level)

    # uvicorn --reload imports this module again
    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        app_logger.addHandler(handler)

    third_party_level = logging.DEBUG if level == logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    app_logger.debug(f"Logging configured with level: {logging.getLevelName(level)}")
    return app_logger


def get_logger(component: str) -> logging.Logger:
    """Child logger, e.g. healthcare_directory.maps, sharing the app handler."""
    return logger.getChild(component)


logger = setup_logging()

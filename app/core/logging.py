"""Centralized logging configuration."""

import logging
import sys
from typing import Optional

from app.config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return the ``dental_clinic`` logger.

    Args:
        level: Level name; defaults to ``settings.LOG_LEVEL``
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    app_logger = logging.getLogger("dental_clinic")
    app_logger.setLevel(numeric_level)

    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        app_logger.addHandler(handler)
    for handler in app_logger.handlers:
        handler.setLevel(numeric_level)

    # passlib reports bcrypt backend version probing at WARNING
    logging.getLogger("passlib").setLevel(logging.ERROR)

    app_logger.debug(f"Logging configured with level: {level_name}")
    return app_logger


logger = setup_logging()

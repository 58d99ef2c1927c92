"""
Logging setup shared by services and repositories.
"""

import logging
import sys

from projecthub.core.config import get_settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """
    Get a module logger with a single stream handler.

    Calling this repeatedly for the same name does not add duplicate handlers.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    logger.setLevel(get_settings().LOG_LEVEL.upper())
    return logger

# core/logging_config.py
import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOGGER_NAME = "cleanit"


def setup_logger(level: str = None) -> logging.Logger:
    """
    Single app-wide logger. Level comes from LOG_LEVEL (default INFO).
    """
    logger = logging.getLogger(LOGGER_NAME)

    # uvicorn --reload re-imports modules; keep one handler
    if logger.handlers:
        return logger

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    logger.propagate = False

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    return logger


logger = setup_logger()

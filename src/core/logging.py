"""
Loguru setup for the reviewer.

Every record carries `extra[logger_name]`, bound per component by get_logger().
"""

import sys
from typing import Optional

from loguru import logger

from src.config import settings

DEFAULT_LOGGER_NAME = "reviewer"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan> | "
    "<blue>{function}</blue>:<blue>{line}</blue> - "
    "<level>{message}</level>"
)
PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[logger_name]} - {message}"


def _log_level() -> str:
    if settings.log_level:
        return settings.log_level.upper()
    return "DEBUG" if settings.debug else "INFO"


def configure_logging() -> None:
    """Colour console output in development, JSON lines elsewhere, plus an optional file."""
    logger.remove()
    logger.configure(extra={"logger_name": DEFAULT_LOGGER_NAME})
    level = _log_level()

    if settings.environment == "development":
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=True,
        )
    else:
        logger.add(sys.stderr, format=PLAIN_FORMAT, level=level, serialize=True)

    if settings.log_file:
        logger.add(settings.log_file, format=PLAIN_FORMAT, level=level, rotation="10 MB")


configure_logging()


def get_logger(name: Optional[str] = None):
    if name:
        return logger.bind(logger_name=name)
    return logger

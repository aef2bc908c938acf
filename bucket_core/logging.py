"""
Centralized logging configuration for bucket-provider.
Initializes loguru and intercepts standard library logging.
"""

import logging
import sys

from loguru import logger

from bucket_core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<magenta>{extra[call_id]}</magenta> <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """
    Default handler from documents for intercepting standard library logging messages.
    See: https://loguru.readthedocs.io/en/stable/overview.html#entirely-compatible-with-standard-logging
    """

    def emit(self, record):
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None):
    """
    Configures loguru to handle all logs and output them to stdout.

    Args:
        level: Minimum level for the stdout sink (defaults to settings.LOG_LEVEL).
    """
    level = level or settings.LOG_LEVEL

    # Remove all existing handlers
    logger.remove()

    # Records logged outside an operation have no call id
    logger.configure(extra={"call_id": "-"})

    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=level,
        colorize=True,
    )

    # Intercept standard library logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # The storage client and its HTTP pool log through the stdlib
    for name in ["minio", "urllib3", "urllib3.connectionpool"]:
        _logger = logging.getLogger(name)
        _logger.handlers = [InterceptHandler()]
        _logger.propagate = False

    logger.info(f"Logging initialized for {settings.SERVICE_NAME} with Loguru.")

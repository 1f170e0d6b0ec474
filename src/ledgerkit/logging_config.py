"""Logging setup shared by the CLI entry points.

Usage:
    from ledgerkit.logging_config import setup_logging
    setup_logging(logging.DEBUG)
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO
NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "asyncio",
]


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Install a single stderr handler on the root logger.

    Args:
        level: Level for ledgerkit messages

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Repeated calls must not stack handlers
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return root_logger

"""
Logging setup.

Configures loguru sinks for services and workers.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logger with stderr output and optional file rotation.

    Args:
        level: Minimum log level
        log_file: Path of the rotating log file, None to disable
    """
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

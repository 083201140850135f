"""
Service Initialization - Logging Module.

Module: logging.py
Configures loguru logger for the service.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure stderr sink and optional rotating file sink.

    Args:
        level: Minimum level for both sinks
        log_file: Path of the rotating log file, None to disable
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}",
    )

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

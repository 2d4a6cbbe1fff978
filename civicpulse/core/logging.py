"""
Logging configuration for CivicPulse.
"""

import logging
import sys
from typing import Optional

from civicpulse.core.settings import settings


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root handler and return the application logger.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)

    Returns:
        The "civicpulse" logger
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logger = logging.getLogger("civicpulse")
    logger.setLevel(log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    return logger

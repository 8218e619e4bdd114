"""
Logging setup for terminal readability.
"""
import logging
from typing import Optional

import structlog

from inputs_client.config import get_settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog on top of the stdlib logging module."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(format="%(message)s", level=getattr(logging, level_name, logging.INFO))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

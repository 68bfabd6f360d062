"""
Structured logging configuration.

- json: one JSON object per line (log aggregator compatible)
- console: human-readable colored output for development
"""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure structlog and the stdlib root logger.

    Defaults come from LOG_LEVEL / LOG_FORMAT via settings.
    """
    from .config import get_settings

    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    fmt = (fmt or settings.log_format).lower()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

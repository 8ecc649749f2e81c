"""Structured logging configuration.

This module initializes structlog with a stable JSON line format routed
through the standard logging module, so log lines go to stderr and never
mix with command output. Every module obtains its logger through
``get_logger``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a stderr handler to the root logger unless one exists.

    Args:
        level: Minimum level emitted.
    """
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured JSON output.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(name)

"""
Structured logging configuration using structlog.

Log lines go to stderr so that CLI output on stdout stays valid JSON.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import Settings, settings as default_settings


def setup_logging(config: Optional[Settings] = None) -> None:
    """
    Configure structlog once at process start.

    Events carry the log level and an ISO timestamp and are rendered as
    JSON lines (log_json=True) or as colored console output. Events below
    log_level are dropped before any processor runs.

    Args:
        config: Settings to read log level/format from (defaults to global settings)
    """
    config = config or default_settings

    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

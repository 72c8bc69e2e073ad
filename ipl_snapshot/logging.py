"""
Centralized structlog configuration for the snapshot service.

JSON logs to stdout. Adapter and parse failures are swallowed by design of the
pipeline, so this is where operators see them.
"""

from __future__ import annotations

import logging

import structlog

from ipl_snapshot.config import ENVIRONMENT, LOG_LEVEL


def _normalize_log_level(level: str | None, environment: str) -> int:
    env = environment.lower()
    if level:
        normalized = level.strip().upper()
    else:
        normalized = "INFO" if env == "production" else "DEBUG"
    return logging._nameToLevel.get(normalized, logging.INFO)


def configure_logging() -> None:
    resolved_level = _normalize_log_level(LOG_LEVEL, ENVIRONMENT)
    logging.basicConfig(level=resolved_level)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


# Configure logging at module import time
configure_logging()

logger = structlog.get_logger("ipl-snapshot").bind(
    service="ipl-snapshot",
    environment=ENVIRONMENT,
)

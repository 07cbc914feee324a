"""
structlog setup for the hoop-sync worker.

Every event is one JSON line on stdout carrying the service name and
environment, so worker and beat output can be filtered together.
"""

from __future__ import annotations

import logging

import structlog

from .config import settings

SERVICE_NAME = "hoop-sync"


def resolve_log_level(level: str | None, environment: str) -> int:
    """LOG_LEVEL wins; otherwise production logs at INFO and everything else at DEBUG."""
    name = (level or "").strip().upper()
    if not name:
        name = "INFO" if environment.lower() == "production" else "DEBUG"
    return logging.getLevelNamesMapping().get(name, logging.INFO)


SHARED_PROCESSORS = (
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.add_log_level,
    structlog.processors.EventRenamer("message"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
)


def configure_logging(level: int | None = None) -> None:
    if level is None:
        level = resolve_log_level(settings.log_level, settings.environment)
    # Celery and SQLAlchemy log through the stdlib root logger.
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[*SHARED_PROCESSORS, structlog.processors.JSONRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


configure_logging()

logger = structlog.get_logger(SERVICE_NAME).bind(
    service=SERVICE_NAME,
    environment=settings.environment,
)

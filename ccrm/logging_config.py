"""
Structured logging setup.

Modules only ever call ``structlog.get_logger(__name__)``; this wires the
processor chain from settings for applications that want JSON or console output.
"""

import logging

import structlog

from ccrm.config import Settings


def configure_logging(settings: Settings) -> None:
    """
    Configure structlog from application settings.

    Args:
        settings: Source of ``log_level`` and ``log_format``
    """
    level = logging.getLevelName(settings.log_level)

    renderer: structlog.types.Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )

    structlog.get_logger(__name__).info(
        "Logging configured",
        app=settings.app_name,
        environment=settings.environment,
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

"""Structured logging configuration.

Purpose: JSON-formatted logs for clinic services (bookings, billing, lab orders).

Pattern: structlog with standard library integration.
"""
import logging
import sys

import structlog


def setup_structured_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Render JSON lines; falls back to the console renderer for local use
    """
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper())
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get logger instance with structured logging.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def bind_actor(role: str, staff_id: str = None) -> None:
    """Attach the signed-in role (and staff id) to every following log line."""
    structlog.contextvars.bind_contextvars(actor_role=role, actor_staff_id=staff_id)


def clear_actor() -> None:
    """Drop the actor context bound by bind_actor."""
    structlog.contextvars.unbind_contextvars("actor_role", "actor_staff_id")

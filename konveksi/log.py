"""structlog setup for the order engine."""

import logging

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON rendering and ISO timestamps."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def get_logger(name: str, **initial) -> structlog.BoundLogger:
    """Return a logger bound to ``component=name`` plus any initial context."""
    return structlog.get_logger(name).bind(component=name, **initial)

"""
Structured logging via structlog.

The trace layer logs snake_case events (request_received_*, response_generated,
stream_closed, request_failed, trace_id_*) with span and trace_id bound as fields;
merge_contextvars carries the same trace_id into handler logs.

Call configure_logging() once at app startup (app.run does).
Use get_logger(__name__) in each module.
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "INFO", log_format: str = "json"):
    """Configure structlog for JSON output compatible with log aggregators.

    ``log_format="console"`` swaps the JSON renderer for the coloured dev renderer.
    """
    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
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

    # Set root logger level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def get_logger(name: str):
    """Get a structured logger for a module."""
    return structlog.get_logger(name)

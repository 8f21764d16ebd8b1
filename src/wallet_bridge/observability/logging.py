"""Structured logging configuration for the wallet bridge.

Logs are emitted through structlog as JSON (or console output in
development). Bridge events are dotted names with the correlation id bound as
``request_id``; payload contents are never logged.

Examples:
    Configure logging::

        from wallet_bridge.observability.logging import configure_logging

        configure_logging(level="INFO", json_output=True)

    Use the logger::

        from wallet_bridge.observability.logging import get_logger

        logger = get_logger(__name__)
        logger.info(
            "request.transition",
            request_id="6f1c5c7e-8d0e-4c43-9a4e-2f5f3c1d2b7a",
            from_state="initialized",
            to_state="retrieved",
        )

    Output (JSON)::

        {
            "request_id": "6f1c5c7e-8d0e-4c43-9a4e-2f5f3c1d2b7a",
            "from_state": "initialized",
            "to_state": "retrieved",
            "event": "request.transition",
            "level": "info",
            "timestamp": "2024-01-01T00:00:00.000000Z"
        }
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Configure structured logging for the process.

    Call once at startup, before the first log line.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, emit JSON logs; if False, use console format
    """
    log_level = getattr(logging, level.upper())

    # uvicorn and redis log through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[object] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        A structlog logger instance
    """
    return structlog.get_logger(name)

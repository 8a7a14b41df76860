"""Structured logging configuration using structlog.

JSON lines go to stderr in production; ``fmt="console"`` switches to the
coloured key-value renderer for local development.  Per-request context
(method, path, request id) is carried through ``structlog.contextvars`` so
that every log line emitted while serving a request is tagged with it.
"""

from __future__ import annotations

import logging
import sys
from uuid import uuid4

import structlog


def setup_logging(level: str = "info", fmt: str = "json") -> None:
    """Configure structlog output for the whole process."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: structlog.types.Processor
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def bind_request(method: str, path: str) -> str:
    """Bind request-scoped context for the current task and return its id."""
    request_id = uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()

"""
fontspine logging - structured logging for build runs.

Manifesto:
    A build run interleaves hundreds of tasks. Every log line carries the
    task key it belongs to, so an operator can grep one variant's history
    out of a parallel run:

    - **Structured:** events are dotted names with key/value fields
    - **Correlated:** ``task`` and ``run_id`` are bound via contextvars
    - **Flexible:** colored console output for terminals, JSON for CI logs

Architecture:
    ::

        configure_logging(level="INFO", fmt="console")
            │
            ▼
        structlog processor chain:
          1. merge_contextvars      (task, run_id)
          2. add_log_level
          3. add_logger_name
          4. TimeStamper(iso)
          5. ConsoleRenderer | JSONRenderer

Examples:
    >>> from fontspine.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.info("task.start", key="pass1::mono::cl::regular")

Tags:
    logging, structlog, observability, fontspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

_configured = False


def configure_logging(
    level: str = "INFO",
    fmt: Literal["console", "json"] | None = None,
    force: bool = False,
) -> None:
    """Configure structured logging for the application.

    Subsequent calls are no-ops unless ``force=True``.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        fmt: ``json`` or ``console``; ``None`` picks JSON when stderr is not a tty
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    level_num = getattr(logging, level.upper(), logging.INFO)
    if fmt is None:
        fmt = "console" if sys.stderr.isatty() else "json"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if fmt == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level_num,
        force=True,
    )
    logging.getLogger("fontspine").setLevel(level_num)

    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs of this task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(task="pass1::mono::cl::regular"):
            logger.info("tool.run")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: Any = None

    def __enter__(self) -> LogContext:
        self._tokens = structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]

"""Structured logging for prdflow.

Events are emitted through structlog and delivered by a stdlib handler:
stdout by default, or a size-rotated file. Two pieces of context are
attached automatically when present:

* ``correlation_id``, one per CLI invocation, so every event produced by
  a single command can be grouped;
* ``document_id`` / ``document_kind``, bound while a command works on a
  specific requirement or PRD.

Event names are snake_case verbs in the past tense (``review_submitted``,
``version_rescheduled``); extra fields carry the details.
"""

from __future__ import annotations

import contextvars
import logging
import logging.handlers
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

from prdflow.config import LoggingConfig

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "prdflow_correlation_id", default=None
)


def add_correlation_id(
    _logger: Any, _method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor copying the active correlation ID into the event."""
    value = _correlation_id.get()
    if value is not None:
        event_dict.setdefault("correlation_id", value)
    return event_dict


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def new_correlation_id() -> str:
    """Short random identifier for one unit of work."""
    return uuid.uuid4().hex[:12]


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Set a correlation ID for the duration of the block, then restore."""
    value = correlation_id or new_correlation_id()
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)


def bind_document_context(document_id: str, kind: str) -> None:
    """Attach the document being worked on to all following events.

    Args:
        document_id: Requirement or PRD identifier
        kind: ``requirement`` or ``prd``
    """
    structlog.contextvars.bind_contextvars(document_id=document_id, document_kind=kind)


def _build_handler(config: LoggingConfig) -> logging.Handler:
    if config.file is None:
        return logging.StreamHandler(sys.stdout)
    config.file.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        filename=config.file,
        maxBytes=config.rotation_size_mb * 1024 * 1024,
        backupCount=config.retention_count,
        encoding="utf-8",
    )


def _renderer(config: LoggingConfig) -> structlog.types.Processor:
    if config.format == "console":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer(ensure_ascii=False)


def setup_logging(config: LoggingConfig) -> None:
    """Route structlog through a single stdlib handler on the root logger.

    Safe to call repeatedly; each call replaces the previous handler.
    """
    level = logging.getLevelName(config.level)

    handler = _build_handler(config)
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            add_correlation_id,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _renderer(config),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)

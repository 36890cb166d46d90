"""Structured logging and OpenTelemetry spans for floe-lineage.

This module provides:
- Structured logging setup via structlog
- OpenTelemetry span helpers for lineage queries
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer
    from structlog.stdlib import BoundLogger

# Module-level logger and tracer
_logger: BoundLogger | None = None
_tracer: Tracer | None = None

# Tracer name for OpenTelemetry
TRACER_NAME = "floe.lineage"


def get_logger() -> BoundLogger:
    """Get the module logger, creating it if necessary.

    Returns:
        Configured structlog BoundLogger instance.

    Example:
        >>> logger = get_logger()
        >>> logger.debug("ancestor_walk_ended", start_id=3, end="root")
    """
    global _logger
    if _logger is None:
        _logger = structlog.get_logger(TRACER_NAME)
    assert _logger is not None  # Type narrowing for mypy
    return _logger


def get_tracer() -> Tracer:
    """Get the OpenTelemetry tracer for floe-lineage.

    Returns:
        OpenTelemetry Tracer instance.
    """
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(TRACER_NAME)
    return _tracer


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = True,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for floe-lineage.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON format. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
    """
    import logging

    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )


@contextmanager
def span(
    name: str,
    *,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
    tracer: Tracer | None = None,
    logger: BoundLogger | None = None,
    log_start: bool = True,
    log_end: bool = True,
) -> Iterator[Span]:
    """Create an OpenTelemetry span with structured logging.

    Args:
        name: Span name (e.g., "lineage.is_ancestor_of").
        kind: Span kind (INTERNAL, CLIENT, SERVER, PRODUCER, CONSUMER).
        attributes: Optional span attributes.
        tracer: Tracer to use instead of the module tracer.
        logger: Logger to use instead of the module logger.
        log_start: If True, log span start.
        log_end: If True, log span end.

    Yields:
        OpenTelemetry Span instance.
    """
    tracer = tracer or get_tracer()
    logger = logger or get_logger()
    attrs = attributes or {}

    with tracer.start_as_current_span(name, kind=kind, attributes=attrs) as s:
        if log_start:
            logger.debug(f"{name}_started", **attrs)
        try:
            yield s
            s.set_status(Status(StatusCode.OK))
            if log_end:
                logger.debug(f"{name}_completed", **attrs)
        except Exception as exc:
            s.set_status(Status(StatusCode.ERROR, str(exc)))
            s.record_exception(exc)
            logger.warning(f"{name}_failed", error=str(exc), **attrs)
            raise


@contextmanager
def lineage_operation(
    operation: str,
    *,
    snapshot_id: int | None = None,
    ancestor_id: int | None = None,
    branch: str | None = None,
    timestamp_ms: int | None = None,
    tracer: Tracer | None = None,
    logger: BoundLogger | None = None,
) -> Iterator[Span]:
    """Create a span for lineage queries with standard attributes.

    Convenience wrapper around span() with lineage-specific attributes.

    Args:
        operation: Query name (e.g., "is_ancestor_of", "oldest_ancestor").
        snapshot_id: Snapshot the query starts from.
        ancestor_id: Candidate ancestor or range boundary.
        branch: Reference name for head-relative queries.
        timestamp_ms: Time threshold for time-based queries.
        tracer: Tracer to use instead of the module tracer.
        logger: Logger to use instead of the module logger.

    Yields:
        OpenTelemetry Span instance.

    Example:
        >>> with lineage_operation("is_ancestor_of", snapshot_id=3, ancestor_id=1):
        ...     found = is_ancestor_of(3, 1, resolver.snapshot_by_id)
    """
    attrs: dict[str, Any] = {"lineage.operation": operation}
    if snapshot_id is not None:
        attrs["lineage.snapshot_id"] = snapshot_id
    if ancestor_id is not None:
        attrs["lineage.ancestor_id"] = ancestor_id
    if branch:
        attrs["lineage.branch"] = branch
    if timestamp_ms is not None:
        attrs["lineage.timestamp_ms"] = timestamp_ms

    with span(
        f"lineage.{operation}",
        kind=SpanKind.INTERNAL,
        attributes=attrs,
        tracer=tracer,
        logger=logger,
    ) as s:
        yield s

"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured logging formatter for consistent log output
- Helper functions for resident matching and batch booking logging

Usage:
    from tablebook.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Matching resident", extra={"date": "2025-06-01"})

Guest email addresses and phone numbers are never passed to these helpers;
only tiers, ids and counts are logged.
"""

import datetime as dt
import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_correlation_id() -> str:
    """Generate a new correlation ID.

    Returns:
        UUID-based correlation ID string
    """
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current request context.

    Args:
        correlation_id: Optional existing correlation ID. If None, generates new one.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "no-correlation-id"
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or "no-correlation-id"

        base = super().format(record)

        # Correlation ID prefix for easy grep/filtering
        return f"[{record.correlation_id}] {base}"


def get_logger(name: str) -> logging.Logger:
    """Get a logger with correlation ID support.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def configure_logging(level: int = logging.INFO) -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; the handler is only added the first time.

    Args:
        level: Root log level
    """
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler.formatter, StructuredFormatter):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def log_resident_match(
    logger: logging.Logger,
    operation: str,
    *,
    date: dt.date | None = None,
    tier: int | None = None,
    booking_id: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a resident matching or verification operation.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "match", "verify_phone", "verify_reference")
        date: Stay date the operation ran against
        tier: Resulting match tier if relevant
        booking_id: Matched stay booking ID if any
        error: Error message if the operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if date is not None:
        context["date"] = date.isoformat()
    if tier is not None:
        context["tier"] = int(tier)
    if booking_id is not None:
        context["booking_id"] = booking_id
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Resident operation: {operation}"]
    for key, value in context.items():
        if key != "operation":
            msg_parts.append(f"{key}={value}")

    message = " | ".join(msg_parts)

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_booking_batch(
    logger: logging.Logger,
    *,
    date_count: int,
    succeeded: int,
    failed: int,
    no_table: int = 0,
    stay_id: int | None = None,
    **extra: Any,
) -> None:
    """Log the outcome of a multi-night booking submission.

    Partial failure is an expected outcome, so it is logged as a warning
    rather than an error.

    Args:
        logger: Logger instance
        date_count: Number of nights submitted for booking
        succeeded: Nights booked successfully
        failed: Nights that failed
        no_table: Nights marked as not needing a table
        stay_id: Resident stay booking ID if the guest is a resident
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "date_count": date_count,
        "succeeded": succeeded,
        "failed": failed,
        "no_table": no_table,
    }
    if stay_id is not None:
        context["stay_id"] = stay_id
    context.update(extra)

    message = (
        f"Booking batch: {succeeded}/{date_count} booked"
        f" | failed={failed} | no_table={no_table}"
    )
    if stay_id is not None:
        message += f" | stay={stay_id}"

    if failed:
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)

"""Structured logging utilities with correlation ID support.

Provides:
- Correlation ID context management for request tracing
- Structured formatter that prefixes every line with the correlation ID
- Helpers for reservation, payment and webhook logging

Usage:
    from campreserv.utils.logging import get_logger, set_correlation_id

    # In middleware/request handler:
    set_correlation_id(request.headers.get("X-Correlation-ID"))

    # In service code:
    logger = get_logger(__name__)
    logger.info("Hold created", extra={"hold_id": "HOLD-123"})
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

# Context variable for correlation ID - thread-safe and async-safe
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

NO_CORRELATION_ID = "no-correlation-id"


def generate_correlation_id() -> str:
    """Generate a new UUID-based correlation ID."""
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
    """Get the current correlation ID, or None if not set."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID context."""
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter for structured log output with correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or NO_CORRELATION_ID

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

    Safe to call more than once; an existing structured handler is reused.
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


def _join_context(title: str, context: dict[str, Any], skip: str) -> str:
    parts = [title]
    for key, value in context.items():
        if key != skip:
            parts.append(f"{key}={value}")
    return " | ".join(parts)


def log_reservation_operation(
    logger: logging.Logger,
    operation: str,
    *,
    reservation_id: str | None = None,
    campground_id: str | None = None,
    site_id: str | None = None,
    status: str | None = None,
    total_cents: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a reservation lifecycle operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "create_reservation", "cancel_reservation")
        reservation_id: Reservation ID if available
        campground_id: Campground the reservation belongs to
        site_id: Assigned site
        status: Reservation status after the operation
        total_cents: Reservation total in cents
        error: Error message if the operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if reservation_id:
        context["reservation_id"] = reservation_id
    if campground_id:
        context["campground_id"] = campground_id
    if site_id:
        context["site_id"] = site_id
    if status:
        context["status"] = status
    if total_cents is not None:
        context["total_cents"] = total_cents
    if error:
        context["error"] = error

    context.update(extra)

    message = _join_context(f"Reservation operation: {operation}", context, "operation")

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_payment_operation(
    logger: logging.Logger,
    operation: str,
    *,
    payment_id: str | None = None,
    reservation_id: str | None = None,
    amount_cents: int | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a payment operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g., "record_payment", "process_refund")
        payment_id: Payment ID if available
        reservation_id: Reservation ID if available
        amount_cents: Amount in cents if relevant
        status: Payment/transaction status
        error: Error message if operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}

    if payment_id:
        context["payment_id"] = payment_id
    if reservation_id:
        context["reservation_id"] = reservation_id
    if amount_cents is not None:
        context["amount_cents"] = amount_cents
    if status:
        context["status"] = status
    if error:
        context["error"] = error

    context.update(extra)

    message = _join_context(f"Payment operation: {operation}", context, "operation")

    if error:
        logger.error(message, extra=context)
    else:
        logger.info(message, extra=context)


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    campground_id: str | None = None,
    object_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a webhook event with structured context.

    Args:
        logger: Logger instance
        event_type: Stripe event type (e.g., "payout.paid")
        event_id: Stripe event ID
        campground_id: Campground resolved from the event metadata
        object_id: ID of the Stripe object the event carries
        result: Processing result (success, duplicate, skipped, error)
        error: Error message if processing failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "event_type": event_type,
        "event_id": event_id,
    }

    if campground_id:
        context["campground_id"] = campground_id
    if object_id:
        context["object_id"] = object_id
    if result:
        context["result"] = result
    if error:
        context["error"] = error

    context.update(extra)

    msg_parts = [f"Webhook event: {event_type} ({event_id})"]
    if result:
        msg_parts.append(f"result={result}")
    if object_id:
        msg_parts.append(f"object={object_id}")
    if error:
        msg_parts.append(f"error={error}")

    message = " | ".join(msg_parts)

    if result == "error":
        logger.error(message, extra=context)
    elif result in ("duplicate", "skipped"):
        logger.warning(message, extra=context)
    else:
        logger.info(message, extra=context)

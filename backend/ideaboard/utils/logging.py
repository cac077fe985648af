"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- user_id
- plan_id
- duration_ms

Usage:
    from ideaboard.utils.logging import configure_logging, log_generation_admitted

    configure_logging('ideaboard-api', 'INFO')
    log_generation_admitted(logger, user_id='123', plan_id='basic', generation_count=2, remaining=3)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (e.g., ideaboard-api)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (for container logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    user_id: Optional[str] = None,
    plan_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        user_id: Optional user ID
        plan_id: Optional plan ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if user_id:
        extra["user_id"] = user_id
    if plan_id:
        extra["plan_id"] = plan_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Generation metering events

def log_generation_admitted(
    logger: logging.Logger,
    user_id: str,
    plan_id: str,
    generation_count: int,
    remaining: int,
    window_reset: bool = False,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a generation that was admitted and recorded."""
    extra = _build_log_extra(
        event="generation_admitted",
        user_id=user_id,
        plan_id=plan_id,
        duration_ms=duration_ms,
        generation_count=generation_count,
        remaining=remaining,
        window_reset=window_reset,
        **kwargs
    )
    logger.info(f"Generation recorded for user {user_id}: {generation_count} used, {remaining} left", extra=extra)


def log_quota_exceeded(
    logger: logging.Logger,
    user_id: str,
    plan_id: str,
    limit: int,
    **kwargs
):
    """
    Log a rejected generation.

    Quota rejections are expected user-facing outcomes, so they are
    logged at info level, never as errors.
    """
    extra = _build_log_extra(
        event="quota_exceeded",
        user_id=user_id,
        plan_id=plan_id,
        limit=limit,
        **kwargs
    )
    logger.info(f"Quota exceeded for user {user_id} on {plan_id} plan (limit {limit})", extra=extra)


# Billing events

def log_webhook_processed(
    logger: logging.Logger,
    event_type: str,
    outcome: str,
    user_id: Optional[str] = None,
    payment_id: Optional[str] = None,
    **kwargs
):
    """
    Log a processed payment webhook.

    Args:
        logger: Logger instance
        event_type: Provider event type (e.g., payment.captured)
        outcome: processed, already_processed, ignored
        user_id: Optional user ID
        payment_id: Optional external payment ID
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="webhook_processed",
        user_id=user_id,
        event_type=event_type,
        outcome=outcome,
        **kwargs
    )
    if payment_id:
        extra["payment_id"] = payment_id

    logger.info(f"Webhook {event_type}: {outcome}", extra=extra)


# AI provider events

def log_provider_request(
    logger: logging.Logger,
    provider: str,
    operation: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a completed provider call (analyze_idea, generate_build_plan)."""
    extra = _build_log_extra(
        event="provider_request",
        duration_ms=duration_ms,
        provider=provider,
        operation=operation,
        **kwargs
    )
    logger.info(f"{provider}.{operation} completed", extra=extra)


def log_provider_failure(
    logger: logging.Logger,
    provider: str,
    operation: str,
    error: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    extra = _build_log_extra(
        event="provider_failure",
        duration_ms=duration_ms,
        provider=provider,
        operation=operation,
        error=str(error),
        **kwargs
    )
    logger.warning(f"{provider}.{operation} failed: {error}", extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)

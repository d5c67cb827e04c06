"""
Structured Logging & Observability
Logging that's both human-readable and machine-parseable.
"""
import sys
from loguru import logger
from typing import Any, Optional
from ironqueue.config import get_settings


def configure_logging():
    """
    Configure loguru for the driver.

    In development: Human-readable colorized output
    In production: Structured JSON logs for ingestion
    """
    settings = get_settings()

    # Remove default handler
    logger.remove()

    if not settings.enable_structured_logging:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # Output as JSON
        )

    logger.info(f"Logging configured: level={settings.log_level}, structured={settings.enable_structured_logging}")


def log_queue_operation(
    operation: str,
    queue: str,
    message_id: Optional[str] = None,
    **context: Any
):
    """
    Structured logging for driver operations.

    Payload contents are never passed here, only identifiers and sizes.

    Args:
        operation: What was done (e.g., "push", "pop", "delete")
        queue: Queue name the operation targeted
        message_id: IronMQ message id, when known
        **context: Additional context (delay, payload_bytes, pushed, ...)

    Example:
        >>> log_queue_operation("push", "default", message_id="6123", payload_bytes=98)
    """
    log_data = {
        "operation": operation,
        "queue": queue,
    }

    if message_id is not None:
        log_data["message_id"] = message_id

    log_data.update(context)

    logger.bind(**log_data).debug(f"IronMQ | {operation} | {queue}")

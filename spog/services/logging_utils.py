"""Service layer logging utilities.

Provides structured logging for service operations so consumption,
inventory and account changes are logged in one consistent format.

Usage:
    from spog.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="record_consumption",
        outcome="success",
        record_id=123,
        item_id=45,
    )

    log_operation(
        logger,
        operation="record_consumption",
        outcome="insufficient_stock",
        level=logging.WARNING,
        item_id=45,
        requested=600,
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "spog.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger for a service module.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named 'spog.services.<module>'

    Example:
        >>> get_service_logger("spog.services.consumption_service").name
        'spog.services.consumption_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; context fields travel in
    ``extra`` so structured handlers can pick them up.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "record_consumption", "authenticate")
        outcome: Outcome description (e.g., "success", "insufficient_stock")
        level: Log level (default: INFO)
        **context: Entity IDs, amounts, error details
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)

"""Service layer logging utilities.

Provides structured logging functions for ledger operations, enabling
consistent log format and context across lot, consumption, and reversal
services.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="consume",
        outcome="success",
        product_id=12,
        quantity="3",
    )

    log_operation(
        logger,
        operation="consume",
        outcome="legacy_fallback",
        level=logging.WARNING,
        product_id=12,
        shortfall="2",
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "fifo_ledger.services"

# LogRecord attributes that cannot be passed through `extra`
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named 'fifo_ledger.services.<module>'

    Example:
        >>> logger = get_service_logger("src.services.consumption_service")
        >>> logger.name
        'fifo_ledger.services.consumption_service'
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

    The message is "<operation>: <outcome>"; context goes into the record's
    `extra` so structured handlers can pick it up. Context keys that clash
    with LogRecord attributes are prefixed with "ctx_".

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "consume", "revert_consumption")
        outcome: Outcome description (e.g., "success", "legacy_fallback")
        level: Log level (default: INFO)
        **context: Additional context fields (entity ids, quantities, errors)
    """
    extra = {"operation": operation, "outcome": outcome}
    for key, value in context.items():
        extra[f"ctx_{key}" if key in _RESERVED else key] = value
    logger.log(level, f"{operation}: {outcome}", extra=extra)

"""Service layer logging utilities.

Usage:
    from servit.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="add_price",
        outcome="success",
        entity_id="flour",
        value=0.004,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger namespaced under 'servit.services'.

    Args:
        name: Logger name (typically __name__ of the calling module)
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"servit.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message reads "<operation> <outcome> key=value ..." and the same
    fields are attached through 'extra' for structured handlers.
    """
    parts = [f"{key}={value}" for key, value in context.items()]
    message = f"{operation} {outcome}"
    if parts:
        message = f"{message} {' '.join(parts)}"

    extra = {"operation": operation, "outcome": outcome}
    extra.update({f"ctx_{key}": value for key, value in context.items()})
    logger.log(level, message, extra=extra)

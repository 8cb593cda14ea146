"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across ingredient, labor, recipe and
import operations.

Usage:
    from pie_costing.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="create_recipe",
        outcome="success",
        recipe_id=12,
        selling_price="3.61",
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance with the 'pie_costing.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'pie_costing.services.recipe_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"pie_costing.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "create_recipe", "import_ingredients")
        outcome: Outcome description (e.g., "success", "validation_failed")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, counts, error details)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)

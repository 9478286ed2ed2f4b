"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across purchase, recipe and cost rollup
operations.

Usage:
    from recipe_costing.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="recompute_all",
        outcome="success",
        recipes_computed=12,
    )

    log_operation(
        logger,
        operation="line_item_cost",
        outcome="ingredient_unpriced",
        level=logging.WARNING,
        recipe_id=4,
        ingredient_id=9,
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
        Logger named 'recipe_costing.services.<module>'

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'recipe_costing.services.cost_rollup_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"recipe_costing.services.{name}")


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
        operation: Operation name (e.g., "record_purchase", "recompute_all")
        outcome: Outcome description (e.g., "success", "validation_failed")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, error details, etc.)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)

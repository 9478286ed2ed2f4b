"""
Services package - Business logic layer for the Recipe Costing engine.

Module functions take an explicit SQLAlchemy session. CostingService is the
outward interface: it owns a Database and runs each mutation together with
a full cost rollup in one transaction.
"""

from .cost_rollup_service import RollupResult, recompute_all
from .costing_service import CostingService
from .database import Database
from .exceptions import (
    CostComputationError,
    DatabaseError,
    IngredientInUse,
    IngredientNotFound,
    LineItemNotFound,
    PurchaseItemNotFound,
    RecipeCycleError,
    RecipeInUse,
    RecipeNotFound,
    ServiceError,
    ValidationError,
)
from .unit_converter import PassThroughConverter, TableUnitConverter, UnitConverter

__all__ = [
    "CostingService",
    "Database",
    "RollupResult",
    "recompute_all",
    "UnitConverter",
    "PassThroughConverter",
    "TableUnitConverter",
    "ServiceError",
    "IngredientNotFound",
    "RecipeNotFound",
    "PurchaseItemNotFound",
    "LineItemNotFound",
    "IngredientInUse",
    "RecipeInUse",
    "ValidationError",
    "CostComputationError",
    "RecipeCycleError",
    "DatabaseError",
]

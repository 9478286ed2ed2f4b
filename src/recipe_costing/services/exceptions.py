"""Service layer exception classes for the Recipe Costing engine.

Exception Hierarchy:
    ServiceError (base)
    ├── IngredientNotFound
    ├── RecipeNotFound
    ├── PurchaseItemNotFound
    ├── LineItemNotFound
    ├── IngredientInUse
    ├── RecipeInUse
    ├── ValidationError
    ├── CostComputationError
    ├── RecipeCycleError
    └── DatabaseError
"""

from typing import List, Sequence


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions inherit from this class.
    """

    pass


class IngredientNotFound(ServiceError):
    """Raised when an ingredient cannot be found by ID.

    Example:
        >>> raise IngredientNotFound(6)
        IngredientNotFound: Ingredient with ID 6 not found
    """

    def __init__(self, ingredient_id: int):
        self.ingredient_id = ingredient_id
        super().__init__(f"Ingredient with ID {ingredient_id} not found")


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class PurchaseItemNotFound(ServiceError):
    """Raised when a purchase item cannot be found by ID."""

    def __init__(self, purchase_item_id: int):
        self.purchase_item_id = purchase_item_id
        super().__init__(f"Purchase item with ID {purchase_item_id} not found")


class LineItemNotFound(ServiceError):
    """Raised when a recipe line item cannot be found by ID."""

    def __init__(self, line_item_id: int):
        self.line_item_id = line_item_id
        super().__init__(f"Recipe line item with ID {line_item_id} not found")


class IngredientInUse(ServiceError):
    """Raised when attempting to delete an ingredient that is still referenced.

    Args:
        ingredient_id: The ingredient being deleted
        dependencies: Dictionary of dependency counts {entity_type: count}

    Example:
        >>> raise IngredientInUse(6, {"purchase_items": 1, "recipe_line_items": 2})
        IngredientInUse: Cannot delete ingredient 6: used in 1 purchase_items, 2 recipe_line_items
    """

    def __init__(self, ingredient_id: int, dependencies: dict):
        self.ingredient_id = ingredient_id
        self.dependencies = dependencies

        details = ", ".join(
            f"{count} {entity_type}" for entity_type, count in dependencies.items() if count > 0
        )
        super().__init__(f"Cannot delete ingredient {ingredient_id}: used in {details}")


class RecipeInUse(ServiceError):
    """Raised when attempting to delete a recipe used as a component elsewhere."""

    def __init__(self, recipe_id: int, parent_names: Sequence[str]):
        self.recipe_id = recipe_id
        self.parent_names = list(parent_names)
        super().__init__(
            f"Cannot delete recipe {recipe_id}: used in {', '.join(self.parent_names)}"
        )


class ValidationError(ServiceError):
    """Raised when input validation fails. Nothing is written."""

    def __init__(self, errors: List[str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(f"Validation failed: {'; '.join(self.errors)}")


class CostComputationError(ServiceError):
    """Raised when a recipe's costs cannot be computed.

    The cost rollup records these per recipe rather than aborting; the
    recipe keeps its previously cached costs.
    """

    def __init__(self, recipe_id: int, message: str):
        self.recipe_id = recipe_id
        self.message = message
        super().__init__(f"Cannot compute cost for recipe {recipe_id}: {message}")


class RecipeCycleError(ServiceError):
    """Raised when recipe line items form a cycle.

    Args:
        path: Recipe ids along the cycle, first and last being the same recipe

    Example:
        >>> raise RecipeCycleError([3, 5, 3])
        RecipeCycleError: Recipe cycle detected: 3 -> 5 -> 3
    """

    def __init__(self, path: Sequence[int]):
        self.path = list(path)
        super().__init__(f"Recipe cycle detected: {' -> '.join(str(p) for p in self.path)}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")

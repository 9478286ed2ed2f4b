"""
Enumerations for the costing models.

- BaseUnit: canonical unit an ingredient is costed in
- LineItemType: what a recipe line item points at
"""

from enum import Enum


class BaseUnit(str, Enum):
    """
    Canonical unit for an ingredient.

    Purchase prices are reduced to a cost per one of these units.
    """

    GRAM = "g"
    MILLILITER = "ml"
    EACH = "each"


class LineItemType(str, Enum):
    """
    Target of a recipe line item.

    Values:
        INGREDIENT: item_id is an Ingredient id
        RECIPE: item_id is a Recipe id (a sub-recipe used as a component)
    """

    INGREDIENT = "ingredient"
    RECIPE = "recipe"

"""
Database models package.

This package contains all SQLAlchemy ORM models for the costing engine.
"""

from .base import Base, BaseModel
from .enums import BaseUnit, LineItemType
from .ingredient import Ingredient
from .purchase_item import PurchaseItem
from .recipe import Recipe, RecipeLineItem
from .unit_conversion import UnitConversion

__all__ = [
    "Base",
    "BaseModel",
    "BaseUnit",
    "LineItemType",
    "Ingredient",
    "PurchaseItem",
    "Recipe",
    "RecipeLineItem",
    "UnitConversion",
]

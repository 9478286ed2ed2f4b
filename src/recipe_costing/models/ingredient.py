"""
Ingredient model for the costing catalog.

An ingredient is the generic thing a recipe calls for ("Coconut Yogurt"),
separate from the supplier purchases that price it.
"""

from sqlalchemy import CheckConstraint, Column, Float, Index, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class Ingredient(BaseModel):
    """
    Ingredient model representing a costable ingredient.

    Attributes:
        name: Ingredient name (unique)
        base_unit: Canonical unit purchases are reduced to ("g", "ml", "each")
        yield_percent: Usable fraction after trim/waste (0 < y <= 1)
        category: Optional grouping (e.g., "Dry Goods", "Seafood")
    """

    __tablename__ = "ingredients"

    name = Column(String(200), nullable=False, unique=True, index=True)
    base_unit = Column(String(10), nullable=False)
    yield_percent = Column(Float, nullable=False, default=1.0)
    category = Column(String(100), nullable=True, index=True)

    purchase_items = relationship(
        "PurchaseItem",
        back_populates="ingredient",
        lazy="select",
    )
    unit_conversions = relationship(
        "UnitConversion",
        back_populates="ingredient",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("base_unit IN ('g', 'ml', 'each')", name="ck_ingredient_base_unit"),
        CheckConstraint(
            "yield_percent > 0 AND yield_percent <= 1", name="ck_ingredient_yield_percent_range"
        ),
        Index("idx_ingredient_category", "category"),
    )

    def __repr__(self) -> str:
        return f"Ingredient(id={self.id}, name='{self.name}', base_unit='{self.base_unit}')"

"""
UnitConversion model for ingredient-specific units.

Records how many base units one recipe unit represents for a given
ingredient (e.g., 1 "tbsp" of coconut yogurt = 15 g). Only consulted when a
table-backed unit converter is plugged into the cost rollup.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


class UnitConversion(BaseModel):
    """
    Conversion from a recipe unit to an ingredient's base unit.

    Attributes:
        ingredient_id: Foreign key to Ingredient (CASCADE delete)
        unit_name: Unit as written in recipes ("tbsp", "bunch")
        to_base_unit_factor: Base units per one unit_name
        description: Optional note on where the factor came from
    """

    __tablename__ = "unit_conversions"

    ingredient_id = Column(
        Integer, ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    unit_name = Column(String(50), nullable=False)
    to_base_unit_factor = Column(Float, nullable=False)
    description = Column(String(500), nullable=True)

    ingredient = relationship("Ingredient", back_populates="unit_conversions")

    __table_args__ = (
        CheckConstraint("to_base_unit_factor > 0", name="ck_unit_conversion_factor_positive"),
        UniqueConstraint("ingredient_id", "unit_name", name="uq_unit_conversion_ingredient_unit"),
    )

    def __repr__(self) -> str:
        return (
            f"UnitConversion(ingredient_id={self.ingredient_id}, "
            f"unit='{self.unit_name}', factor={self.to_base_unit_factor})"
        )

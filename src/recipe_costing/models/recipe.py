"""
Recipe models for costed recipes.

This module contains:
- Recipe: Main or sub recipe with cached cost fields
- RecipeLineItem: One line of a recipe, pointing at an ingredient or at
  another recipe used as a component
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import LineItemType


class Recipe(BaseModel):
    """
    Recipe model.

    total_cost and cost_per_portion are caches written by the cost rollup;
    nothing else sets them.

    Attributes:
        name: Recipe name (required)
        description: Short description
        is_sub_recipe: Grouping flag for component recipes (display only)
        yield_quantity: Amount produced (> 0)
        yield_unit: Unit of yield (e.g., "portions", "g")
        prep_time: Optional prep minutes
        cook_time: Optional cook minutes
        instructions: Optional method text
        image_url: Optional image reference
        total_cost: Sum of line item costs (fractional pence)
        cost_per_portion: total_cost / yield_quantity
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_sub_recipe = Column(Boolean, nullable=False, default=False, index=True)

    yield_quantity = Column(Float, nullable=False)
    yield_unit = Column(String(50), nullable=False)

    prep_time = Column(Integer, nullable=True)
    cook_time = Column(Integer, nullable=True)
    instructions = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)

    total_cost = Column(Float, nullable=False, default=0.0)
    cost_per_portion = Column(Float, nullable=False, default=0.0)

    line_items = relationship(
        "RecipeLineItem",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeLineItem.id",
        lazy="select",
    )

    __table_args__ = (
        Index("idx_recipe_sub_name", "is_sub_recipe", "name"),
    )

    def __repr__(self) -> str:
        return (
            f"Recipe(id={self.id}, name='{self.name}', "
            f"sub={self.is_sub_recipe}, total_cost={self.total_cost})"
        )


class RecipeLineItem(BaseModel):
    """
    One line of a recipe.

    item_id is an Ingredient id when item_type is "ingredient" and a Recipe id
    when item_type is "recipe", so it carries no foreign key.

    Attributes:
        recipe_id: Foreign key to the owning Recipe
        item_id: Referenced ingredient or recipe id
        item_type: "ingredient" or "recipe"
        item_name: Denormalized display name of the referenced item
        quantity: Amount used (> 0)
        unit: Unit as written in the recipe
        cost: This line's contribution to the owner's total_cost
        notes: Optional notes (e.g., "finely chopped")
    """

    __tablename__ = "recipe_line_items"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, nullable=False)
    item_type = Column(String(20), nullable=False)
    item_name = Column(String(200), nullable=False)

    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    cost = Column(Float, nullable=False, default=0.0)
    notes = Column(String(500), nullable=True)

    recipe = relationship("Recipe", back_populates="line_items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_recipe_line_item_quantity_positive"),
        CheckConstraint(
            "item_type IN ('ingredient', 'recipe')", name="ck_recipe_line_item_item_type"
        ),
        CheckConstraint(
            "item_type != 'recipe' OR item_id != recipe_id",
            name="ck_recipe_line_item_no_self_reference",
        ),
        Index("idx_recipe_line_item_recipe", "recipe_id"),
        Index("idx_recipe_line_item_target", "item_type", "item_id"),
    )

    @property
    def is_ingredient(self) -> bool:
        return self.item_type == LineItemType.INGREDIENT.value

    @property
    def is_recipe(self) -> bool:
        return self.item_type == LineItemType.RECIPE.value

    def __repr__(self) -> str:
        return (
            f"RecipeLineItem(recipe_id={self.recipe_id}, {self.item_type}={self.item_id}, "
            f"quantity={self.quantity}, unit='{self.unit}', cost={self.cost})"
        )

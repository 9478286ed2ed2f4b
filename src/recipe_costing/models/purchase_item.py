"""
PurchaseItem model for supplier prices.

Each record is one supplier's price for an ingredient. The derived
cost_per_base_unit is what the cost rollup multiplies recipe quantities by.
"""

from sqlalchemy import CheckConstraint, Column, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class PurchaseItem(BaseModel):
    """
    Supplier purchase record for an ingredient.

    Attributes:
        ingredient_id: Foreign key to Ingredient (RESTRICT delete)
        ingredient_name: Denormalized ingredient name for display
        supplier_name: Who sells it
        purchase_price: Price paid in integer minor-currency units (pence)
        purchase_quantity: Amount bought, in purchase_unit
        purchase_unit: Free-form unit as written on the invoice ("g", "kg", "each")
        cost_per_base_unit: Derived price per ingredient base unit (fractional pence)
        updated_at: When price or quantity last changed
    """

    __tablename__ = "purchase_items"

    ingredient_id = Column(
        Integer,
        ForeignKey("ingredients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    ingredient_name = Column(String(200), nullable=False)
    supplier_name = Column(String(200), nullable=False)

    purchase_price = Column(Integer, nullable=False)
    purchase_quantity = Column(Float, nullable=False)
    purchase_unit = Column(String(50), nullable=False)
    cost_per_base_unit = Column(Float, nullable=False, default=0.0)

    ingredient = relationship("Ingredient", back_populates="purchase_items", lazy="joined")

    __table_args__ = (
        CheckConstraint("purchase_price >= 0", name="ck_purchase_item_price_non_negative"),
        CheckConstraint("purchase_quantity > 0", name="ck_purchase_item_quantity_positive"),
        Index("idx_purchase_item_ingredient_cost", "ingredient_id", "cost_per_base_unit"),
    )

    def __repr__(self) -> str:
        return (
            f"PurchaseItem(id={self.id}, ingredient_id={self.ingredient_id}, "
            f"supplier='{self.supplier_name}', price={self.purchase_price}p, "
            f"quantity={self.purchase_quantity} {self.purchase_unit})"
        )

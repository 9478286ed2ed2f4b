"""Purchase Service - Supplier prices and cost per base unit.

This module manages purchase items and derives each one's cost per base
unit, the figure the cost rollup multiplies recipe quantities by.

All functions take the caller's session; CostingService wraps each
mutation in a transaction together with a full cost rollup.

Cost per base unit:
    cost_per_base_unit = purchase_price / quantity_in_base_units

    where quantity_in_base_units converts kg -> g and l -> ml only.

Supplier selection:
    An ingredient may have several purchase items. cost_per_base_unit()
    picks the lowest cost per base unit, breaking ties on the lowest id.

Example Usage:
    >>> item = record_purchase(session, ingredient_id=6, supplier_name="Dairy Alternatives Co",
    ...                        price=275, quantity=350, unit="g")
    >>> round(item.cost_per_base_unit, 4)
    0.7857
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Ingredient, PurchaseItem
from ..utils.datetime_utils import utc_now
from ..utils.validators import validate_purchase_data
from .exceptions import (
    DatabaseError,
    PurchaseItemNotFound,
    ValidationError,
)
from .ingredient_service import get_ingredient
from .logging_utils import get_service_logger, log_operation
from .unit_converter import calculate_cost_per_base_unit

logger = get_service_logger(__name__)

EDITABLE_FIELDS = ("supplier_name", "purchase_price", "purchase_quantity", "purchase_unit")
COST_INPUT_FIELDS = ("purchase_price", "purchase_quantity", "purchase_unit")


def record_purchase(
    session: Session,
    ingredient_id: int,
    supplier_name: str,
    price: int,
    quantity: float,
    unit: str,
) -> PurchaseItem:
    """Record a supplier purchase with automatic cost per base unit.

    Args:
        session: Database session
        ingredient_id: Ingredient purchased (must exist)
        supplier_name: Supplier
        price: Purchase price in integer pence (>= 0)
        quantity: Amount bought (> 0)
        unit: Purchase unit

    Returns:
        PurchaseItem: Created record with cost_per_base_unit set

    Raises:
        IngredientNotFound: If ingredient_id doesn't exist
        ValidationError: If price < 0, price is not whole pence or quantity <= 0
        DatabaseError: If database operation fails
    """
    data = {
        "supplier_name": supplier_name,
        "purchase_price": price,
        "purchase_quantity": quantity,
        "purchase_unit": unit,
    }
    is_valid, errors = validate_purchase_data(data)
    if not is_valid:
        raise ValidationError(errors)

    ingredient = get_ingredient(session, ingredient_id)
    price = int(float(price))
    quantity = float(quantity)
    unit = unit.strip()
    cost_per_base_unit = calculate_cost_per_base_unit(price, quantity, unit, ingredient.base_unit)

    try:
        purchase_item = PurchaseItem(
            ingredient_id=ingredient.id,
            ingredient_name=ingredient.name,
            supplier_name=supplier_name.strip(),
            purchase_price=price,
            purchase_quantity=quantity,
            purchase_unit=unit,
            cost_per_base_unit=cost_per_base_unit,
        )
        session.add(purchase_item)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to record purchase", original_error=e)

    log_operation(
        logger,
        "record_purchase",
        "success",
        purchase_item_id=purchase_item.id,
        ingredient_id=ingredient.id,
        cost_per_base_unit=cost_per_base_unit,
    )
    return purchase_item


def get_purchase(session: Session, purchase_item_id: int) -> PurchaseItem:
    """Retrieve a purchase item by ID.

    Raises:
        PurchaseItemNotFound: If purchase_item_id doesn't exist
    """
    purchase_item = session.get(PurchaseItem, purchase_item_id)
    if purchase_item is None:
        raise PurchaseItemNotFound(purchase_item_id)
    return purchase_item


def list_purchase_items(session: Session) -> List[PurchaseItem]:
    """All purchase items ordered by ingredient name, then supplier."""
    return (
        session.query(PurchaseItem)
        .order_by(PurchaseItem.ingredient_name, PurchaseItem.supplier_name, PurchaseItem.id)
        .all()
    )


def update_purchase(session: Session, purchase_item_id: int, updates: Dict) -> PurchaseItem:
    """Apply a partial update to a purchase item.

    When price, quantity or unit changes, cost per base unit is recomputed
    from the merged (existing + new) values. If the ingredient or its base
    unit cannot be resolved the derived field is left as it was.

    Args:
        session: Database session
        purchase_item_id: Purchase item to update
        updates: Subset of supplier_name, purchase_price, purchase_quantity, purchase_unit

    Returns:
        Updated PurchaseItem

    Raises:
        PurchaseItemNotFound: If purchase_item_id doesn't exist
        ValidationError: If any updated value is invalid (nothing is written)
        DatabaseError: If database operation fails
    """
    unknown = [key for key in updates if key not in EDITABLE_FIELDS]
    if unknown:
        raise ValidationError([f"{key}: Not an editable purchase field" for key in unknown])

    is_valid, errors = validate_purchase_data(updates, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    purchase_item = get_purchase(session, purchase_item_id)

    merged = {field: getattr(purchase_item, field) for field in EDITABLE_FIELDS}
    merged.update(updates)
    merged["purchase_price"] = int(float(merged["purchase_price"]))
    merged["purchase_quantity"] = float(merged["purchase_quantity"])
    merged["supplier_name"] = merged["supplier_name"].strip()
    merged["purchase_unit"] = merged["purchase_unit"].strip()

    cost_per_base_unit = purchase_item.cost_per_base_unit
    if any(field in updates for field in COST_INPUT_FIELDS):
        base_unit = _resolve_base_unit(session, purchase_item.ingredient_id)
        if base_unit is None:
            log_operation(
                logger,
                "update_purchase",
                "base_unit_unresolved",
                level=logging.WARNING,
                purchase_item_id=purchase_item_id,
                ingredient_id=purchase_item.ingredient_id,
            )
        else:
            cost_per_base_unit = calculate_cost_per_base_unit(
                merged["purchase_price"],
                merged["purchase_quantity"],
                merged["purchase_unit"],
                base_unit,
            )

    try:
        for field in EDITABLE_FIELDS:
            setattr(purchase_item, field, merged[field])
        purchase_item.cost_per_base_unit = cost_per_base_unit
        purchase_item.updated_at = utc_now()
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update purchase item {purchase_item_id}", original_error=e)

    log_operation(
        logger,
        "update_purchase",
        "success",
        purchase_item_id=purchase_item_id,
        fields=sorted(updates),
        cost_per_base_unit=cost_per_base_unit,
    )
    return purchase_item


def _resolve_base_unit(session: Session, ingredient_id: int) -> Optional[str]:
    ingredient = session.get(Ingredient, ingredient_id)
    if ingredient is None or not ingredient.base_unit:
        return None
    return ingredient.base_unit


def delete_purchase(session: Session, purchase_item_id: int) -> bool:
    """Delete a purchase item.

    Raises:
        PurchaseItemNotFound: If purchase_item_id doesn't exist
    """
    purchase_item = get_purchase(session, purchase_item_id)
    try:
        session.delete(purchase_item)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete purchase item {purchase_item_id}", original_error=e)

    log_operation(logger, "delete_purchase", "success", purchase_item_id=purchase_item_id)
    return True


def select_purchase_item(session: Session, ingredient_id: int) -> Optional[PurchaseItem]:
    """The purchase item that prices an ingredient.

    Lowest cost per base unit wins; equal costs fall back to the lowest id
    so the choice is stable across runs.

    Returns:
        PurchaseItem, or None if the ingredient has no purchases
    """
    return (
        session.query(PurchaseItem)
        .filter(PurchaseItem.ingredient_id == ingredient_id)
        .order_by(PurchaseItem.cost_per_base_unit.asc(), PurchaseItem.id.asc())
        .first()
    )


def cost_per_base_unit(session: Session, ingredient_id: int) -> Optional[float]:
    """Cost per base unit for an ingredient, or None when unpriced.

    Example:
        >>> cost_per_base_unit(session, coconut_yogurt.id)
        0.7857142857142857
    """
    purchase_item = select_purchase_item(session, ingredient_id)
    if purchase_item is None:
        return None
    return purchase_item.cost_per_base_unit

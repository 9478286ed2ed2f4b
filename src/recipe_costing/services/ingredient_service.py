"""
Ingredient Service - Ingredient catalog operations.

All functions take the caller's session; transaction boundaries belong to
the caller (normally CostingService, which wraps each call in
Database.session_scope()).
"""

from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Ingredient, PurchaseItem, RecipeLineItem, UnitConversion
from ..models.enums import LineItemType
from ..utils.validators import (
    sanitize_string,
    validate_ingredient_data,
    validate_positive_number,
    validate_required_string,
)
from .exceptions import DatabaseError, IngredientInUse, IngredientNotFound, ValidationError
from .logging_utils import get_service_logger, log_operation
from .unit_converter import calculate_cost_per_base_unit

logger = get_service_logger(__name__)

EDITABLE_FIELDS = ("name", "base_unit", "yield_percent", "category")


def get_ingredient(session: Session, ingredient_id: int) -> Ingredient:
    """
    Retrieve an ingredient by ID.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
    """
    ingredient = session.get(Ingredient, ingredient_id)
    if ingredient is None:
        raise IngredientNotFound(ingredient_id)
    return ingredient


def list_ingredients(session: Session) -> List[Ingredient]:
    """All ingredients ordered by name."""
    return session.query(Ingredient).order_by(Ingredient.name).all()


def _check_unique_name(session: Session, name: str, exclude_id: int = None) -> None:
    query = session.query(Ingredient).filter(func.lower(Ingredient.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Ingredient.id != exclude_id)
    if query.first() is not None:
        raise ValidationError([f"Ingredient Name: '{name}' already exists"])


def create_ingredient(session: Session, data: Dict) -> Ingredient:
    """
    Create a new ingredient.

    Args:
        session: Database session
        data: Dictionary with name, base_unit and optional yield_percent, category

    Returns:
        Created Ingredient

    Raises:
        ValidationError: If data validation fails or the name is taken
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_ingredient_data(data)
    if not is_valid:
        raise ValidationError(errors)

    name = data["name"].strip()
    _check_unique_name(session, name)

    try:
        ingredient = Ingredient(
            name=name,
            base_unit=data["base_unit"],
            yield_percent=float(data.get("yield_percent", 1.0)),
            category=sanitize_string(data.get("category")),
        )
        session.add(ingredient)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", e)

    log_operation(logger, "create_ingredient", "success", ingredient_id=ingredient.id)
    return ingredient


def update_ingredient(session: Session, ingredient_id: int, data: Dict) -> Ingredient:
    """
    Update ingredient attributes.

    Renaming refreshes the denormalized name on the ingredient's purchase
    items and ingredient line items.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    unknown = [key for key in data if key not in EDITABLE_FIELDS]
    if unknown:
        raise ValidationError([f"{key}: Not an editable ingredient field" for key in unknown])

    is_valid, errors = validate_ingredient_data(data, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    ingredient = get_ingredient(session, ingredient_id)

    if "name" in data:
        data = {**data, "name": data["name"].strip()}
        _check_unique_name(session, data["name"], exclude_id=ingredient_id)
    if "category" in data:
        data = {**data, "category": sanitize_string(data["category"])}
    if "yield_percent" in data:
        data = {**data, "yield_percent": float(data["yield_percent"])}

    try:
        ingredient.update_from_dict(data)

        if "name" in data:
            (
                session.query(PurchaseItem)
                .filter(PurchaseItem.ingredient_id == ingredient_id)
                .update({PurchaseItem.ingredient_name: ingredient.name}, synchronize_session="fetch")
            )
            (
                session.query(RecipeLineItem)
                .filter(RecipeLineItem.item_type == LineItemType.INGREDIENT.value)
                .filter(RecipeLineItem.item_id == ingredient_id)
                .update({RecipeLineItem.item_name: ingredient.name}, synchronize_session="fetch")
            )

        if "base_unit" in data:
            _reprice_purchases(session, ingredient)

        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update ingredient {ingredient_id}", e)

    log_operation(
        logger, "update_ingredient", "success", ingredient_id=ingredient_id, fields=sorted(data)
    )
    return ingredient


def _reprice_purchases(session: Session, ingredient: Ingredient) -> None:
    # cost_per_base_unit depends on the base unit (kg -> g, l -> ml only)
    purchase_items = (
        session.query(PurchaseItem).filter(PurchaseItem.ingredient_id == ingredient.id).all()
    )
    for item in purchase_items:
        item.cost_per_base_unit = calculate_cost_per_base_unit(
            item.purchase_price, item.purchase_quantity, item.purchase_unit, ingredient.base_unit
        )
    log_operation(
        logger,
        "update_ingredient",
        "purchases_repriced",
        ingredient_id=ingredient.id,
        base_unit=ingredient.base_unit,
        purchase_count=len(purchase_items),
    )


def get_ingredient_dependencies(session: Session, ingredient_id: int) -> Dict[str, int]:
    """Count records referencing an ingredient."""
    purchase_count = (
        session.query(PurchaseItem).filter(PurchaseItem.ingredient_id == ingredient_id).count()
    )
    line_item_count = (
        session.query(RecipeLineItem)
        .filter(RecipeLineItem.item_type == LineItemType.INGREDIENT.value)
        .filter(RecipeLineItem.item_id == ingredient_id)
        .count()
    )
    return {"purchase_items": purchase_count, "recipe_line_items": line_item_count}


def delete_ingredient(session: Session, ingredient_id: int) -> bool:
    """
    Delete an ingredient that nothing references.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        IngredientInUse: If purchase items or line items reference it
    """
    ingredient = get_ingredient(session, ingredient_id)

    dependencies = get_ingredient_dependencies(session, ingredient_id)
    if any(dependencies.values()):
        raise IngredientInUse(ingredient_id, dependencies)

    try:
        session.delete(ingredient)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete ingredient {ingredient_id}", e)

    log_operation(logger, "delete_ingredient", "success", ingredient_id=ingredient_id)
    return True


def add_unit_conversion(
    session: Session,
    ingredient_id: int,
    unit_name: str,
    to_base_unit_factor: float,
    description: str = None,
) -> UnitConversion:
    """
    Record how many base units one recipe unit means for an ingredient.

    Unit names are stored lower-cased, matching TableUnitConverter lookups.

    Raises:
        IngredientNotFound: If ingredient doesn't exist
        ValidationError: If the unit is blank, the factor not positive,
            or a conversion for this unit already exists
    """
    errors = []
    for result in (
        validate_required_string(unit_name, "Unit Name"),
        validate_positive_number(to_base_unit_factor, "Conversion Factor"),
    ):
        if not result[0]:
            errors.append(result[1])
    if errors:
        raise ValidationError(errors)

    ingredient = get_ingredient(session, ingredient_id)
    unit_key = unit_name.strip().lower()

    existing = (
        session.query(UnitConversion)
        .filter(UnitConversion.ingredient_id == ingredient_id)
        .filter(UnitConversion.unit_name == unit_key)
        .first()
    )
    if existing is not None:
        raise ValidationError([f"Unit Name: '{unit_key}' already defined for {ingredient.name}"])

    try:
        conversion = UnitConversion(
            ingredient_id=ingredient_id,
            unit_name=unit_key,
            to_base_unit_factor=float(to_base_unit_factor),
            description=sanitize_string(description),
        )
        session.add(conversion)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to add unit conversion for ingredient {ingredient_id}", e)

    log_operation(
        logger,
        "add_unit_conversion",
        "success",
        ingredient_id=ingredient_id,
        unit_name=unit_key,
        factor=conversion.to_base_unit_factor,
    )
    return conversion

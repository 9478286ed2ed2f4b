"""
Recipe Service - Recipes, sub-recipes and their line items.

This service provides:
- Recipe CRUD with validation
- Line item management (ingredient lines and sub-recipe lines)
- Reverse lookups (which recipes use a recipe)

Functions never touch total_cost, cost_per_portion or line item cost; the
cost rollup owns those fields. CostingService runs every mutation here
followed by a rollup in one transaction.
"""

from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..models import Ingredient, Recipe, RecipeLineItem
from ..models.enums import LineItemType
from ..utils.constants import ENGINE_OWNED_LINE_ITEM_FIELDS, ENGINE_OWNED_RECIPE_FIELDS
from ..utils.datetime_utils import utc_now
from ..utils.validators import (
    sanitize_string,
    validate_line_item_data,
    validate_recipe_data,
)
from .exceptions import (
    DatabaseError,
    IngredientNotFound,
    LineItemNotFound,
    RecipeInUse,
    RecipeNotFound,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

RECIPE_EDITABLE_FIELDS = (
    "name",
    "description",
    "is_sub_recipe",
    "yield_quantity",
    "yield_unit",
    "prep_time",
    "cook_time",
    "instructions",
    "image_url",
)
LINE_ITEM_EDITABLE_FIELDS = ("item_id", "item_type", "item_name", "quantity", "unit", "notes")
_OPTIONAL_TEXT_FIELDS = ("description", "instructions", "image_url")


def _unknown_field_errors(data: Dict, editable, reported) -> List[str]:
    # Keys in `reported` already carry an error from the validator
    return [
        f"{key}: Not an editable field"
        for key in data
        if key not in editable and key not in reported
    ]


# ============================================================================
# Recipe Queries
# ============================================================================


def get_recipe(session: Session, recipe_id: int) -> Recipe:
    """
    Retrieve a recipe by ID.

    Line items are loaded with the recipe so they stay readable after the
    session closes.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    recipe = session.get(Recipe, recipe_id, options=[selectinload(Recipe.line_items)])
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    return recipe


def list_recipes(session: Session) -> List[Recipe]:
    """Main recipes first, then sub-recipes; each group by name."""
    return (
        session.query(Recipe)
        .order_by(Recipe.is_sub_recipe.asc(), Recipe.name.asc(), Recipe.id.asc())
        .all()
    )


def get_line_items(session: Session, recipe_id: int) -> List[RecipeLineItem]:
    """
    Line items of a recipe in insertion (id) order.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    get_recipe(session, recipe_id)
    return (
        session.query(RecipeLineItem)
        .filter(RecipeLineItem.recipe_id == recipe_id)
        .order_by(RecipeLineItem.id)
        .all()
    )


def get_recipes_using(session: Session, recipe_id: int) -> List[Recipe]:
    """Recipes that have a line item referencing recipe_id, by name."""
    return (
        session.query(Recipe)
        .join(RecipeLineItem, RecipeLineItem.recipe_id == Recipe.id)
        .filter(RecipeLineItem.item_type == LineItemType.RECIPE.value)
        .filter(RecipeLineItem.item_id == recipe_id)
        .distinct()
        .order_by(Recipe.name)
        .all()
    )


# ============================================================================
# Recipe CRUD
# ============================================================================


def _clean_recipe_fields(data: Dict) -> Dict:
    cleaned = dict(data)
    if "name" in cleaned:
        cleaned["name"] = cleaned["name"].strip()
    if "yield_unit" in cleaned:
        cleaned["yield_unit"] = cleaned["yield_unit"].strip()
    if "yield_quantity" in cleaned:
        cleaned["yield_quantity"] = float(cleaned["yield_quantity"])
    for field in ("prep_time", "cook_time"):
        if cleaned.get(field) is not None:
            cleaned[field] = int(float(cleaned[field]))
    for field in _OPTIONAL_TEXT_FIELDS:
        if field in cleaned:
            cleaned[field] = sanitize_string(cleaned[field])
    return cleaned


def create_recipe(session: Session, data: Dict) -> Recipe:
    """
    Create a recipe with no line items.

    Args:
        session: Database session
        data: Dictionary with name, yield_quantity, yield_unit and optional
            description, is_sub_recipe, prep_time, cook_time, instructions, image_url

    Returns:
        Created Recipe (costs start at zero until the next rollup)

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(data)
    errors += _unknown_field_errors(data, RECIPE_EDITABLE_FIELDS, ENGINE_OWNED_RECIPE_FIELDS)
    if errors:
        raise ValidationError(errors)

    fields = _clean_recipe_fields(data)

    try:
        recipe = Recipe(
            name=fields["name"],
            description=fields.get("description"),
            is_sub_recipe=fields.get("is_sub_recipe", False),
            yield_quantity=fields["yield_quantity"],
            yield_unit=fields["yield_unit"],
            prep_time=fields.get("prep_time"),
            cook_time=fields.get("cook_time"),
            instructions=fields.get("instructions"),
            image_url=fields.get("image_url"),
            total_cost=0.0,
            cost_per_portion=0.0,
        )
        session.add(recipe)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)

    log_operation(
        logger, "create_recipe", "success", recipe_id=recipe.id, is_sub_recipe=recipe.is_sub_recipe
    )
    return recipe


def update_recipe(session: Session, recipe_id: int, updates: Dict) -> Recipe:
    """
    Apply a partial update to a recipe.

    Renaming also refreshes item_name on line items that use this recipe.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If any field is invalid or engine-owned (nothing is written)
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(updates, partial=True)
    errors += _unknown_field_errors(updates, RECIPE_EDITABLE_FIELDS, ENGINE_OWNED_RECIPE_FIELDS)
    if errors:
        raise ValidationError(errors)

    recipe = get_recipe(session, recipe_id)
    fields = _clean_recipe_fields(updates)

    try:
        recipe.update_from_dict(fields)

        if "name" in fields:
            (
                session.query(RecipeLineItem)
                .filter(RecipeLineItem.item_type == LineItemType.RECIPE.value)
                .filter(RecipeLineItem.item_id == recipe_id)
                .update({RecipeLineItem.item_name: recipe.name}, synchronize_session="fetch")
            )

        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", e)

    log_operation(logger, "update_recipe", "success", recipe_id=recipe_id, fields=sorted(fields))
    return recipe


def delete_recipe(session: Session, recipe_id: int) -> bool:
    """
    Delete a recipe and its line items.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        RecipeInUse: If another recipe uses it as a line item
        DatabaseError: If database operation fails
    """
    recipe = get_recipe(session, recipe_id)

    parents = get_recipes_using(session, recipe_id)
    if parents:
        raise RecipeInUse(recipe_id, [parent.name for parent in parents])

    try:
        session.delete(recipe)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)

    log_operation(logger, "delete_recipe", "success", recipe_id=recipe_id)
    return True


# ============================================================================
# Line Items
# ============================================================================


def get_line_item(session: Session, line_item_id: int) -> RecipeLineItem:
    """
    Retrieve a line item by ID.

    Raises:
        LineItemNotFound: If line item doesn't exist
    """
    line_item = session.get(RecipeLineItem, line_item_id)
    if line_item is None:
        raise LineItemNotFound(line_item_id)
    return line_item


def _resolve_item_name(session: Session, recipe_id: int, item_id: int, item_type: str) -> str:
    """Check the referenced item exists and return its name."""
    if item_type == LineItemType.INGREDIENT.value:
        ingredient = session.get(Ingredient, item_id)
        if ingredient is None:
            raise IngredientNotFound(item_id)
        return ingredient.name

    if item_id == recipe_id:
        raise ValidationError(["Item: A recipe cannot include itself"])
    target = session.get(Recipe, item_id)
    if target is None:
        raise RecipeNotFound(item_id)
    return target.name


def add_line_item(
    session: Session,
    recipe_id: int,
    item_id: int,
    item_type: str,
    item_name: Optional[str],
    quantity: float,
    unit: str,
    notes: Optional[str] = None,
) -> int:
    """
    Add an ingredient or sub-recipe line to a recipe.

    Args:
        session: Database session
        recipe_id: Owning recipe
        item_id: Ingredient id or recipe id, depending on item_type
        item_type: "ingredient" or "recipe"
        item_name: Display name; defaults to the referenced item's name
        quantity: Amount used (> 0)
        unit: Unit as written in the recipe
        notes: Optional notes

    Returns:
        ID of the new line item

    Raises:
        RecipeNotFound: If the owner or a referenced recipe doesn't exist
        IngredientNotFound: If a referenced ingredient doesn't exist
        ValidationError: If the line is invalid or references its own recipe
        DatabaseError: If database operation fails
    """
    data = {
        "item_id": item_id,
        "item_type": item_type,
        "item_name": item_name,
        "quantity": quantity,
        "unit": unit,
        "notes": notes,
    }
    is_valid, errors = validate_line_item_data(data)
    if not is_valid:
        raise ValidationError(errors)

    recipe = get_recipe(session, recipe_id)
    referenced_name = _resolve_item_name(session, recipe_id, item_id, item_type)

    try:
        line_item = RecipeLineItem(
            recipe_id=recipe_id,
            item_id=item_id,
            item_type=item_type,
            item_name=sanitize_string(item_name) or referenced_name,
            quantity=float(quantity),
            unit=unit.strip(),
            cost=0.0,
            notes=sanitize_string(notes),
        )
        recipe.line_items.append(line_item)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to add line item to recipe {recipe_id}", e)

    log_operation(
        logger,
        "add_line_item",
        "success",
        recipe_id=recipe_id,
        line_item_id=line_item.id,
        item_type=item_type,
        item_id=item_id,
    )
    return line_item.id


def update_line_item(session: Session, line_item_id: int, updates: Dict) -> RecipeLineItem:
    """
    Apply a partial update to a line item.

    Changing item_id or item_type re-checks that the referenced item exists;
    the line cannot be moved to another recipe.

    Raises:
        LineItemNotFound: If line item doesn't exist
        IngredientNotFound: If the new ingredient reference doesn't exist
        RecipeNotFound: If the new recipe reference doesn't exist
        ValidationError: If any field is invalid or engine-owned
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_line_item_data(updates, partial=True)
    errors += _unknown_field_errors(
        updates, LINE_ITEM_EDITABLE_FIELDS, ENGINE_OWNED_LINE_ITEM_FIELDS + ["recipe_id"]
    )
    if errors:
        raise ValidationError(errors)

    line_item = get_line_item(session, line_item_id)

    fields = dict(updates)
    if "quantity" in fields:
        fields["quantity"] = float(fields["quantity"])
    if "unit" in fields:
        fields["unit"] = fields["unit"].strip()
    if "notes" in fields:
        fields["notes"] = sanitize_string(fields["notes"])
    if "item_name" in fields:
        fields["item_name"] = sanitize_string(fields["item_name"])

    if "item_id" in fields or "item_type" in fields:
        item_id = fields.get("item_id", line_item.item_id)
        item_type = fields.get("item_type", line_item.item_type)
        referenced_name = _resolve_item_name(session, line_item.recipe_id, item_id, item_type)
        if not fields.get("item_name"):
            fields["item_name"] = referenced_name
    elif "item_name" in fields and fields["item_name"] is None:
        # Blank name reverts to the referenced item's name
        fields["item_name"] = _resolve_item_name(
            session, line_item.recipe_id, line_item.item_id, line_item.item_type
        )

    try:
        for field, value in fields.items():
            setattr(line_item, field, value)
        line_item.updated_at = utc_now()
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update line item {line_item_id}", e)

    log_operation(
        logger, "update_line_item", "success", line_item_id=line_item_id, fields=sorted(fields)
    )
    return line_item


def delete_line_item(session: Session, line_item_id: int) -> bool:
    """
    Remove a line item from its recipe.

    Raises:
        LineItemNotFound: If line item doesn't exist
    """
    line_item = get_line_item(session, line_item_id)
    recipe_id = line_item.recipe_id

    try:
        line_item.recipe.line_items.remove(line_item)
        session.delete(line_item)
        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete line item {line_item_id}", e)

    log_operation(
        logger, "delete_line_item", "success", line_item_id=line_item_id, recipe_id=recipe_id
    )
    return True

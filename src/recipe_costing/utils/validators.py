"""
Input validation functions for the Recipe Costing engine.

This module provides validation functions for all user inputs including:
- Numeric validation (positive, non-negative, integer pence)
- String validation (length, required fields)
- Unit and line item type validation
- Whole-record validation for ingredients, purchases, recipes and line items

Record validators return ``(is_valid, errors)``. With ``partial=True`` only
the keys present in the dictionary are checked, which is how updates are
validated.
"""

import math
from typing import Any, List, Optional, Tuple

from ..models.enums import BaseUnit, LineItemType

from .constants import (
    ENGINE_OWNED_LINE_ITEM_FIELDS,
    ENGINE_OWNED_RECIPE_FIELDS,
    ERROR_ENGINE_OWNED,
    ERROR_INVALID_INTEGER,
    ERROR_INVALID_ITEM_TYPE,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_UNIT,
    ERROR_INVALID_YIELD_PERCENT,
    ERROR_REQUIRED_FIELD,
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_UNIT_LENGTH,
)


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Args:
        value: The string value to validate
        max_length: Maximum allowed length
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a positive number (> 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _as_number(value)
    if num_value is None or not math.isfinite(num_value):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _as_number(value)
    if num_value is None or not math.isfinite(num_value):
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_non_negative_integer(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate a whole number >= 0 (12 and 12.0 pass, 12.5 does not).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    is_valid, error = validate_non_negative_number(value, field_name)
    if not is_valid:
        return is_valid, error
    if not _as_number(value).is_integer():
        return False, f"{field_name}: {ERROR_INVALID_INTEGER}"
    return True, ""


def validate_minor_units(value: Any, field_name: str = "Price") -> Tuple[bool, str]:
    """
    Validate a money amount in integer minor-currency units (e.g. pence).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    return validate_non_negative_integer(value, field_name)


def validate_base_unit(unit: Optional[str], field_name: str = "Base Unit") -> Tuple[bool, str]:
    """
    Validate that a unit is one of the canonical base units.

    Args:
        unit: The unit string to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not unit:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"

    allowed = [member.value for member in BaseUnit]
    if unit not in allowed:
        return False, f"{field_name}: {ERROR_INVALID_UNIT} (expected one of {', '.join(allowed)})"

    return True, ""


def _check(errors: List[str], result: Tuple[bool, str]) -> bool:
    is_valid, error = result
    if not is_valid:
        errors.append(error)
    return is_valid


def _check_engine_owned(errors: List[str], data: dict, fields: List[str]) -> None:
    for field in fields:
        if field in data:
            errors.append(f"{field}: {ERROR_ENGINE_OWNED}")


def validate_ingredient_data(data: dict, partial: bool = False) -> Tuple[bool, list]:
    """
    Validate all fields for an ingredient.

    Args:
        data: Dictionary containing ingredient fields
        partial: If True, only validate keys present in data

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors: List[str] = []

    if not partial or "name" in data:
        if _check(errors, validate_required_string(data.get("name"), "Ingredient Name")):
            _check(errors, validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Ingredient Name"))

    if not partial or "base_unit" in data:
        _check(errors, validate_base_unit(data.get("base_unit")))

    if "yield_percent" in data:
        yield_percent = _as_number(data.get("yield_percent"))
        if yield_percent is None or not 0 < yield_percent <= 1:
            errors.append(f"Yield Percent: {ERROR_INVALID_YIELD_PERCENT}")

    if data.get("category"):
        _check(errors, validate_string_length(data.get("category"), MAX_CATEGORY_LENGTH, "Category"))

    return len(errors) == 0, errors


def validate_purchase_data(data: dict, partial: bool = False) -> Tuple[bool, list]:
    """
    Validate all fields for a purchase item.

    Args:
        data: Dictionary containing purchase fields
        partial: If True, only validate keys present in data

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors: List[str] = []

    if not partial or "supplier_name" in data:
        if _check(errors, validate_required_string(data.get("supplier_name"), "Supplier Name")):
            _check(
                errors,
                validate_string_length(data.get("supplier_name"), MAX_NAME_LENGTH, "Supplier Name"),
            )

    if not partial or "purchase_price" in data:
        _check(errors, validate_minor_units(data.get("purchase_price"), "Purchase Price"))

    if not partial or "purchase_quantity" in data:
        _check(errors, validate_positive_number(data.get("purchase_quantity"), "Purchase Quantity"))

    if not partial or "purchase_unit" in data:
        if _check(errors, validate_required_string(data.get("purchase_unit"), "Purchase Unit")):
            _check(
                errors,
                validate_string_length(data.get("purchase_unit"), MAX_UNIT_LENGTH, "Purchase Unit"),
            )

    if "cost_per_base_unit" in data:
        errors.append(f"cost_per_base_unit: {ERROR_ENGINE_OWNED}")

    return len(errors) == 0, errors


def validate_recipe_data(data: dict, partial: bool = False) -> Tuple[bool, list]:  # noqa: C901
    """
    Validate all fields for a recipe.

    A yield quantity of zero is rejected here so cost per portion can never
    be divided by it later.

    Args:
        data: Dictionary containing recipe fields
        partial: If True, only validate keys present in data

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors: List[str] = []

    _check_engine_owned(errors, data, ENGINE_OWNED_RECIPE_FIELDS)

    if not partial or "name" in data:
        if _check(errors, validate_required_string(data.get("name"), "Recipe Name")):
            _check(errors, validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Recipe Name"))

    if not partial or "yield_quantity" in data:
        _check(errors, validate_positive_number(data.get("yield_quantity"), "Yield Quantity"))

    if not partial or "yield_unit" in data:
        if _check(errors, validate_required_string(data.get("yield_unit"), "Yield Unit")):
            _check(errors, validate_string_length(data.get("yield_unit"), MAX_UNIT_LENGTH, "Yield Unit"))

    if data.get("description"):
        _check(
            errors,
            validate_string_length(data.get("description"), MAX_DESCRIPTION_LENGTH, "Description"),
        )

    if data.get("instructions"):
        _check(
            errors, validate_string_length(data.get("instructions"), MAX_NOTES_LENGTH, "Instructions")
        )

    # Minutes; stored in Integer columns
    for field, label in (("prep_time", "Prep Time"), ("cook_time", "Cook Time")):
        if data.get(field) is not None:
            _check(errors, validate_non_negative_integer(data.get(field), label))

    if "is_sub_recipe" in data and not isinstance(data.get("is_sub_recipe"), bool):
        errors.append("Is Sub Recipe: Must be true or false")

    return len(errors) == 0, errors


def validate_line_item_data(data: dict, partial: bool = False) -> Tuple[bool, list]:
    """
    Validate all fields for a recipe line item.

    Args:
        data: Dictionary containing line item fields
        partial: If True, only validate keys present in data

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors: List[str] = []

    _check_engine_owned(errors, data, ENGINE_OWNED_LINE_ITEM_FIELDS)

    if "recipe_id" in data and partial:
        errors.append("recipe_id: A line item cannot be moved to another recipe")

    if not partial or "item_type" in data:
        if data.get("item_type") not in [member.value for member in LineItemType]:
            errors.append(f"Item Type: {ERROR_INVALID_ITEM_TYPE}")

    if not partial or "item_id" in data:
        item_id = data.get("item_id")
        if item_id is None:
            errors.append(f"Item: {ERROR_REQUIRED_FIELD}")
        elif isinstance(item_id, bool) or not isinstance(item_id, int):
            errors.append(f"Item: {ERROR_INVALID_INTEGER}")

    if not partial or "quantity" in data:
        _check(errors, validate_positive_number(data.get("quantity"), "Quantity"))

    if not partial or "unit" in data:
        if _check(errors, validate_required_string(data.get("unit"), "Unit")):
            _check(errors, validate_string_length(data.get("unit"), MAX_UNIT_LENGTH, "Unit"))

    if data.get("item_name"):
        _check(errors, validate_string_length(data.get("item_name"), MAX_NAME_LENGTH, "Item Name"))

    if data.get("notes"):
        _check(errors, validate_string_length(data.get("notes"), MAX_DESCRIPTION_LENGTH, "Notes"))

    return len(errors) == 0, errors


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Strip whitespace and convert empty strings to None.

    Args:
        value: The string value to sanitize

    Returns:
        Sanitized string or None
    """
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None

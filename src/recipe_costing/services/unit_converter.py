"""
Unit conversion for the Recipe Costing engine.

This module provides:
- The purchase-side conversion used to derive cost per base unit
  (only kg -> g and l -> ml are converted)
- A pluggable UnitConverter hook used by the cost rollup to turn a line
  item's quantity into ingredient base units
- Cost display helpers

Conversion Strategy:
- By default recipe quantities are NOT converted. PassThroughConverter
  multiplies the stated quantity by cost per base unit even if the line
  item's unit differs from the ingredient's base unit.
- TableUnitConverter can be plugged into the rollup instead. It uses
  per-ingredient UnitConversion rows, then the standard weight/volume tables.
"""

from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from ..models import Ingredient, UnitConversion
from ..models.enums import BaseUnit
from ..utils.constants import (
    CURRENCY_DECIMAL_PLACES,
    CURRENCY_SYMBOL,
    MINOR_UNITS_PER_MAJOR,
    UNIT_COST_DECIMAL_PLACES,
)
from .exceptions import ValidationError
from .logging_utils import get_service_logger

logger = get_service_logger(__name__)


# ============================================================================
# Standard Conversion Tables
# ============================================================================

# (purchase unit, base unit) -> multiplier applied when deriving cost per base unit
PURCHASE_UNIT_TO_BASE: Dict[Tuple[str, str], float] = {
    ("kg", BaseUnit.GRAM.value): 1000.0,
    ("l", BaseUnit.MILLILITER.value): 1000.0,
}

# Weight conversions to grams
WEIGHT_TO_GRAMS = {
    "g": 1.0,
    "kg": 1000.0,
    "oz": 28.3495,
    "lb": 453.592,
}

# Volume conversions to milliliters
VOLUME_TO_ML = {
    "ml": 1.0,
    "l": 1000.0,
    "tsp": 4.92892,
    "tbsp": 14.7868,
    "fl oz": 29.5735,
    "cup": 236.588,
    "pt": 473.176,
}

# Count conversions to individual items
COUNT_TO_ITEMS = {
    "each": 1.0,
    "piece": 1.0,
    "dozen": 12.0,
}

_TABLE_FOR_BASE_UNIT = {
    BaseUnit.GRAM.value: WEIGHT_TO_GRAMS,
    BaseUnit.MILLILITER.value: VOLUME_TO_ML,
    BaseUnit.EACH.value: COUNT_TO_ITEMS,
}


def purchase_quantity_in_base_units(quantity: float, unit: str, base_unit: str) -> float:
    """
    Express a purchase quantity in the ingredient's base unit.

    Only kilograms to grams and litres to millilitres are converted; any
    other unit is assumed to already be the base unit.

    Args:
        quantity: Purchased amount
        unit: Purchase unit as recorded
        base_unit: Ingredient base unit

    Returns:
        Quantity in base units

    Example:
        >>> purchase_quantity_in_base_units(1.5, "kg", "g")
        1500.0
        >>> purchase_quantity_in_base_units(6, "box", "each")
        6
    """
    factor = PURCHASE_UNIT_TO_BASE.get(((unit or "").strip().lower(), base_unit))
    if factor is None:
        return quantity
    return quantity * factor


def calculate_cost_per_base_unit(
    price: int, quantity: float, unit: str, base_unit: str
) -> float:
    """
    Price per one base unit.

    Args:
        price: Purchase price in pence
        quantity: Purchased amount in unit
        unit: Purchase unit
        base_unit: Ingredient base unit

    Returns:
        Fractional pence per base unit (not rounded)

    Raises:
        ValidationError: If the quantity in base units is not positive
    """
    quantity_in_base = purchase_quantity_in_base_units(quantity, unit, base_unit)
    if quantity_in_base <= 0:
        raise ValidationError(["Purchase Quantity: Value must be greater than zero"])
    return price / quantity_in_base


def convert_standard_units(
    value: float, from_unit: str, to_unit: str
) -> Tuple[bool, float, str]:
    """
    Convert between units of the same kind using the standard tables.

    Args:
        value: Quantity to convert
        from_unit: Source unit
        to_unit: Target unit

    Returns:
        Tuple of (success, converted_value, error_message)
    """
    from_key = (from_unit or "").strip().lower()
    to_key = (to_unit or "").strip().lower()

    for table in (WEIGHT_TO_GRAMS, VOLUME_TO_ML, COUNT_TO_ITEMS):
        if from_key in table and to_key in table:
            return True, value * table[from_key] / table[to_key], ""

    return False, 0.0, f"Cannot convert {from_unit} to {to_unit}"


class UnitConverter:
    """
    Hook the cost rollup uses to express a line quantity in base units.

    Subclasses override to_base_units(). The rollup multiplies the returned
    value by the ingredient's cost per base unit.
    """

    name = "base"

    def to_base_units(
        self, session: Session, ingredient: Ingredient, quantity: float, unit: str
    ) -> float:
        raise NotImplementedError


class PassThroughConverter(UnitConverter):
    """Default converter: the stated quantity is used as-is, whatever the unit."""

    name = "pass_through"

    def to_base_units(
        self, session: Session, ingredient: Ingredient, quantity: float, unit: str
    ) -> float:
        return quantity


class TableUnitConverter(UnitConverter):
    """
    Converter backed by the unit_conversions table and the standard tables.

    Lookup order:
    1. Unit already equals the ingredient's base unit
    2. A UnitConversion row for (ingredient, unit)
    3. Standard weight/volume/count table compatible with the base unit
    4. Pass through unchanged (logged)
    """

    name = "table"

    def to_base_units(
        self, session: Session, ingredient: Ingredient, quantity: float, unit: str
    ) -> float:
        unit_key = (unit or "").strip().lower()
        base_unit = ingredient.base_unit

        if unit_key == base_unit:
            return quantity

        factor = self.get_conversion_factor(session, ingredient.id, unit_key)
        if factor is not None:
            return quantity * factor

        table = _TABLE_FOR_BASE_UNIT.get(base_unit, {})
        if unit_key in table:
            return quantity * table[unit_key] / table[base_unit]

        logger.warning(
            f"No conversion from '{unit}' to '{base_unit}' for ingredient "
            f"{ingredient.id}; using quantity unchanged"
        )
        return quantity

    @staticmethod
    def get_conversion_factor(
        session: Session, ingredient_id: int, unit_name: str
    ) -> Optional[float]:
        """Base units per one unit_name for this ingredient, or None."""
        conversion = (
            session.query(UnitConversion)
            .filter(UnitConversion.ingredient_id == ingredient_id)
            .filter(UnitConversion.unit_name == unit_name)
            .first()
        )
        if conversion is None:
            return None
        return conversion.to_base_unit_factor


# ============================================================================
# Display Helpers
# ============================================================================


def format_cost(
    amount_minor: float,
    currency_symbol: str = CURRENCY_SYMBOL,
    precision: int = CURRENCY_DECIMAL_PLACES,
) -> str:
    """
    Format an amount in minor units (pence) as a currency string.

    Rounding only happens here; stored costs are never rounded.

    Example:
        >>> format_cost(117.857)
        '£1.18'
    """
    amount = (amount_minor or 0.0) / MINOR_UNITS_PER_MAJOR
    return f"{currency_symbol}{amount:,.{precision}f}"


def format_unit_cost(
    cost_per_base_unit: float, base_unit: str, precision: int = UNIT_COST_DECIMAL_PLACES
) -> str:
    """
    Format a cost per base unit in pence.

    Example:
        >>> format_unit_cost(0.785714, "g")
        '0.7857p/g'
    """
    return f"{(cost_per_base_unit or 0.0):.{precision}f}p/{base_unit}"

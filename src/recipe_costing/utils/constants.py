"""
Constants for the Recipe Costing engine.

This module defines system-wide constants including:
- Engine-owned cost fields
- Validation limits and error messages
- Display precision for money values
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Recipe Costing"
APP_VERSION = "0.1.0"

# ============================================================================
# Derived Fields
# ============================================================================

# Fields written only by the cost rollup
ENGINE_OWNED_RECIPE_FIELDS: List[str] = ["total_cost", "cost_per_portion"]
ENGINE_OWNED_LINE_ITEM_FIELDS: List[str] = ["cost"]

# ============================================================================
# Validation Limits
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_CATEGORY_LENGTH = 100
MAX_UNIT_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 2000

# ============================================================================
# Display
# ============================================================================

CURRENCY_SYMBOL = "£"
CURRENCY_DECIMAL_PLACES = 2
UNIT_COST_DECIMAL_PLACES = 4
MINOR_UNITS_PER_MAJOR = 100

# ============================================================================
# Database
# ============================================================================

DATABASE_FILENAME = "recipe_costing.db"

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Please enter a valid number"
ERROR_INVALID_POSITIVE = "Value must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Value must be zero or greater"
ERROR_INVALID_INTEGER = "Value must be a whole number"
ERROR_INVALID_UNIT = "Invalid unit type"
ERROR_INVALID_ITEM_TYPE = "Item type must be 'ingredient' or 'recipe'"
ERROR_INVALID_YIELD_PERCENT = "Yield percent must be greater than 0 and at most 1"
ERROR_ENGINE_OWNED = "Cost fields are computed and cannot be set directly"

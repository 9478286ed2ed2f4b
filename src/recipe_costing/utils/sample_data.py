"""
Sample dataset for development and testing.

Loads a small costed menu: eleven ingredients with one supplier purchase
each, the "Coconut & Coriander Yogurt" sub-recipe and the "Panko Coated
Prawns" main recipe that uses it. Prices are in pence.

Purchases go through purchase_service so cost per base unit is derived the
same way as for user-entered data. The loader does not recompute costs;
CostingService.load_sample_data() runs it together with a rollup.
"""

from typing import Dict

from sqlalchemy.orm import Session

from ..models.enums import LineItemType
from ..services.ingredient_service import create_ingredient
from ..services.purchase_service import record_purchase
from ..services.recipe_service import add_line_item, create_recipe

SAMPLE_INGREDIENTS = [
    {"name": "Raw King Prawns", "base_unit": "g", "yield_percent": 1.0, "category": "Seafood"},
    {"name": "Panko Breadcrumbs", "base_unit": "g", "yield_percent": 1.0, "category": "Dry Goods"},
    {"name": "Desiccated Coconut", "base_unit": "g", "yield_percent": 1.0, "category": "Dry Goods"},
    {"name": "Plain Flour", "base_unit": "g", "yield_percent": 1.0, "category": "Dry Goods"},
    {"name": "Large Eggs", "base_unit": "each", "yield_percent": 1.0, "category": "Dairy & Eggs"},
    {"name": "Coconut Yogurt", "base_unit": "g", "yield_percent": 1.0, "category": "Dairy & Eggs"},
    {"name": "Fresh Coriander", "base_unit": "g", "yield_percent": 0.8, "category": "Fresh Herbs"},
    {"name": "Lime", "base_unit": "each", "yield_percent": 0.5, "category": "Fresh Produce"},
    {"name": "Vegetable Oil", "base_unit": "ml", "yield_percent": 1.0, "category": "Oils"},
    {"name": "Table Salt", "base_unit": "g", "yield_percent": 1.0, "category": "Seasonings"},
    {"name": "Black Pepper", "base_unit": "g", "yield_percent": 1.0, "category": "Seasonings"},
]

# (ingredient name, supplier, price in pence, quantity, unit)
SAMPLE_PURCHASES = [
    ("Raw King Prawns", "London Seafood Suppliers", 1900, 1000, "g"),
    ("Panko Breadcrumbs", "Asian Foods Ltd", 195, 150, "g"),
    ("Desiccated Coconut", "Asian Foods Ltd", 200, 200, "g"),
    ("Plain Flour", "Dry Goods Wholesale", 75, 1500, "g"),
    ("Large Eggs", "Farm Fresh Supplies", 179, 6, "each"),
    ("Coconut Yogurt", "Dairy Alternatives Co", 275, 350, "g"),
    ("Fresh Coriander", "Fresh Herbs Direct", 52, 30, "g"),
    ("Lime", "Fresh Produce Ltd", 24, 1, "each"),
    ("Vegetable Oil", "Cooking Essentials", 149, 1000, "ml"),
    ("Table Salt", "Seasonings Direct", 65, 750, "g"),
    ("Black Pepper", "Seasonings Direct", 285, 50, "g"),
]

YOGURT_RECIPE = {
    "name": "Coconut & Coriander Yogurt",
    "description": "A refreshing dipping sauce with coconut yogurt, fresh coriander, and lime",
    "is_sub_recipe": True,
    "yield_quantity": 170,
    "yield_unit": "g",
    "prep_time": 5,
    "cook_time": 0,
    "instructions": (
        "1. Finely chop the fresh coriander.\n"
        "2. In a bowl, combine coconut yogurt and chopped coriander.\n"
        "3. Squeeze in lime juice.\n"
        "4. Season with salt and black pepper.\n"
        "5. Mix well and refrigerate until needed.\n"
        "6. Let flavours blend for at least 10 minutes before serving."
    ),
}

# (ingredient name, quantity, unit)
YOGURT_LINES = [
    ("Coconut Yogurt", 150, "g"),
    ("Fresh Coriander", 15, "g"),
    ("Lime", 0.5, "each"),
    ("Table Salt", 1, "g"),
    ("Black Pepper", 1, "g"),
]

PRAWN_RECIPE = {
    "name": "Panko Coated Prawns with Coconut & Coriander Yogurt",
    "description": (
        "Crispy panko-coated prawns with a touch of coconut, "
        "served with a zesty coriander yogurt dip"
    ),
    "is_sub_recipe": False,
    "yield_quantity": 4,
    "yield_unit": "portions",
    "prep_time": 15,
    "cook_time": 10,
    "instructions": (
        "1. Set up three bowls: flour in first, beaten eggs in second, "
        "panko mixed with coconut in third.\n"
        "2. Season flour with salt and pepper.\n"
        "3. Pat prawns dry with paper towels.\n"
        "4. Coat each prawn: first in flour, then egg, finally in panko-coconut mixture.\n"
        "5. Press coating firmly onto prawns.\n"
        "6. Heat vegetable oil to 180°C (350°F) in a deep pan.\n"
        "7. Fry prawns in batches for 2-3 minutes until golden and crispy.\n"
        "8. Drain on paper towels.\n"
        "9. Serve hot with coconut & coriander yogurt on the side."
    ),
}

PRAWN_LINES = [
    ("Raw King Prawns", 300, "g"),
    ("Plain Flour", 50, "g"),
    ("Large Eggs", 2, "each"),
    ("Panko Breadcrumbs", 75, "g"),
    ("Desiccated Coconut", 50, "g"),
    ("Table Salt", 2, "g"),
    ("Black Pepper", 1, "g"),
    ("Vegetable Oil", 500, "ml"),
]


def load_sample_data(session: Session) -> Dict[str, int]:
    """
    Insert the sample dataset.

    Args:
        session: Database session (flushed, not committed)

    Returns:
        Dictionary with counts of created entities

    Raises:
        ValidationError: If an ingredient with a sample name already exists
    """
    counts = {"ingredients": 0, "purchase_items": 0, "recipes": 0, "line_items": 0}

    ingredient_map = {}  # name -> Ingredient
    for ing_data in SAMPLE_INGREDIENTS:
        ingredient_map[ing_data["name"]] = create_ingredient(session, ing_data)
        counts["ingredients"] += 1

    for name, supplier, price, quantity, unit in SAMPLE_PURCHASES:
        record_purchase(session, ingredient_map[name].id, supplier, price, quantity, unit)
        counts["purchase_items"] += 1

    yogurt = create_recipe(session, YOGURT_RECIPE)
    prawns = create_recipe(session, PRAWN_RECIPE)
    counts["recipes"] += 2

    for recipe, lines in ((yogurt, YOGURT_LINES), (prawns, PRAWN_LINES)):
        for name, quantity, unit in lines:
            add_line_item(
                session,
                recipe.id,
                ingredient_map[name].id,
                LineItemType.INGREDIENT.value,
                name,
                quantity,
                unit,
            )
            counts["line_items"] += 1

    add_line_item(
        session, prawns.id, yogurt.id, LineItemType.RECIPE.value, yogurt.name, 1, "batch"
    )
    counts["line_items"] += 1

    return counts

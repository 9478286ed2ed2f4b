"""
Costing Service - The outward interface of the costing engine.

CostingService owns a Database and a lock. Every mutation runs inside one
session scope together with a full cost rollup, and is committed only if
both succeed; a RecipeCycleError or any other error rolls the mutation back.
Readers therefore never see stale or half-written costs.

Example:
    >>> db = Database("sqlite:///:memory:")
    >>> db.init()
    >>> costing = CostingService(db)
    >>> flour = costing.create_ingredient({"name": "Plain Flour", "base_unit": "g"})
    >>> costing.record_purchase(flour.id, "Wholesale Foods Ltd", 95, 1.5, "kg")
    >>> costing.last_rollup.succeeded
    True
"""

import threading
from typing import Any, Callable, Dict, List, Optional

from ..models import Ingredient, PurchaseItem, Recipe, RecipeLineItem, UnitConversion
from ..utils import sample_data
from . import cost_rollup_service, ingredient_service, purchase_service, recipe_service
from .cost_rollup_service import RollupResult
from .database import Database
from .unit_converter import PassThroughConverter, UnitConverter


class CostingService:
    """
    Facade over the catalog, recipe store and cost rollup.

    Attributes:
        database: The Database this service reads and writes
        converter: UnitConverter used for ingredient line quantities
        last_rollup: RollupResult of the most recent committed rollup, or None
    """

    def __init__(self, database: Database, converter: Optional[UnitConverter] = None):
        self.database = database
        self.converter = converter or PassThroughConverter()
        self.last_rollup: Optional[RollupResult] = None
        self._lock = threading.RLock()

    def _read(self, operation: Callable, *args: Any) -> Any:
        with self._lock:
            with self.database.session_scope() as session:
                return operation(session, *args)

    def _mutate(self, operation: Callable, *args: Any, **kwargs: Any) -> Any:
        """Run operation then a full rollup in one transaction."""
        with self._lock:
            with self.database.session_scope() as session:
                value = operation(session, *args, **kwargs)
                rollup = cost_rollup_service.recompute_all(session, self.converter)
            self.last_rollup = rollup
            return value

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_recipes(self) -> List[Recipe]:
        return self._read(recipe_service.list_recipes)

    def get_recipe(self, recipe_id: int) -> Recipe:
        return self._read(recipe_service.get_recipe, recipe_id)

    def get_line_items(self, recipe_id: int) -> List[RecipeLineItem]:
        return self._read(recipe_service.get_line_items, recipe_id)

    def get_recipes_using(self, recipe_id: int) -> List[Recipe]:
        return self._read(recipe_service.get_recipes_using, recipe_id)

    def list_ingredients(self) -> List[Ingredient]:
        return self._read(ingredient_service.list_ingredients)

    def get_ingredient(self, ingredient_id: int) -> Ingredient:
        return self._read(ingredient_service.get_ingredient, ingredient_id)

    def list_purchase_items(self) -> List[PurchaseItem]:
        return self._read(purchase_service.list_purchase_items)

    def get_purchase_item(self, purchase_item_id: int) -> PurchaseItem:
        return self._read(purchase_service.get_purchase, purchase_item_id)

    def cost_per_base_unit(self, ingredient_id: int) -> Optional[float]:
        return self._read(purchase_service.cost_per_base_unit, ingredient_id)

    # ------------------------------------------------------------------
    # Rollup
    # ------------------------------------------------------------------

    def recompute_all(self) -> RollupResult:
        """Recompute and commit every cached cost."""
        with self._lock:
            with self.database.session_scope() as session:
                rollup = cost_rollup_service.recompute_all(session, self.converter)
            self.last_rollup = rollup
            return rollup

    # ------------------------------------------------------------------
    # Ingredients and purchases
    # ------------------------------------------------------------------

    def create_ingredient(self, data: Dict) -> Ingredient:
        return self._mutate(ingredient_service.create_ingredient, data)

    def update_ingredient(self, ingredient_id: int, data: Dict) -> Ingredient:
        return self._mutate(ingredient_service.update_ingredient, ingredient_id, data)

    def delete_ingredient(self, ingredient_id: int) -> bool:
        return self._mutate(ingredient_service.delete_ingredient, ingredient_id)

    def add_unit_conversion(
        self,
        ingredient_id: int,
        unit_name: str,
        to_base_unit_factor: float,
        description: Optional[str] = None,
    ) -> UnitConversion:
        return self._mutate(
            ingredient_service.add_unit_conversion,
            ingredient_id,
            unit_name,
            to_base_unit_factor,
            description,
        )

    def record_purchase(
        self, ingredient_id: int, supplier_name: str, price: int, quantity: float, unit: str
    ) -> PurchaseItem:
        return self._mutate(
            purchase_service.record_purchase, ingredient_id, supplier_name, price, quantity, unit
        )

    def update_purchase_item(self, purchase_item_id: int, fields: Dict) -> PurchaseItem:
        return self._mutate(purchase_service.update_purchase, purchase_item_id, fields)

    def delete_purchase_item(self, purchase_item_id: int) -> bool:
        return self._mutate(purchase_service.delete_purchase, purchase_item_id)

    # ------------------------------------------------------------------
    # Recipes and line items
    # ------------------------------------------------------------------

    def create_recipe(self, data: Dict) -> Recipe:
        return self._mutate(recipe_service.create_recipe, data)

    def update_recipe(self, recipe_id: int, fields: Dict) -> Recipe:
        return self._mutate(recipe_service.update_recipe, recipe_id, fields)

    def delete_recipe(self, recipe_id: int) -> bool:
        return self._mutate(recipe_service.delete_recipe, recipe_id)

    def add_line_item(
        self,
        recipe_id: int,
        item_id: int,
        item_type: str,
        item_name: Optional[str],
        quantity: float,
        unit: str,
        notes: Optional[str] = None,
    ) -> int:
        return self._mutate(
            recipe_service.add_line_item,
            recipe_id,
            item_id,
            item_type,
            item_name,
            quantity,
            unit,
            notes,
        )

    def update_line_item(self, line_item_id: int, fields: Dict) -> RecipeLineItem:
        return self._mutate(recipe_service.update_line_item, line_item_id, fields)

    def delete_line_item(self, line_item_id: int) -> bool:
        return self._mutate(recipe_service.delete_line_item, line_item_id)

    # ------------------------------------------------------------------
    # Sample data
    # ------------------------------------------------------------------

    def load_sample_data(self) -> Dict[str, int]:
        """Insert the sample menu and cost it in one transaction."""
        return self._mutate(sample_data.load_sample_data)

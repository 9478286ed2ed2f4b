"""
Cost Rollup Service - Recompute every cached recipe cost.

Recipes that use other recipes form a directed graph. The rollup walks it
depth-first so that every referenced recipe is settled before any recipe
that references it, then writes line costs, total_cost and
cost_per_portion.

Line cost:
    ingredient line: converted quantity x cost per base unit of the ingredient
    recipe line:     quantity x total_cost of the referenced recipe

Recipe cost:
    total_cost       = sum of line costs
    cost_per_portion = total_cost / yield_quantity

Nothing is rounded here. A missing ingredient price or a dangling recipe
reference contributes zero and is logged. A recipe whose yield quantity is
not positive is reported in RollupResult.failures and keeps its previously
cached costs. A reference cycle raises RecipeCycleError for the whole run.

The rollup only flushes; committing is the caller's job (CostingService
commits once the rollup has succeeded).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Ingredient, Recipe, RecipeLineItem
from .exceptions import CostComputationError, DatabaseError, RecipeCycleError
from .logging_utils import get_service_logger, log_operation
from .purchase_service import cost_per_base_unit
from .unit_converter import PassThroughConverter, UnitConverter

logger = get_service_logger(__name__)


@dataclass
class RollupResult:
    """Outcome of one recompute_all() run.

    Attributes:
        order: Recipe ids in the order they were settled
        computed: Recipe ids whose cached costs were written
        failures: Recipe id -> CostComputationError for recipes left untouched
    """

    order: List[int] = field(default_factory=list)
    computed: List[int] = field(default_factory=list)
    failures: Dict[int, CostComputationError] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures


@dataclass
class RecipeCosts:
    """Costs computed for one recipe before they are written back."""

    recipe_id: int
    line_costs: Dict[int, float]
    total_cost: float
    cost_per_portion: float


# ============================================================================
# Ordering
# ============================================================================


def topological_order(
    recipes: List[Recipe], line_items_by_recipe: Dict[int, List[RecipeLineItem]]
) -> List[int]:
    """
    Order recipe ids so every referenced recipe precedes its users.

    Traversal starts from sub-recipes, then main recipes, each by name, so
    the order is stable between runs.

    Args:
        recipes: All recipes
        line_items_by_recipe: Line items grouped by owning recipe id

    Returns:
        Recipe ids, dependencies first

    Raises:
        RecipeCycleError: If recipe references form a cycle
    """
    known_ids = {recipe.id for recipe in recipes}
    roots = sorted(recipes, key=lambda r: (not r.is_sub_recipe, r.name, r.id))

    order: List[int] = []
    visited = set()
    visiting: List[int] = []

    def visit(recipe_id: int) -> None:
        if recipe_id in visited:
            return
        if recipe_id in visiting:
            start = visiting.index(recipe_id)
            raise RecipeCycleError(visiting[start:] + [recipe_id])

        visiting.append(recipe_id)
        for line_item in line_items_by_recipe.get(recipe_id, []):
            if line_item.is_recipe and line_item.item_id in known_ids:
                visit(line_item.item_id)
        visiting.pop()

        visited.add(recipe_id)
        order.append(recipe_id)

    for recipe in roots:
        visit(recipe.id)

    return order


# ============================================================================
# Computation
# ============================================================================


class _IngredientPrices:
    """Per-run cache of cost per base unit by ingredient id."""

    def __init__(self, session: Session):
        self._session = session
        self._prices: Dict[int, Optional[float]] = {}

    def get(self, ingredient_id: int) -> Optional[float]:
        if ingredient_id not in self._prices:
            self._prices[ingredient_id] = cost_per_base_unit(self._session, ingredient_id)
        return self._prices[ingredient_id]


def _ingredient_line_cost(
    session: Session,
    line_item: RecipeLineItem,
    prices: _IngredientPrices,
    converter: UnitConverter,
) -> float:
    ingredient = session.get(Ingredient, line_item.item_id)
    if ingredient is None:
        log_operation(
            logger,
            "recompute_all",
            "ingredient_missing",
            level=logging.WARNING,
            recipe_id=line_item.recipe_id,
            line_item_id=line_item.id,
            ingredient_id=line_item.item_id,
        )
        return 0.0

    unit_cost = prices.get(ingredient.id)
    if unit_cost is None:
        log_operation(
            logger,
            "recompute_all",
            "ingredient_unpriced",
            level=logging.WARNING,
            recipe_id=line_item.recipe_id,
            line_item_id=line_item.id,
            ingredient_id=ingredient.id,
        )
        return 0.0

    quantity = converter.to_base_units(session, ingredient, line_item.quantity, line_item.unit)
    return quantity * unit_cost


def _recipe_line_cost(line_item: RecipeLineItem, recipes_by_id: Dict[int, Recipe]) -> float:
    target = recipes_by_id.get(line_item.item_id)
    if target is None:
        log_operation(
            logger,
            "recompute_all",
            "sub_recipe_missing",
            level=logging.WARNING,
            recipe_id=line_item.recipe_id,
            line_item_id=line_item.id,
            sub_recipe_id=line_item.item_id,
        )
        return 0.0
    return line_item.quantity * (target.total_cost or 0.0)


def compute_recipe_cost(
    session: Session,
    recipe: Recipe,
    line_items: List[RecipeLineItem],
    recipes_by_id: Dict[int, Recipe],
    prices: Optional[_IngredientPrices] = None,
    converter: Optional[UnitConverter] = None,
) -> RecipeCosts:
    """
    Compute one recipe's costs without writing anything.

    Referenced recipes are read at their current total_cost, so callers must
    settle them first (see topological_order).

    Raises:
        CostComputationError: If yield_quantity is not positive
    """
    prices = prices or _IngredientPrices(session)
    converter = converter or PassThroughConverter()

    line_costs: Dict[int, float] = {}
    for line_item in line_items:
        if line_item.is_recipe:
            line_costs[line_item.id] = _recipe_line_cost(line_item, recipes_by_id)
        else:
            line_costs[line_item.id] = _ingredient_line_cost(
                session, line_item, prices, converter
            )

    total_cost = sum(line_costs.values())

    if not recipe.yield_quantity or recipe.yield_quantity <= 0:
        raise CostComputationError(
            recipe.id, f"yield quantity must be positive, got {recipe.yield_quantity}"
        )

    return RecipeCosts(
        recipe_id=recipe.id,
        line_costs=line_costs,
        total_cost=total_cost,
        cost_per_portion=total_cost / recipe.yield_quantity,
    )


def _apply_costs(recipe: Recipe, line_items: List[RecipeLineItem], costs: RecipeCosts) -> None:
    for line_item in line_items:
        line_item.cost = costs.line_costs[line_item.id]
    recipe.total_cost = costs.total_cost
    recipe.cost_per_portion = costs.cost_per_portion


def recompute_all(session: Session, converter: Optional[UnitConverter] = None) -> RollupResult:
    """
    Recompute line costs, totals and cost per portion for every recipe.

    Idempotent: running it twice without intervening changes writes the same
    values.

    Args:
        session: Database session (flushed, not committed)
        converter: Unit converter for ingredient lines; defaults to
            PassThroughConverter

    Returns:
        RollupResult with the settle order, written recipes and failures

    Raises:
        RecipeCycleError: If recipe references form a cycle (nothing written)
        DatabaseError: If database operation fails
    """
    converter = converter or PassThroughConverter()
    result = RollupResult()

    try:
        recipes = session.query(Recipe).all()
        line_items_by_recipe: Dict[int, List[RecipeLineItem]] = {}
        for line_item in session.query(RecipeLineItem).order_by(
            RecipeLineItem.recipe_id, RecipeLineItem.id
        ):
            line_items_by_recipe.setdefault(line_item.recipe_id, []).append(line_item)

        result.order = topological_order(recipes, line_items_by_recipe)

        recipes_by_id = {recipe.id: recipe for recipe in recipes}
        prices = _IngredientPrices(session)

        for recipe_id in result.order:
            recipe = recipes_by_id[recipe_id]
            line_items = line_items_by_recipe.get(recipe_id, [])
            try:
                costs = compute_recipe_cost(
                    session, recipe, line_items, recipes_by_id, prices, converter
                )
            except CostComputationError as e:
                result.failures[recipe_id] = e
                log_operation(
                    logger,
                    "recompute_all",
                    "recipe_failed",
                    level=logging.ERROR,
                    recipe_id=recipe_id,
                    error=e.message,
                )
                continue

            _apply_costs(recipe, line_items, costs)
            result.computed.append(recipe_id)

        session.flush()
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to recompute recipe costs", e)

    log_operation(
        logger,
        "recompute_all",
        "success" if result.succeeded else "partial",
        recipe_count=len(result.order),
        computed_count=len(result.computed),
        failure_count=len(result.failures),
        converter=converter.name,
    )
    return result

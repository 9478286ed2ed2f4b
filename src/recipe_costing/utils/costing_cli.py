"""
Recipe Costing CLI Utility

Command-line interface for seeding, inspecting and re-pricing the costing
database without a UI.

Usage Examples:
    # Create tables
    recipe-costing init

    # Load the sample menu (eleven ingredients, two recipes)
    recipe-costing seed

    # Recompute every cached cost
    recipe-costing recompute

    # List recipes with total and per-portion cost
    recipe-costing list-recipes

    # Show one recipe's line items
    recipe-costing show-recipe 2

    # List supplier purchases
    recipe-costing list-purchases

    # Change a purchase price to 299p (optionally quantity and unit)
    recipe-costing set-price 6 299 --quantity 400 --unit g

    # Use a specific database
    recipe-costing --db-url sqlite:///./menu.db list-recipes
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..services.costing_service import CostingService
from ..services.database import Database
from ..services.exceptions import ServiceError
from ..services.unit_converter import TableUnitConverter, format_cost, format_unit_cost
from .config import get_config


def init_database(costing: CostingService) -> int:
    """Create tables (already done on open) and report the location."""
    ok = costing.database.verify()
    print(f"Database ready at {costing.database.database_url}" if ok else "ERROR: Tables missing")
    return 0 if ok else 1


def seed(costing: CostingService) -> int:
    """Load the sample dataset."""
    print("Loading sample data...")
    counts = costing.load_sample_data()
    for entity, count in counts.items():
        print(f"  {entity}: {count}")
    _print_rollup(costing)
    return 0


def recompute(costing: CostingService) -> int:
    """Recompute all costs."""
    costing.recompute_all()
    _print_rollup(costing)
    return 0 if costing.last_rollup.succeeded else 1


def _print_rollup(costing: CostingService) -> None:
    result = costing.last_rollup
    if result is None:
        return
    print(f"Recomputed {len(result.computed)} of {len(result.order)} recipes")
    for recipe_id, error in result.failures.items():
        print(f"  FAILED recipe {recipe_id}: {error.message}")


def list_recipes(costing: CostingService) -> int:
    """Print every recipe with its cached costs."""
    recipes = costing.list_recipes()
    if not recipes:
        print("No recipes")
        return 0

    for recipe in recipes:
        kind = "sub " if recipe.is_sub_recipe else "main"
        print(
            f"{recipe.id:>4}  {kind}  {recipe.name:<55} "
            f"{format_cost(recipe.total_cost):>10}  "
            f"{format_cost(recipe.cost_per_portion)} per {recipe.yield_unit}"
        )
    return 0


def show_recipe(costing: CostingService, recipe_id: int) -> int:
    """Print one recipe and its line items."""
    recipe = costing.get_recipe(recipe_id)
    print(f"{recipe.name} ({'sub-recipe' if recipe.is_sub_recipe else 'main recipe'})")
    print(f"Yield: {recipe.yield_quantity:g} {recipe.yield_unit}")
    print()
    for line_item in costing.get_line_items(recipe_id):
        print(
            f"  {line_item.quantity:>8g} {line_item.unit:<8} {line_item.item_name:<40} "
            f"{format_cost(line_item.cost):>10}"
        )
    print()
    print(f"Total cost:       {format_cost(recipe.total_cost)}")
    print(f"Cost per portion: {format_cost(recipe.cost_per_portion)}")
    return 0


def list_purchases(costing: CostingService) -> int:
    """Print supplier purchases with derived cost per base unit."""
    ingredients = {ingredient.id: ingredient for ingredient in costing.list_ingredients()}
    for item in costing.list_purchase_items():
        base_unit = ingredients[item.ingredient_id].base_unit
        print(
            f"{item.id:>4}  {item.ingredient_name:<22} {item.supplier_name:<26} "
            f"{format_cost(item.purchase_price):>8} for {item.purchase_quantity:g} "
            f"{item.purchase_unit:<5} {format_unit_cost(item.cost_per_base_unit, base_unit)}"
        )
    return 0


def set_price(
    costing: CostingService,
    purchase_item_id: int,
    price: int,
    quantity: Optional[float] = None,
    unit: Optional[str] = None,
) -> int:
    """Update a purchase price and re-cost every recipe."""
    fields = {"purchase_price": price}
    if quantity is not None:
        fields["purchase_quantity"] = quantity
    if unit is not None:
        fields["purchase_unit"] = unit

    item = costing.update_purchase_item(purchase_item_id, fields)
    print(
        f"Updated {item.ingredient_name} from {item.supplier_name}: "
        f"{format_cost(item.purchase_price)} for {item.purchase_quantity:g} {item.purchase_unit}"
    )
    _print_rollup(costing)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recipe-costing",
        description="Recipe cost rollup utility",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Load the sample menu and show costs:
    recipe-costing seed
    recipe-costing list-recipes

  Change a supplier price (pence):
    recipe-costing set-price 6 299
""",
    )
    config = get_config()
    parser.add_argument(
        "--version", action="version", version=f"{config.app_name} {config.app_version}"
    )
    parser.add_argument("--db-url", dest="db_url", help="Database URL (default: from config)")
    parser.add_argument(
        "--convert-units",
        action="store_true",
        help="Convert recipe units to base units instead of using quantities as written",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log service operations")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("init", help="Create database tables")
    subparsers.add_parser("seed", help="Load the sample dataset")
    subparsers.add_parser("recompute", help="Recompute all recipe costs")
    subparsers.add_parser("list-recipes", help="List recipes with costs")

    show_parser = subparsers.add_parser("show-recipe", help="Show a recipe's line items")
    show_parser.add_argument("recipe_id", type=int, help="Recipe ID")

    subparsers.add_parser("list-purchases", help="List supplier purchases")

    price_parser = subparsers.add_parser("set-price", help="Update a purchase price")
    price_parser.add_argument("purchase_item_id", type=int, help="Purchase item ID")
    price_parser.add_argument("price", type=int, help="New price in pence")
    price_parser.add_argument("--quantity", type=float, help="New purchase quantity")
    price_parser.add_argument("--unit", help="New purchase unit")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    database = Database(args.db_url or get_config().database_url)
    converter = TableUnitConverter() if args.convert_units else None

    try:
        database.init()
        costing = CostingService(database, converter=converter)

        if args.command == "init":
            return init_database(costing)
        elif args.command == "seed":
            return seed(costing)
        elif args.command == "recompute":
            return recompute(costing)
        elif args.command == "list-recipes":
            return list_recipes(costing)
        elif args.command == "show-recipe":
            return show_recipe(costing, args.recipe_id)
        elif args.command == "list-purchases":
            return list_purchases(costing)
        elif args.command == "set-price":
            return set_price(
                costing, args.purchase_item_id, args.price, args.quantity, args.unit
            )
        else:
            print(f"Unknown command: {args.command}")
            return 1
    except ServiceError as e:
        print(f"ERROR: {e}")
        return 1
    finally:
        database.close()


if __name__ == "__main__":
    sys.exit(main())

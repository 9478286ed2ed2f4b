"""Pytest configuration and fixtures for costing engine tests."""

from types import SimpleNamespace

import pytest

from recipe_costing.services.costing_service import CostingService
from recipe_costing.services.database import Database
from recipe_costing.utils.config import reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate every test from the config singleton and environment overrides."""
    monkeypatch.delenv("RECIPE_COSTING_ENV", raising=False)
    monkeypatch.delenv("RECIPE_COSTING_DB_URL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean in-memory database for each test function.

    This fixture:
    1. Creates an in-memory SQLite Database
    2. Creates all tables
    3. Provides the database to the test
    4. Disposes of the engine after the test completes
    """
    database = Database("sqlite:///:memory:")
    database.init()

    yield database

    database.close()


@pytest.fixture(scope="function")
def db_session(test_db):
    """A session for calling service functions directly; rolled back afterwards."""
    session = test_db.get_session()

    yield session

    session.rollback()
    session.close()


@pytest.fixture(scope="function")
def costing(test_db):
    """CostingService over the test database with the default converter."""
    return CostingService(test_db)


@pytest.fixture(scope="function")
def sample_menu(costing):
    """Load the sample menu through the facade.

    Returns a namespace with:
        yogurt: the Coconut & Coriander Yogurt sub-recipe
        prawns: the Panko Coated Prawns main recipe
        ingredients: name -> Ingredient
        purchases: ingredient name -> PurchaseItem
    """
    costing.load_sample_data()

    recipes = {recipe.name: recipe for recipe in costing.list_recipes()}
    return SimpleNamespace(
        yogurt=recipes["Coconut & Coriander Yogurt"],
        prawns=recipes["Panko Coated Prawns with Coconut & Coriander Yogurt"],
        ingredients={ingredient.name: ingredient for ingredient in costing.list_ingredients()},
        purchases={item.ingredient_name: item for item in costing.list_purchase_items()},
    )


@pytest.fixture
def find_line(costing):
    """Look up a recipe's line item by its display name."""

    def _find(recipe_id, item_name):
        for line_item in costing.get_line_items(recipe_id):
            if line_item.item_name == item_name:
                return line_item
        raise AssertionError(f"No line item named {item_name!r} in recipe {recipe_id}")

    return _find

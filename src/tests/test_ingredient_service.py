"""Tests for ingredient_service."""

import pytest

from recipe_costing.models import PurchaseItem, RecipeLineItem, UnitConversion
from recipe_costing.services import ingredient_service, purchase_service, recipe_service
from recipe_costing.services.exceptions import (
    IngredientInUse,
    IngredientNotFound,
    ValidationError,
)


@pytest.fixture
def coriander(db_session):
    return ingredient_service.create_ingredient(
        db_session,
        {"name": "Fresh Coriander", "base_unit": "g", "yield_percent": 0.8, "category": "Fresh Herbs"},
    )


class TestCreateIngredient:
    def test_create(self, coriander):
        assert coriander.id is not None
        assert coriander.base_unit == "g"
        assert coriander.yield_percent == 0.8

    def test_numeric_string_yield_percent_stored_as_float(self, db_session):
        lime = ingredient_service.create_ingredient(
            db_session, {"name": "Lime", "base_unit": "each", "yield_percent": "0.9"}
        )
        assert lime.yield_percent == 0.9

    def test_defaults(self, db_session):
        salt = ingredient_service.create_ingredient(
            db_session, {"name": "  Table Salt ", "base_unit": "g", "category": "  "}
        )
        assert salt.name == "Table Salt"
        assert salt.yield_percent == 1.0
        assert salt.category is None

    def test_duplicate_name_case_insensitive(self, db_session, coriander):
        with pytest.raises(ValidationError, match="already exists"):
            ingredient_service.create_ingredient(
                db_session, {"name": "fresh coriander", "base_unit": "g"}
            )

    def test_invalid_base_unit(self, db_session):
        with pytest.raises(ValidationError):
            ingredient_service.create_ingredient(db_session, {"name": "Prawns", "base_unit": "kg"})


class TestQueries:
    def test_get_ingredient(self, db_session, coriander):
        assert ingredient_service.get_ingredient(db_session, coriander.id) is coriander

    def test_get_ingredient_not_found(self, db_session):
        with pytest.raises(IngredientNotFound) as exc:
            ingredient_service.get_ingredient(db_session, 404)
        assert exc.value.ingredient_id == 404

    def test_list_ingredients_by_name(self, db_session, coriander):
        ingredient_service.create_ingredient(db_session, {"name": "Black Pepper", "base_unit": "g"})
        names = [i.name for i in ingredient_service.list_ingredients(db_session)]
        assert names == ["Black Pepper", "Fresh Coriander"]


class TestUpdateIngredient:
    def test_update_fields(self, db_session, coriander):
        updated = ingredient_service.update_ingredient(
            db_session, coriander.id, {"yield_percent": 0.75, "category": "Herbs"}
        )
        assert updated.yield_percent == 0.75
        assert updated.category == "Herbs"

    def test_rename_refreshes_denormalized_names(self, db_session, coriander):
        purchase = purchase_service.record_purchase(
            db_session, coriander.id, "Fresh Herbs Direct", 52, 30, "g"
        )
        recipe = recipe_service.create_recipe(
            db_session, {"name": "Dip", "yield_quantity": 170, "yield_unit": "g"}
        )
        line_id = recipe_service.add_line_item(
            db_session, recipe.id, coriander.id, "ingredient", None, 15, "g"
        )

        ingredient_service.update_ingredient(db_session, coriander.id, {"name": "Coriander Leaf"})

        assert db_session.get(PurchaseItem, purchase.id).ingredient_name == "Coriander Leaf"
        assert db_session.get(RecipeLineItem, line_id).item_name == "Coriander Leaf"

    def test_unknown_field_rejected(self, db_session, coriander):
        with pytest.raises(ValidationError):
            ingredient_service.update_ingredient(db_session, coriander.id, {"slug": "coriander"})

    def test_invalid_yield_percent(self, db_session, coriander):
        with pytest.raises(ValidationError):
            ingredient_service.update_ingredient(db_session, coriander.id, {"yield_percent": 0})
        assert coriander.yield_percent == 0.8

    def test_numeric_string_yield_percent_stored_as_float(self, db_session, coriander):
        updated = ingredient_service.update_ingredient(
            db_session, coriander.id, {"yield_percent": "0.5"}
        )
        assert updated.yield_percent == 0.5

    def test_base_unit_change_reprices_purchases(self, db_session):
        oil = ingredient_service.create_ingredient(
            db_session, {"name": "Vegetable Oil", "base_unit": "ml"}
        )
        purchase = purchase_service.record_purchase(db_session, oil.id, "Cash & Carry", 100, 1, "l")
        assert purchase.cost_per_base_unit == pytest.approx(0.1)

        ingredient_service.update_ingredient(db_session, oil.id, {"base_unit": "g"})

        assert db_session.get(PurchaseItem, purchase.id).cost_per_base_unit == pytest.approx(100.0)
        assert purchase_service.cost_per_base_unit(db_session, oil.id) == pytest.approx(100.0)

    def test_not_found(self, db_session):
        with pytest.raises(IngredientNotFound):
            ingredient_service.update_ingredient(db_session, 404, {"category": "X"})


class TestDeleteIngredient:
    def test_delete_unused(self, db_session, coriander):
        assert ingredient_service.delete_ingredient(db_session, coriander.id)
        with pytest.raises(IngredientNotFound):
            ingredient_service.get_ingredient(db_session, coriander.id)

    def test_delete_with_purchase_blocked(self, db_session, coriander):
        purchase_service.record_purchase(db_session, coriander.id, "Fresh Herbs Direct", 52, 30, "g")

        with pytest.raises(IngredientInUse) as exc:
            ingredient_service.delete_ingredient(db_session, coriander.id)

        assert exc.value.dependencies == {"purchase_items": 1, "recipe_line_items": 0}
        assert "1 purchase_items" in str(exc.value)

    def test_delete_with_line_item_blocked(self, db_session, coriander):
        recipe = recipe_service.create_recipe(
            db_session, {"name": "Dip", "yield_quantity": 170, "yield_unit": "g"}
        )
        recipe_service.add_line_item(db_session, recipe.id, coriander.id, "ingredient", None, 15, "g")

        with pytest.raises(IngredientInUse):
            ingredient_service.delete_ingredient(db_session, coriander.id)

    def test_delete_removes_unit_conversions(self, db_session, coriander):
        ingredient_service.add_unit_conversion(db_session, coriander.id, "bunch", 30)
        ingredient_service.delete_ingredient(db_session, coriander.id)
        assert db_session.query(UnitConversion).count() == 0


class TestUnitConversions:
    def test_add_unit_conversion(self, db_session, coriander):
        conversion = ingredient_service.add_unit_conversion(
            db_session, coriander.id, " Bunch ", 30, "supermarket bunch"
        )
        assert conversion.unit_name == "bunch"
        assert conversion.to_base_unit_factor == 30.0

    def test_duplicate_unit_rejected(self, db_session, coriander):
        ingredient_service.add_unit_conversion(db_session, coriander.id, "bunch", 30)
        with pytest.raises(ValidationError, match="already defined"):
            ingredient_service.add_unit_conversion(db_session, coriander.id, "BUNCH", 25)

    def test_invalid_factor(self, db_session, coriander):
        with pytest.raises(ValidationError):
            ingredient_service.add_unit_conversion(db_session, coriander.id, "bunch", 0)

    def test_unknown_ingredient(self, db_session):
        with pytest.raises(IngredientNotFound):
            ingredient_service.add_unit_conversion(db_session, 404, "bunch", 30)

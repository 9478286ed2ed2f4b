"""
Tests for recipe_service.

Tests cover:
- Recipe CRUD and validation (including engine-owned cost fields)
- Line item add/update/delete and reference checks
- Reverse lookups and delete protection for sub-recipes
"""

import pytest

from recipe_costing.models import RecipeLineItem
from recipe_costing.services import ingredient_service, recipe_service
from recipe_costing.services.exceptions import (
    IngredientNotFound,
    LineItemNotFound,
    RecipeInUse,
    RecipeNotFound,
    ValidationError,
)


def _create(db_session, name, is_sub_recipe=False, yield_quantity=4, yield_unit="portions"):
    return recipe_service.create_recipe(
        db_session,
        {
            "name": name,
            "is_sub_recipe": is_sub_recipe,
            "yield_quantity": yield_quantity,
            "yield_unit": yield_unit,
        },
    )


@pytest.fixture
def lime(db_session):
    return ingredient_service.create_ingredient(db_session, {"name": "Lime", "base_unit": "each"})


@pytest.fixture
def dip(db_session):
    return _create(db_session, "Coconut & Coriander Yogurt", True, 170, "g")


@pytest.fixture
def prawns(db_session):
    return _create(db_session, "Panko Coated Prawns")


class TestCreateRecipe:
    def test_create(self, db_session):
        recipe = recipe_service.create_recipe(
            db_session,
            {
                "name": " Panko Coated Prawns ",
                "description": "Crispy prawns",
                "yield_quantity": 4,
                "yield_unit": "portions",
                "prep_time": 15,
                "cook_time": 10,
                "image_url": "",
            },
        )
        assert recipe.id is not None
        assert recipe.name == "Panko Coated Prawns"
        assert recipe.is_sub_recipe is False
        assert recipe.image_url is None
        assert recipe.total_cost == 0.0
        assert recipe.cost_per_portion == 0.0

    def test_numeric_strings_stored_as_numbers(self, db_session):
        recipe = recipe_service.create_recipe(
            db_session,
            {"name": "Dip", "yield_quantity": "170", "yield_unit": "g", "prep_time": "5"},
        )
        assert recipe.yield_quantity == 170.0
        assert recipe.prep_time == 5

    @pytest.mark.parametrize(
        "overrides",
        [
            {"yield_quantity": 0},
            {"yield_quantity": -1},
            {"name": "  "},
            {"prep_time": -5},
            {"prep_time": 12.5},
            {"total_cost": 100.0},
            {"cost_per_portion": 25.0},
            {"category": "Starters"},
        ],
    )
    def test_invalid_recipe_rejected(self, db_session, overrides):
        data = {"name": "Prawns", "yield_quantity": 4, "yield_unit": "portions"}
        data.update(overrides)
        with pytest.raises(ValidationError):
            recipe_service.create_recipe(db_session, data)
        assert recipe_service.list_recipes(db_session) == []


class TestRecipeQueries:
    def test_get_recipe_not_found(self, db_session):
        with pytest.raises(RecipeNotFound) as exc:
            recipe_service.get_recipe(db_session, 404)
        assert exc.value.recipe_id == 404

    def test_list_main_recipes_first(self, db_session):
        _create(db_session, "Yogurt Dip", is_sub_recipe=True)
        _create(db_session, "Prawns")
        _create(db_session, "Aioli", is_sub_recipe=True)
        _create(db_session, "Burger")

        names = [r.name for r in recipe_service.list_recipes(db_session)]
        assert names == ["Burger", "Prawns", "Aioli", "Yogurt Dip"]

    def test_get_recipes_using(self, db_session, dip, prawns):
        recipe_service.add_line_item(db_session, prawns.id, dip.id, "recipe", None, 1, "batch")

        assert recipe_service.get_recipes_using(db_session, dip.id) == [prawns]
        assert recipe_service.get_recipes_using(db_session, prawns.id) == []


class TestUpdateRecipe:
    def test_update_fields(self, db_session, prawns):
        updated = recipe_service.update_recipe(
            db_session, prawns.id, {"yield_quantity": 6, "description": "Serves six"}
        )
        assert updated.yield_quantity == 6
        assert updated.description == "Serves six"

    def test_numeric_strings_stored_as_numbers(self, db_session, prawns):
        updated = recipe_service.update_recipe(
            db_session, prawns.id, {"yield_quantity": "170", "prep_time": "15", "cook_time": 10.0}
        )
        assert updated.yield_quantity == 170.0
        assert updated.prep_time == 15
        assert isinstance(updated.cook_time, int)

    def test_zero_yield_rejected(self, db_session, prawns):
        with pytest.raises(ValidationError):
            recipe_service.update_recipe(db_session, prawns.id, {"yield_quantity": 0})
        assert prawns.yield_quantity == 4

    def test_cost_fields_rejected(self, db_session, prawns):
        with pytest.raises(ValidationError, match="computed"):
            recipe_service.update_recipe(db_session, prawns.id, {"total_cost": 1.0})

    def test_not_found(self, db_session):
        with pytest.raises(RecipeNotFound):
            recipe_service.update_recipe(db_session, 404, {"name": "Ghost"})

    def test_rename_refreshes_parent_line_names(self, db_session, dip, prawns):
        line_id = recipe_service.add_line_item(
            db_session, prawns.id, dip.id, "recipe", None, 1, "batch"
        )

        recipe_service.update_recipe(db_session, dip.id, {"name": "Coriander Dip"})

        assert db_session.get(RecipeLineItem, line_id).item_name == "Coriander Dip"


class TestDeleteRecipe:
    def test_delete_cascades_line_items(self, db_session, dip, lime):
        recipe_service.add_line_item(db_session, dip.id, lime.id, "ingredient", None, 0.5, "each")

        assert recipe_service.delete_recipe(db_session, dip.id)

        assert db_session.query(RecipeLineItem).count() == 0
        with pytest.raises(RecipeNotFound):
            recipe_service.get_recipe(db_session, dip.id)

    def test_delete_sub_recipe_in_use_blocked(self, db_session, dip, prawns):
        recipe_service.add_line_item(db_session, prawns.id, dip.id, "recipe", None, 1, "batch")

        with pytest.raises(RecipeInUse) as exc:
            recipe_service.delete_recipe(db_session, dip.id)

        assert exc.value.parent_names == ["Panko Coated Prawns"]


class TestAddLineItem:
    def test_add_ingredient_line(self, db_session, dip, lime):
        line_id = recipe_service.add_line_item(
            db_session, dip.id, lime.id, "ingredient", "", 0.5, "each", notes="juiced"
        )

        line_item = recipe_service.get_line_item(db_session, line_id)
        assert line_item.item_name == "Lime"
        assert line_item.notes == "juiced"
        assert line_item.cost == 0.0

    def test_numeric_string_quantity_stored_as_float(self, db_session, dip, lime):
        line_id = recipe_service.add_line_item(
            db_session, dip.id, lime.id, "ingredient", None, "2", "each"
        )
        assert recipe_service.get_line_item(db_session, line_id).quantity == 2.0

    def test_explicit_item_name_kept(self, db_session, dip, lime):
        line_id = recipe_service.add_line_item(
            db_session, dip.id, lime.id, "ingredient", "Lime juice", 0.5, "each"
        )
        assert recipe_service.get_line_item(db_session, line_id).item_name == "Lime juice"

    def test_add_sub_recipe_line(self, db_session, dip, prawns):
        line_id = recipe_service.add_line_item(
            db_session, prawns.id, dip.id, "recipe", None, 1, "batch"
        )
        line_item = recipe_service.get_line_item(db_session, line_id)
        assert line_item.is_recipe
        assert line_item.item_name == "Coconut & Coriander Yogurt"

    def test_get_line_items_in_insertion_order(self, db_session, dip, lime):
        salt = ingredient_service.create_ingredient(db_session, {"name": "Salt", "base_unit": "g"})
        first = recipe_service.add_line_item(db_session, dip.id, lime.id, "ingredient", None, 1, "each")
        second = recipe_service.add_line_item(db_session, dip.id, salt.id, "ingredient", None, 1, "g")

        assert [li.id for li in recipe_service.get_line_items(db_session, dip.id)] == [first, second]

    def test_get_line_items_unknown_recipe(self, db_session):
        with pytest.raises(RecipeNotFound):
            recipe_service.get_line_items(db_session, 404)

    def test_self_reference_rejected(self, db_session, dip):
        with pytest.raises(ValidationError, match="itself"):
            recipe_service.add_line_item(db_session, dip.id, dip.id, "recipe", None, 1, "batch")

    def test_unknown_owner(self, db_session, lime):
        with pytest.raises(RecipeNotFound):
            recipe_service.add_line_item(db_session, 404, lime.id, "ingredient", None, 1, "each")

    def test_unknown_ingredient(self, db_session, dip):
        with pytest.raises(IngredientNotFound):
            recipe_service.add_line_item(db_session, dip.id, 404, "ingredient", None, 1, "g")

    def test_unknown_sub_recipe(self, db_session, prawns):
        with pytest.raises(RecipeNotFound):
            recipe_service.add_line_item(db_session, prawns.id, 404, "recipe", None, 1, "batch")

    @pytest.mark.parametrize(
        "item_type,quantity",
        [("product", 1), ("ingredient", 0), ("ingredient", -1)],
    )
    def test_invalid_line_rejected(self, db_session, dip, lime, item_type, quantity):
        with pytest.raises(ValidationError):
            recipe_service.add_line_item(db_session, dip.id, lime.id, item_type, None, quantity, "each")
        assert db_session.query(RecipeLineItem).count() == 0


class TestUpdateLineItem:
    @pytest.fixture
    def line_id(self, db_session, dip, lime):
        return recipe_service.add_line_item(db_session, dip.id, lime.id, "ingredient", None, 0.5, "each")

    def test_update_quantity(self, db_session, line_id):
        updated = recipe_service.update_line_item(db_session, line_id, {"quantity": 1.5, "notes": "zest"})
        assert updated.quantity == 1.5
        assert updated.notes == "zest"

    def test_numeric_string_quantity_stored_as_float(self, db_session, line_id):
        updated = recipe_service.update_line_item(db_session, line_id, {"quantity": "1.5"})
        assert updated.quantity == 1.5

    def test_retarget_refreshes_name(self, db_session, line_id):
        salt = ingredient_service.create_ingredient(db_session, {"name": "Salt", "base_unit": "g"})
        updated = recipe_service.update_line_item(
            db_session, line_id, {"item_id": salt.id, "unit": "g"}
        )
        assert updated.item_name == "Salt"

    def test_retarget_to_own_recipe_rejected(self, db_session, dip, line_id):
        with pytest.raises(ValidationError):
            recipe_service.update_line_item(
                db_session, line_id, {"item_type": "recipe", "item_id": dip.id}
            )

    def test_retarget_to_missing_ingredient(self, db_session, line_id):
        with pytest.raises(IngredientNotFound):
            recipe_service.update_line_item(db_session, line_id, {"item_id": 404})

    @pytest.mark.parametrize(
        "updates",
        [{"quantity": 0}, {"cost": 12.0}, {"recipe_id": 2}, {"unit": ""}, {"colour": "green"}],
    )
    def test_invalid_update_rejected(self, db_session, line_id, updates):
        with pytest.raises(ValidationError):
            recipe_service.update_line_item(db_session, line_id, updates)
        assert recipe_service.get_line_item(db_session, line_id).quantity == 0.5

    def test_unknown_line_item(self, db_session):
        with pytest.raises(LineItemNotFound):
            recipe_service.update_line_item(db_session, 404, {"quantity": 1})


class TestDeleteLineItem:
    def test_delete(self, db_session, dip, lime):
        line_id = recipe_service.add_line_item(db_session, dip.id, lime.id, "ingredient", None, 1, "each")

        assert recipe_service.delete_line_item(db_session, line_id)

        assert recipe_service.get_line_items(db_session, dip.id) == []
        assert dip.line_items == []

    def test_delete_unknown(self, db_session):
        with pytest.raises(LineItemNotFound) as exc:
            recipe_service.delete_line_item(db_session, 404)
        assert exc.value.line_item_id == 404

"""
Tests for purchase_service.

Tests cover:
- Cost per base unit derivation (kg -> g, l -> ml, everything else as-is)
- Validation before any write
- Partial updates recomputing from merged values
- Supplier selection tie-break
"""

import pytest

from recipe_costing.models import PurchaseItem
from recipe_costing.services import ingredient_service, purchase_service
from recipe_costing.services.exceptions import (
    IngredientNotFound,
    PurchaseItemNotFound,
    ValidationError,
)


@pytest.fixture
def yogurt(db_session):
    return ingredient_service.create_ingredient(
        db_session, {"name": "Coconut Yogurt", "base_unit": "g"}
    )


@pytest.fixture
def oil(db_session):
    return ingredient_service.create_ingredient(
        db_session, {"name": "Vegetable Oil", "base_unit": "ml"}
    )


@pytest.fixture
def eggs(db_session):
    return ingredient_service.create_ingredient(
        db_session, {"name": "Large Eggs", "base_unit": "each"}
    )


class TestRecordPurchase:
    def test_cost_per_base_unit_same_unit(self, db_session, yogurt):
        item = purchase_service.record_purchase(
            db_session, yogurt.id, "Dairy Alternatives Co", 275, 350, "g"
        )
        assert item.cost_per_base_unit == pytest.approx(0.785714, rel=1e-5)
        assert item.ingredient_name == "Coconut Yogurt"
        assert item.purchase_price == 275

    def test_kilograms_converted_to_grams(self, db_session, yogurt):
        item = purchase_service.record_purchase(db_session, yogurt.id, "Wholesale", 95, 1.5, "kg")
        assert item.cost_per_base_unit == pytest.approx(95 / 1500)

    def test_litres_converted_to_millilitres(self, db_session, oil):
        item = purchase_service.record_purchase(
            db_session, oil.id, "Cooking Essentials", 149, 1, "l"
        )
        assert item.cost_per_base_unit == pytest.approx(0.149)

    def test_other_units_assumed_base(self, db_session, eggs):
        item = purchase_service.record_purchase(db_session, eggs.id, "Farm Fresh", 179, 6, "box")
        assert item.cost_per_base_unit == pytest.approx(179 / 6)

    def test_kg_not_converted_for_count_ingredient(self, db_session, eggs):
        item = purchase_service.record_purchase(db_session, eggs.id, "Farm Fresh", 180, 2, "kg")
        assert item.cost_per_base_unit == pytest.approx(90)

    def test_numeric_strings_stored_as_numbers(self, db_session, yogurt):
        item = purchase_service.record_purchase(db_session, yogurt.id, "Dairy", "275", "350", "g")
        assert item.purchase_price == 275
        assert isinstance(item.purchase_price, int)
        assert item.purchase_quantity == 350.0
        assert item.cost_per_base_unit == pytest.approx(275 / 350)

    def test_zero_price_allowed(self, db_session, yogurt):
        item = purchase_service.record_purchase(db_session, yogurt.id, "Sample", 0, 100, "g")
        assert item.cost_per_base_unit == 0.0

    @pytest.mark.parametrize(
        "price,quantity",
        [(-1, 100), (2.5, 100), (100, 0), (100, -3)],
    )
    def test_invalid_values_rejected_without_write(self, db_session, yogurt, price, quantity):
        with pytest.raises(ValidationError):
            purchase_service.record_purchase(db_session, yogurt.id, "Dairy", price, quantity, "g")
        assert db_session.query(PurchaseItem).count() == 0

    def test_unknown_ingredient(self, db_session):
        with pytest.raises(IngredientNotFound):
            purchase_service.record_purchase(db_session, 404, "Dairy", 100, 100, "g")


class TestUpdatePurchase:
    @pytest.fixture
    def item(self, db_session, yogurt):
        return purchase_service.record_purchase(
            db_session, yogurt.id, "Dairy Alternatives Co", 275, 350, "g"
        )

    def test_price_change_recomputes(self, db_session, item):
        updated = purchase_service.update_purchase(db_session, item.id, {"purchase_price": 350})
        assert updated.purchase_price == 350
        assert updated.cost_per_base_unit == pytest.approx(1.0)

    def test_quantity_and_unit_merge_with_existing_price(self, db_session, item):
        updated = purchase_service.update_purchase(
            db_session, item.id, {"purchase_quantity": 0.5, "purchase_unit": "kg"}
        )
        assert updated.cost_per_base_unit == pytest.approx(275 / 500)

    def test_numeric_strings_stored_as_numbers(self, db_session, item):
        updated = purchase_service.update_purchase(
            db_session, item.id, {"purchase_price": "350", "purchase_quantity": "0.5", "purchase_unit": "kg"}
        )
        assert updated.purchase_price == 350
        assert isinstance(updated.purchase_price, int)
        assert updated.purchase_quantity == 0.5
        assert updated.cost_per_base_unit == pytest.approx(350 / 500)

    def test_supplier_change_keeps_cost(self, db_session, item):
        before = item.cost_per_base_unit
        updated = purchase_service.update_purchase(
            db_session, item.id, {"supplier_name": "Coconut Collective"}
        )
        assert updated.supplier_name == "Coconut Collective"
        assert updated.cost_per_base_unit == before

    def test_invalid_price_leaves_item_unchanged(self, db_session, item):
        with pytest.raises(ValidationError):
            purchase_service.update_purchase(db_session, item.id, {"purchase_price": -10})
        assert item.purchase_price == 275

    def test_derived_field_rejected(self, db_session, item):
        with pytest.raises(ValidationError):
            purchase_service.update_purchase(db_session, item.id, {"cost_per_base_unit": 0.1})

    def test_unknown_field_rejected(self, db_session, item):
        with pytest.raises(ValidationError):
            purchase_service.update_purchase(db_session, item.id, {"ingredient_id": 2})

    def test_unknown_id(self, db_session):
        with pytest.raises(PurchaseItemNotFound):
            purchase_service.update_purchase(db_session, 404, {"purchase_price": 1})

    def test_unresolved_base_unit_keeps_derived_value(self, db_session, item, monkeypatch):
        monkeypatch.setattr(purchase_service, "_resolve_base_unit", lambda session, ingredient_id: None)
        before = item.cost_per_base_unit

        updated = purchase_service.update_purchase(db_session, item.id, {"purchase_price": 999})

        assert updated.purchase_price == 999
        assert updated.cost_per_base_unit == before


class TestQueries:
    def test_get_purchase_not_found(self, db_session):
        with pytest.raises(PurchaseItemNotFound):
            purchase_service.get_purchase(db_session, 404)

    def test_list_ordered_by_ingredient_then_supplier(self, db_session, yogurt, oil):
        purchase_service.record_purchase(db_session, yogurt.id, "Zest Dairy", 300, 350, "g")
        purchase_service.record_purchase(db_session, oil.id, "Cooking Essentials", 149, 1000, "ml")
        purchase_service.record_purchase(db_session, yogurt.id, "Alpha Dairy", 275, 350, "g")

        listed = [
            (item.ingredient_name, item.supplier_name)
            for item in purchase_service.list_purchase_items(db_session)
        ]
        assert listed == [
            ("Coconut Yogurt", "Alpha Dairy"),
            ("Coconut Yogurt", "Zest Dairy"),
            ("Vegetable Oil", "Cooking Essentials"),
        ]

    def test_delete_purchase(self, db_session, yogurt):
        item = purchase_service.record_purchase(db_session, yogurt.id, "Dairy", 275, 350, "g")
        assert purchase_service.delete_purchase(db_session, item.id)
        assert purchase_service.cost_per_base_unit(db_session, yogurt.id) is None

    def test_delete_unknown(self, db_session):
        with pytest.raises(PurchaseItemNotFound):
            purchase_service.delete_purchase(db_session, 404)


class TestCostPerBaseUnit:
    def test_none_without_purchases(self, db_session, yogurt):
        assert purchase_service.cost_per_base_unit(db_session, yogurt.id) is None

    def test_cheapest_purchase_wins(self, db_session, yogurt):
        purchase_service.record_purchase(db_session, yogurt.id, "Pricey", 500, 350, "g")
        cheap = purchase_service.record_purchase(db_session, yogurt.id, "Cheap", 100, 350, "g")

        assert purchase_service.select_purchase_item(db_session, yogurt.id) is cheap
        assert purchase_service.cost_per_base_unit(db_session, yogurt.id) == pytest.approx(100 / 350)

    def test_equal_cost_falls_back_to_lowest_id(self, db_session, yogurt):
        first = purchase_service.record_purchase(db_session, yogurt.id, "Beta", 200, 1, "kg")
        purchase_service.record_purchase(db_session, yogurt.id, "Alpha", 200, 1000, "g")

        assert purchase_service.select_purchase_item(db_session, yogurt.id) is first

    def test_calculate_rejects_non_positive_quantity(self):
        with pytest.raises(ValidationError):
            purchase_service.calculate_cost_per_base_unit(100, 0, "g", "g")

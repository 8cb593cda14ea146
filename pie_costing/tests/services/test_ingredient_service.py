"""Tests for the ingredient catalog service."""

from decimal import Decimal

import pytest

from pie_costing.services import ingredient_service, recipe_service
from pie_costing.services.cost_calculator import IngredientCost
from pie_costing.services.exceptions import (
    DuplicateIngredient,
    IngredientInUse,
    IngredientNotFound,
    IngredientReferenceError,
    ValidationError,
)


class TestCreateIngredient:
    def test_create_sets_slug_and_defaults(self, test_db):
        ingredient = ingredient_service.create_ingredient(
            {"name": "  Master Puff ", "unit_of_measure": "kg", "cost_per_unit": 42}
        )

        assert ingredient.id is not None
        assert ingredient.name == "Master Puff"
        assert ingredient.slug == "master_puff"
        assert ingredient.category == "Other"
        assert ingredient.cost_per_unit == Decimal("42")

    def test_create_requires_name_unit_and_cost(self, test_db):
        with pytest.raises(ValidationError) as exc_info:
            ingredient_service.create_ingredient({})

        errors = exc_info.value.errors
        assert "Name: This field is required" in errors
        assert "Unit: This field is required" in errors
        assert "Cost per Unit: Please enter a valid number" in errors

    def test_create_rejects_negative_cost(self, test_db):
        with pytest.raises(ValidationError, match="Cost per Unit: Must be zero or greater"):
            ingredient_service.create_ingredient(
                {"name": "Salt", "unit_of_measure": "kg", "cost_per_unit": -1}
            )

    def test_create_rejects_unknown_unit(self, test_db):
        with pytest.raises(ValidationError, match="Unit: Invalid unit type"):
            ingredient_service.create_ingredient(
                {"name": "Salt", "unit_of_measure": "bushel", "cost_per_unit": 1}
            )

    def test_duplicate_name_is_case_insensitive(self, sample_flour):
        with pytest.raises(DuplicateIngredient):
            ingredient_service.create_ingredient(
                {"name": "CAKE  flour", "unit_of_measure": "kg", "cost_per_unit": 2}
            )


class TestQueries:
    def test_get_by_id(self, sample_flour):
        found = ingredient_service.get_ingredient(sample_flour.id)
        assert found.name == "Cake Flour"

    def test_get_missing_id(self, test_db):
        with pytest.raises(IngredientNotFound, match="ID 999"):
            ingredient_service.get_ingredient(999)

    def test_get_by_name_ignores_case(self, sample_flour):
        assert ingredient_service.get_ingredient_by_name("cake FLOUR").id == sample_flour.id

    def test_get_by_missing_name(self, test_db):
        with pytest.raises(IngredientNotFound, match="'Saffron'"):
            ingredient_service.get_ingredient_by_name("Saffron")

    def test_list_filters(self, sample_flour, sample_mince):
        assert [i.name for i in ingredient_service.list_ingredients()] == [
            "Beef Mince",
            "Cake Flour",
        ]
        assert [i.name for i in ingredient_service.list_ingredients(name_search="flo")] == [
            "Cake Flour"
        ]
        assert [i.name for i in ingredient_service.list_ingredients(category="Meat")] == [
            "Beef Mince"
        ]


class TestUpdateIngredient:
    def test_partial_update(self, sample_flour):
        updated = ingredient_service.update_ingredient(sample_flour.id, {"cost_per_unit": "1.75"})

        assert updated.cost_per_unit == Decimal("1.75")
        assert updated.unit_of_measure == "kg"
        assert updated.supplier == "Makro"

    def test_rename_updates_slug(self, sample_flour):
        updated = ingredient_service.update_ingredient(sample_flour.id, {"name": "Bread Flour"})
        assert updated.slug == "bread_flour"

    def test_rename_onto_existing_name(self, sample_flour, sample_mince):
        with pytest.raises(DuplicateIngredient):
            ingredient_service.update_ingredient(sample_mince.id, {"name": "cake flour"})

    def test_unknown_field_rejected(self, sample_flour):
        with pytest.raises(ValidationError, match="slug: Field cannot be updated"):
            ingredient_service.update_ingredient(sample_flour.id, {"slug": "x"})

    def test_update_missing(self, test_db):
        with pytest.raises(IngredientNotFound):
            ingredient_service.update_ingredient(999, {"cost_per_unit": 1})


class TestDeleteIngredient:
    def test_delete_unused(self, sample_flour):
        assert ingredient_service.delete_ingredient(sample_flour.id) is True
        with pytest.raises(IngredientNotFound):
            ingredient_service.get_ingredient(sample_flour.id)

    def test_delete_blocked_while_referenced(self, sample_recipe, sample_flour):
        with pytest.raises(IngredientInUse) as exc_info:
            ingredient_service.delete_ingredient(sample_flour.id)

        assert exc_info.value.recipe_count == 1
        assert ingredient_service.count_recipe_references(sample_flour.id) == 1
        # Recipe still calculates
        assert recipe_service.get_recipe(sample_recipe.id).selling_price == Decimal("7.21")


class TestDeleteIngredients:
    def test_deletes_unused_and_reports_the_rest(self, sample_recipe, sample_flour, sample_mince):
        report = ingredient_service.delete_ingredients([sample_mince.id, sample_flour.id, 99])

        assert report["deleted"] == [sample_mince.id]
        assert report["in_use"] == [
            {"ingredient_id": sample_flour.id, "name": "Cake Flour", "recipe_count": 1}
        ]
        assert report["not_found"] == [99]
        assert [i.name for i in ingredient_service.list_ingredients()] == ["Cake Flour"]

    def test_deletes_all_when_none_are_used(self, sample_flour, sample_mince):
        report = ingredient_service.delete_ingredients([sample_flour.id, sample_mince.id])

        assert report == {
            "deleted": [sample_flour.id, sample_mince.id],
            "in_use": [],
            "not_found": [],
        }
        assert ingredient_service.list_ingredients() == []

    def test_duplicate_ids_are_deleted_once(self, sample_flour):
        report = ingredient_service.delete_ingredients([sample_flour.id, sample_flour.id])
        assert report["deleted"] == [sample_flour.id]

    @pytest.mark.parametrize(
        "ids,message",
        [
            ([], "Ingredient IDs: At least one entry is required"),
            (None, "Ingredient IDs: At least one entry is required"),
            ([1, "two"], "Ingredient IDs: 'two' is not a valid ID"),
        ],
    )
    def test_invalid_ids_rejected(self, test_db, ids, message):
        with pytest.raises(ValidationError) as exc_info:
            ingredient_service.delete_ingredients(ids)
        assert exc_info.value.errors == [message]


class TestResolveIngredientCosts:
    def test_resolves_unit_and_cost(self, test_db, sample_flour, sample_mince):
        session = test_db()
        costs = ingredient_service.resolve_ingredient_costs(
            [sample_flour.id, sample_mince.id, sample_flour.id], session
        )

        assert costs == {
            sample_flour.id: IngredientCost("kg", Decimal("1.50")),
            sample_mince.id: IngredientCost("kg", Decimal("89.99")),
        }

    def test_missing_id_aborts(self, test_db, sample_flour):
        session = test_db()
        with pytest.raises(IngredientReferenceError) as exc_info:
            ingredient_service.resolve_ingredient_costs([sample_flour.id, 404], session)
        assert exc_info.value.ingredient_id == 404

    def test_empty(self, test_db):
        assert ingredient_service.resolve_ingredient_costs([], test_db()) == {}

"""Tests for input validation functions."""

from decimal import Decimal

import pytest

from pie_costing.utils.validators import (
    sanitize_string,
    validate_ingredient_data,
    validate_decimal_places,
    validate_labor_data,
    validate_labor_inputs,
    validate_positive_integer,
    validate_recipe_data,
    validate_recipe_ingredient_lines,
    validate_unit,
)


def valid_recipe():
    return {
        "pie_name": "Cornish Pies",
        "variant": "Standard",
        "batch_size": 10,
        "labor_hourly_rate": 25,
        "markup_percentage": 10,
        "ingredients": [{"ingredient_id": 1, "quantity": 2, "unit": "kg"}],
        "labor_inputs": [{"workers": 1, "hours_per_worker": 2.5}],
    }


class TestFieldValidators:
    @pytest.mark.parametrize("value", [1, 10.0, "24", 1000000])
    def test_positive_integer_accepts(self, value):
        assert validate_positive_integer(value, "Batch Size") == (True, "")

    @pytest.mark.parametrize(
        "value,message",
        [
            (0, "Batch Size: Must be greater than zero"),
            (-2, "Batch Size: Must be greater than zero"),
            (2.5, "Batch Size: Please enter a whole number"),
            ("ten", "Batch Size: Please enter a valid number"),
            (None, "Batch Size: Please enter a valid number"),
            (True, "Batch Size: Please enter a valid number"),
            (float("nan"), "Batch Size: Please enter a valid number"),
        ],
    )
    def test_positive_integer_rejects(self, value, message):
        assert validate_positive_integer(value, "Batch Size") == (False, message)

    @pytest.mark.parametrize("value", [1, "2.5", "0.0013", "1.50000", Decimal("12.3400"), 1e-4])
    def test_decimal_places_accepts(self, value):
        assert validate_decimal_places(value, field_name="Quantity") == (True, "")

    @pytest.mark.parametrize("value", ["0.00125", 0.00001, Decimal("1.23456")])
    def test_decimal_places_rejects(self, value):
        assert validate_decimal_places(value, field_name="Quantity") == (
            False,
            "Quantity: Must have at most 4 decimal places",
        )

    def test_unit_is_case_insensitive(self):
        assert validate_unit("KG") == (True, "")
        assert validate_unit("furlong") == (False, "Unit: Invalid unit type")

    def test_sanitize_string(self):
        assert sanitize_string("  Makro ") == "Makro"
        assert sanitize_string("   ") is None
        assert sanitize_string(None) is None


class TestIngredientData:
    def test_valid(self):
        assert validate_ingredient_data(
            {"name": "Salt", "unit_of_measure": "kg", "cost_per_unit": 0}
        ) == (True, [])

    def test_cost_finer_than_stored_scale(self):
        assert validate_ingredient_data(
            {"name": "Saffron", "unit_of_measure": "g", "cost_per_unit": "0.12345"}
        ) == (False, ["Cost per Unit: Must have at most 4 decimal places"])

    def test_partial_only_checks_present_fields(self):
        assert validate_ingredient_data({"cost_per_unit": "2.5"}, partial=True) == (True, [])

    def test_invalid_category(self):
        is_valid, errors = validate_ingredient_data(
            {"name": "Salt", "unit_of_measure": "kg", "cost_per_unit": 1, "category": "Bakery"},
        )
        assert not is_valid
        assert errors[0].startswith("Category: Invalid category")


class TestRecipeData:
    def test_valid(self):
        assert validate_recipe_data(valid_recipe()) == (True, [])

    def test_collects_every_error(self):
        data = valid_recipe()
        data.update(pie_name="", batch_size=0, labor_hourly_rate="x", markup_percentage=-1)

        is_valid, errors = validate_recipe_data(data)

        assert not is_valid
        assert errors == [
            "Pie Name: This field is required",
            "Batch Size: Must be greater than zero",
            "Labor Hourly Rate: Please enter a valid number",
            "Markup Percentage: Must be zero or greater",
        ]

    def test_ingredient_lines_name_their_position(self):
        errors = validate_recipe_ingredient_lines(
            [
                {"ingredient_id": 1, "quantity": 1, "unit": "kg"},
                {"ingredient_id": 0, "quantity": "lots", "unit": ""},
                "flour",
            ]
        )

        assert errors == [
            "Ingredient line 2: Ingredient: Must be greater than zero",
            "Ingredient line 2: Quantity: Please enter a valid number",
            "Ingredient line 2: Unit: This field is required",
            "Ingredient line 3: This field is required",
        ]

    def test_empty_lists(self):
        assert validate_recipe_ingredient_lines(None) == [
            "Ingredients: At least one entry is required"
        ]
        assert validate_labor_inputs([]) == ["Labor Inputs: At least one entry is required"]

    def test_labor_inputs(self):
        assert validate_labor_inputs(
            [{"workers": 0, "hours_per_worker": 1}, {"workers": 2, "hours_per_worker": -1}]
        ) == [
            "Labor input 1: Workers: Must be greater than zero",
            "Labor input 2: Hours per Worker: Must be zero or greater",
        ]

    def test_labor_input_upper_bounds(self):
        assert validate_labor_inputs(
            [{"workers": 1001, "hours_per_worker": 1}, {"workers": 1, "hours_per_worker": 10001}]
        ) == [
            "Labor input 1: Workers: Must be 1000 or less",
            "Labor input 2: Hours per Worker: Must be 10000 or less",
        ]

    def test_markup_upper_bound(self):
        data = valid_recipe()
        data["markup_percentage"] = 10001
        assert validate_recipe_data(data) == (False, ["Markup Percentage: Must be 10000 or less"])

    def test_huge_ingredient_id(self):
        errors = validate_recipe_ingredient_lines(
            [{"ingredient_id": 10**30, "quantity": 1, "unit": "kg"}]
        )
        assert errors == [f"Ingredient line 1: Ingredient: Must be {2**63 - 1} or less"]


class TestLaborData:
    def test_valid(self):
        assert validate_labor_data(
            {"pie_name": "Cornish Pies", "cost_per_hour": 30, "minutes_per_pie": 15}
        ) == (True, [])

    def test_bounds(self):
        is_valid, errors = validate_labor_data(
            {"pie_name": "Cornish Pies", "cost_per_hour": "30.123456", "minutes_per_pie": 100001}
        )
        assert not is_valid
        assert errors == [
            "Cost per Hour: Must have at most 4 decimal places",
            "Minutes per Pie: Must be 100000 or less",
        ]

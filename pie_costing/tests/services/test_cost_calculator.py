"""Tests for the recipe cost calculation engine.

The calculator is pure, so these tests need no database.
"""

from decimal import Decimal

import pytest

from pie_costing.services.cost_calculator import (
    CalculationRequest,
    IngredientCost,
    IngredientLine,
    LaborInput,
    build_calculation_request,
    calculate_labor_cost_per_pie,
    calculate_recipe_costs,
    round_money,
    to_decimal,
    total_labor_hours,
)
from pie_costing.services.exceptions import IngredientReferenceError, ValidationError

FLOUR_ID = 1
COSTS = {FLOUR_ID: IngredientCost("kg", Decimal("1.50"))}


def make_request(
    quantity=2,
    labor_inputs=None,
    hourly_rate=25,
    batch_size=10,
    markup=10,
    ingredient_id=FLOUR_ID,
):
    if labor_inputs is None:
        labor_inputs = [{"workers": 1, "hours_per_worker": 2.5}]
    return build_calculation_request(
        ingredients=[{"ingredient_id": ingredient_id, "quantity": quantity, "unit": "kg"}],
        labor_inputs=labor_inputs,
        labor_hourly_rate=hourly_rate,
        batch_size=batch_size,
        markup_percentage=markup,
    )


# =============================================================================
# Reference scenarios
# =============================================================================


class TestReferenceScenarios:
    def test_base_scenario(self):
        """2kg flour, 2.5 labor hours at R25, batch of 10, 10% markup."""
        result = calculate_recipe_costs(make_request(), COSTS)

        assert result.total_ingredient_cost == Decimal("3.00")
        assert result.total_labor_cost == Decimal("62.50")
        assert result.total_batch_cost == Decimal("65.50")
        assert result.cost_per_pie == Decimal("6.55")
        # 7.205 rounds half-up
        assert result.selling_price == Decimal("7.21")

    def test_markup_change(self):
        result = calculate_recipe_costs(make_request(markup=20), COSTS)

        assert result.cost_per_pie == Decimal("6.55")
        assert result.selling_price == Decimal("7.86")

    def test_batch_size_change(self):
        result = calculate_recipe_costs(make_request(batch_size=20), COSTS)

        assert result.total_batch_cost == Decimal("65.50")
        assert result.cost_per_pie == Decimal("3.28")
        assert result.selling_price == Decimal("3.61")

    def test_labor_only_change(self):
        request = make_request(
            labor_inputs=[{"workers": 2, "hours_per_worker": 1.5}], hourly_rate=30
        )
        result = calculate_recipe_costs(request, COSTS)

        assert result.total_ingredient_cost == Decimal("3.00")
        assert result.total_labor_cost == Decimal("90.00")
        assert result.total_batch_cost == Decimal("93.00")
        assert result.cost_per_pie == Decimal("9.30")
        assert result.selling_price == Decimal("10.23")


# =============================================================================
# Properties
# =============================================================================


class TestCalculationProperties:
    def test_calculation_is_idempotent(self):
        request = make_request()
        assert calculate_recipe_costs(request, COSTS) == calculate_recipe_costs(request, COSTS)

    def test_batch_cost_is_sum_of_parts(self):
        result = calculate_recipe_costs(make_request(quantity="1.337"), COSTS)
        assert result.total_batch_cost == result.total_ingredient_cost + result.total_labor_cost

    def test_ingredient_cost_is_linear_in_quantity(self):
        single = calculate_recipe_costs(make_request(quantity=2), COSTS)
        doubled = calculate_recipe_costs(make_request(quantity=4), COSTS)
        assert doubled.total_ingredient_cost == single.total_ingredient_cost * 2

    @pytest.mark.parametrize("low,high", [(0, 10), (10, 20), (20, 150), (5, "5.5")])
    def test_higher_markup_raises_price(self, low, high):
        cheaper = calculate_recipe_costs(make_request(markup=low), COSTS)
        dearer = calculate_recipe_costs(make_request(markup=high), COSTS)
        assert dearer.selling_price > cheaper.selling_price

    def test_zero_markup_sells_at_cost(self):
        result = calculate_recipe_costs(make_request(markup=0), COSTS)
        assert result.selling_price == result.cost_per_pie

    def test_larger_batch_lowers_cost_per_pie(self):
        small = calculate_recipe_costs(make_request(batch_size=10), COSTS)
        large = calculate_recipe_costs(make_request(batch_size=50), COSTS)
        assert large.cost_per_pie < small.cost_per_pie
        assert large.total_batch_cost == small.total_batch_cost

    @pytest.mark.parametrize("batch_size", [1, 5, 10, 24])
    def test_doubling_batch_halves_cost_per_pie(self, batch_size):
        single = calculate_recipe_costs(make_request(batch_size=batch_size), COSTS)
        doubled = calculate_recipe_costs(make_request(batch_size=batch_size * 2), COSTS)
        assert abs(doubled.cost_per_pie - single.cost_per_pie / 2) <= Decimal("0.01")

    def test_all_figures_have_two_decimal_places(self):
        result = calculate_recipe_costs(make_request(quantity="0.333", batch_size=7), COSTS)
        for value in result.to_dict().values():
            assert value.as_tuple().exponent == -2

    def test_subtotals_are_not_rounded_before_summing(self):
        # Three lines of 0.005 each; rounding per line would give 0.03
        costs = {1: IngredientCost("each", Decimal("0.005"))}
        request = CalculationRequest(
            ingredients=tuple(IngredientLine(1, Decimal("1"), "each") for _ in range(3)),
            labor_inputs=(),
            labor_hourly_rate=Decimal("0"),
            batch_size=1,
            markup_percentage=Decimal("0"),
        )
        assert calculate_recipe_costs(request, costs).total_ingredient_cost == Decimal("0.02")


# =============================================================================
# Edge cases
# =============================================================================


class TestEdgeCases:
    def test_zero_batch_size_yields_zero_cost_per_pie(self):
        result = calculate_recipe_costs(make_request(batch_size=0), COSTS)

        assert result.total_batch_cost == Decimal("65.50")
        assert result.cost_per_pie == Decimal("0.00")
        assert result.selling_price == Decimal("0.00")

    def test_negative_batch_size_yields_zero_cost_per_pie(self):
        result = calculate_recipe_costs(make_request(batch_size=-5), COSTS)
        assert result.cost_per_pie == Decimal("0.00")

    def test_no_labor(self):
        result = calculate_recipe_costs(make_request(labor_inputs=[]), COSTS)
        assert result.total_labor_cost == Decimal("0.00")
        assert result.total_batch_cost == Decimal("3.00")

    def test_unresolved_ingredient_raises(self):
        with pytest.raises(IngredientReferenceError) as exc_info:
            calculate_recipe_costs(make_request(ingredient_id=99), COSTS)
        assert exc_info.value.ingredient_id == 99

    def test_invalid_ingredient_cost_raises(self):
        costs = {FLOUR_ID: IngredientCost("kg", Decimal("-1"))}
        with pytest.raises(IngredientReferenceError, match="invalid cost per unit"):
            calculate_recipe_costs(make_request(), costs)

    def test_float_inputs_do_not_leak_binary_artifacts(self):
        request = make_request(quantity=1.1)
        assert request.ingredients[0].quantity == Decimal("1.1")

    def test_figures_beyond_decimal_precision_raise_validation_error(self):
        request = make_request(labor_inputs=[{"workers": 1, "hours_per_worker": "1e30"}])
        with pytest.raises(ValidationError, match="too large to calculate"):
            calculate_recipe_costs(request, COSTS)

    def test_whole_number_strings_convert_to_ids_and_workers(self):
        request = make_request(
            ingredient_id="1.0", labor_inputs=[{"workers": "2.0", "hours_per_worker": 1}]
        )
        assert request.ingredients[0].ingredient_id == FLOUR_ID
        assert request.labor_inputs[0].workers == 2


class TestHelpers:
    def test_round_money_half_up(self):
        assert round_money(Decimal("7.205")) == Decimal("7.21")
        assert round_money(Decimal("3.275")) == Decimal("3.28")
        assert round_money(Decimal("2.004")) == Decimal("2.00")

    def test_to_decimal_rejects_non_numbers(self):
        for value in (None, True, "abc", float("nan"), float("inf")):
            with pytest.raises(ValueError):
                to_decimal(value, "quantity")

    def test_total_labor_hours(self):
        inputs = [LaborInput(2, Decimal("1.5")), LaborInput(1, Decimal("0.25"))]
        assert total_labor_hours(inputs) == Decimal("3.25")

    def test_ingredient_ids_are_distinct_and_ordered(self):
        request = build_calculation_request(
            ingredients=[
                {"ingredient_id": 3, "quantity": 1},
                {"ingredient_id": 1, "quantity": 1},
                {"ingredient_id": 3, "quantity": 2},
            ],
            labor_inputs=[],
            labor_hourly_rate=0,
            batch_size=1,
            markup_percentage=0,
        )
        assert request.ingredient_ids == (3, 1)


class TestLaborCostPerPie:
    def test_minutes_at_hourly_rate(self):
        assert calculate_labor_cost_per_pie(60, 15) == Decimal("15.00")

    def test_rounds_half_up(self):
        # 25 x 7 / 60 = 2.91666...
        assert calculate_labor_cost_per_pie(25, 7) == Decimal("2.92")

    @pytest.mark.parametrize("rate,minutes", [(-10, 15), (60, -1), (-1, -1)])
    def test_negative_inputs_clamp_to_zero(self, rate, minutes):
        assert calculate_labor_cost_per_pie(rate, minutes) == Decimal("0.00")

"""
Recipe cost calculation engine.

Pure functions that turn ingredient quantities, labor inputs, an hourly
labor rate, a batch size and a markup percentage into a cost breakdown.
Nothing in this module touches the database; the recipe service resolves
ingredient costs, calls calculate_recipe_costs() and persists the result.

Pipeline:
    1. Ingredient cost    sum(quantity x cost_per_unit)
    2. Labor cost         sum(workers x hours_per_worker) x hourly rate
    3. Batch cost         ingredient cost + labor cost
    4. Cost per pie       batch cost / batch size (0 when batch size is 0)
    5. Selling price      cost per pie x (1 + markup / 100)

All arithmetic is done in Decimal. Subtotals keep full precision and each
output is rounded to 2 decimal places (ROUND_HALF_UP) once, at the end.
The selling price is computed from the rounded cost per pie, so the
published price always equals the published cost times the markup.

Example:
    >>> request = build_calculation_request(
    ...     ingredients=[{"ingredient_id": 1, "quantity": 2, "unit": "kg"}],
    ...     labor_inputs=[{"workers": 1, "hours_per_worker": 2.5}],
    ...     labor_hourly_rate=25,
    ...     batch_size=10,
    ...     markup_percentage=10,
    ... )
    >>> costs = {1: IngredientCost("kg", Decimal("1.50"))}
    >>> calculate_recipe_costs(request, costs).selling_price
    Decimal('7.21')
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, Mapping, Optional, Tuple

from pie_costing.services.exceptions import IngredientReferenceError, ValidationError
from pie_costing.utils.constants import CURRENCY_QUANTUM, MINUTES_PER_HOUR

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class IngredientCost:
    """Resolved catalog cost of one ingredient."""

    unit_of_measure: str
    cost_per_unit: Decimal


@dataclass(frozen=True)
class IngredientLine:
    """One ingredient line of a calculation request."""

    ingredient_id: int
    quantity: Decimal
    unit: Optional[str] = None


@dataclass(frozen=True)
class LaborInput:
    """Itemized labor: a number of workers each spending hours_per_worker."""

    workers: int
    hours_per_worker: Decimal


@dataclass(frozen=True)
class CalculationRequest:
    """Immutable input to calculate_recipe_costs()."""

    ingredients: Tuple[IngredientLine, ...]
    labor_inputs: Tuple[LaborInput, ...]
    labor_hourly_rate: Decimal
    batch_size: int
    markup_percentage: Decimal

    @property
    def ingredient_ids(self) -> Tuple[int, ...]:
        """Distinct ingredient IDs referenced by the request, in line order."""
        return tuple(dict.fromkeys(line.ingredient_id for line in self.ingredients))


@dataclass(frozen=True)
class CostBreakdown:
    """Calculated recipe costs, every figure rounded to 2 decimal places."""

    total_ingredient_cost: Decimal
    total_labor_cost: Decimal
    total_batch_cost: Decimal
    cost_per_pie: Decimal
    selling_price: Decimal

    def calculated_costs(self) -> Dict[str, Decimal]:
        """The four cost figures (everything except the selling price)."""
        return {
            "total_ingredient_cost": self.total_ingredient_cost,
            "total_labor_cost": self.total_labor_cost,
            "total_batch_cost": self.total_batch_cost,
            "cost_per_pie": self.cost_per_pie,
        }

    def to_dict(self) -> Dict[str, Decimal]:
        """All five figures as a dictionary."""
        result = self.calculated_costs()
        result["selling_price"] = self.selling_price
        return result


def to_decimal(value, field_name: str = "value") -> Decimal:
    """
    Convert a number to Decimal without binary float artifacts.

    Floats go through str() so 1.1 becomes Decimal("1.1"), not
    Decimal("1.100000000000000088817841970012523233890533447265625").

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field_name} must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"{field_name} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite, got {value!r}")
    return result


def round_money(value: Decimal) -> Decimal:
    """Round a monetary amount to 2 decimal places, half-up."""
    return value.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def calculate_ingredient_cost(line: IngredientLine, ingredient_cost: Optional[IngredientCost]) -> Decimal:
    """
    Unrounded cost of one ingredient line.

    Raises:
        IngredientReferenceError: If the ingredient did not resolve or its
            cost is not a finite non-negative number
    """
    if ingredient_cost is None:
        raise IngredientReferenceError(line.ingredient_id)

    cost_per_unit = ingredient_cost.cost_per_unit
    if not isinstance(cost_per_unit, Decimal) or not cost_per_unit.is_finite() or cost_per_unit < 0:
        raise IngredientReferenceError(
            line.ingredient_id, reason=f"invalid cost per unit {cost_per_unit!r}"
        )

    return line.quantity * cost_per_unit


def total_labor_hours(labor_inputs: Iterable[LaborInput]) -> Decimal:
    """Total worker-hours across all labor inputs."""
    return sum(
        (Decimal(labor_input.workers) * labor_input.hours_per_worker for labor_input in labor_inputs),
        ZERO,
    )


def calculate_itemized_labor_cost(labor_inputs: Iterable[LaborInput], hourly_rate: Decimal) -> Decimal:
    """Unrounded labor cost: total worker-hours x hourly rate."""
    return total_labor_hours(labor_inputs) * hourly_rate


def calculate_labor_cost_per_pie(cost_per_hour, minutes_per_pie) -> Decimal:
    """
    Per-product labor cost: cost_per_hour x minutes_per_pie / 60.

    Negative inputs yield 0 instead of a negative cost.

    Args:
        cost_per_hour: Hourly labor rate
        minutes_per_pie: Minutes of labor per pie

    Returns:
        Labor cost per pie rounded to 2 decimal places
    """
    rate = to_decimal(cost_per_hour, "cost_per_hour")
    minutes = to_decimal(minutes_per_pie, "minutes_per_pie")
    if rate < 0 or minutes < 0:
        return round_money(ZERO)
    return round_money(rate * minutes / MINUTES_PER_HOUR)


def calculate_recipe_costs(
    request: CalculationRequest, ingredient_costs: Mapping[int, IngredientCost]
) -> CostBreakdown:
    """
    Calculate the full cost breakdown of a recipe.

    Idempotent and side-effect free. Inputs are assumed validated: quantities,
    hourly rate and markup non-negative. A non-positive batch size is
    guarded and yields a cost per pie of 0.

    Args:
        request: The recipe inputs
        ingredient_costs: Resolved costs keyed by ingredient ID

    Returns:
        CostBreakdown with all five figures rounded to 2 decimal places

    Raises:
        IngredientReferenceError: If any line's ingredient is missing from
            ingredient_costs or has an invalid cost; no partial breakdown
            is returned
        ValidationError: If a figure is too large for Decimal arithmetic
    """
    try:
        return _calculate(request, ingredient_costs)
    except InvalidOperation:
        raise ValidationError(["Recipe: Inputs are too large to calculate"])


def _calculate(request: CalculationRequest, ingredient_costs: Mapping[int, IngredientCost]) -> CostBreakdown:
    ingredient_total = sum(
        (
            calculate_ingredient_cost(line, ingredient_costs.get(line.ingredient_id))
            for line in request.ingredients
        ),
        ZERO,
    )
    labor_total = calculate_itemized_labor_cost(request.labor_inputs, request.labor_hourly_rate)
    batch_total = ingredient_total + labor_total

    if request.batch_size > 0:
        cost_per_pie = round_money(batch_total / Decimal(request.batch_size))
    else:
        cost_per_pie = round_money(ZERO)

    selling_price = round_money(cost_per_pie * (1 + request.markup_percentage / HUNDRED))

    return CostBreakdown(
        total_ingredient_cost=round_money(ingredient_total),
        total_labor_cost=round_money(labor_total),
        total_batch_cost=round_money(batch_total),
        cost_per_pie=cost_per_pie,
        selling_price=selling_price,
    )


def build_calculation_request(
    ingredients: Iterable[Mapping],
    labor_inputs: Iterable[Mapping],
    labor_hourly_rate,
    batch_size,
    markup_percentage,
) -> CalculationRequest:
    """
    Build an immutable CalculationRequest from plain values.

    Numbers may be int, float, str or Decimal.

    Args:
        ingredients: Dicts with ingredient_id, quantity and optional unit
        labor_inputs: Dicts with workers and hours_per_worker
        labor_hourly_rate: Hourly labor rate
        batch_size: Pies per batch (whole number)
        markup_percentage: Markup over cost per pie (10 means 10%)

    Returns:
        CalculationRequest
    """
    lines = tuple(
        IngredientLine(
            ingredient_id=int(to_decimal(item["ingredient_id"], "ingredient_id")),
            quantity=to_decimal(item["quantity"], "quantity"),
            unit=item.get("unit"),
        )
        for item in ingredients
    )
    labor = tuple(
        LaborInput(
            workers=int(to_decimal(item["workers"], "workers")),
            hours_per_worker=to_decimal(item["hours_per_worker"], "hours_per_worker"),
        )
        for item in labor_inputs
    )
    return CalculationRequest(
        ingredients=lines,
        labor_inputs=labor,
        labor_hourly_rate=to_decimal(labor_hourly_rate, "labor_hourly_rate"),
        batch_size=int(to_decimal(batch_size, "batch_size")),
        markup_percentage=to_decimal(markup_percentage, "markup_percentage"),
    )

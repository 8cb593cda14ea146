"""
Recipe Service - Recipe management and cost recalculation.

This module provides business logic for recipes including CRUD operations
and the recalculation of their derived cost fields.

Every write re-derives all five calculated fields (ingredient, labor and
batch totals, cost per pie, selling price) from the recipe's complete
current inputs, inside the same session that persists the recipe:

    validate -> resolve ingredient costs -> check units -> calculate -> persist

If any step fails the unit of work is rolled back and nothing is persisted.
Partial updates are merged onto the stored inputs first, so the merged set
is what gets validated and recalculated.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..models import Ingredient, Recipe, RecipeIngredient, RecipeLaborInput
from ..utils.constants import DEFAULT_VARIANT
from ..utils.validators import sanitize_string, validate_recipe_data
from .cost_calculator import (
    CalculationRequest,
    CostBreakdown,
    IngredientCost,
    build_calculation_request,
    calculate_ingredient_cost,
    calculate_recipe_costs,
    round_money,
    total_labor_hours,
)
from .database import session_scope
from .exceptions import (
    DatabaseError,
    DuplicateRecipe,
    RecipeNotFound,
    ValidationError,
)
from .ingredient_service import resolve_ingredient_costs
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

INPUT_FIELDS = (
    "pie_name",
    "variant",
    "batch_size",
    "labor_hourly_rate",
    "markup_percentage",
    "notes",
    "ingredients",
    "labor_inputs",
)

CALCULATED_FIELDS = (
    "total_ingredient_cost",
    "total_labor_cost",
    "total_batch_cost",
    "cost_per_pie",
    "selling_price",
    "calculated_costs",
    "last_calculated",
)


def _check_input_keys(data: Dict[str, Any]) -> None:
    errors = []
    for key in sorted(data):
        if key in CALCULATED_FIELDS:
            errors.append(f"{key}: Calculated field cannot be set directly")
        elif key not in INPUT_FIELDS:
            errors.append(f"{key}: Unknown recipe field")
    if errors:
        raise ValidationError(errors)


def _prepare_recipe_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and trim names before validation."""
    prepared = dict(data)

    if isinstance(prepared.get("pie_name"), str):
        prepared["pie_name"] = prepared["pie_name"].strip()

    variant = prepared.get("variant")
    if variant is None or (isinstance(variant, str) and not variant.strip()):
        prepared["variant"] = DEFAULT_VARIANT
    elif isinstance(variant, str):
        prepared["variant"] = variant.strip()

    if prepared.get("markup_percentage") is None:
        prepared["markup_percentage"] = 0

    return prepared


def _validate(data: Dict[str, Any]) -> None:
    is_valid, errors = validate_recipe_data(data)
    if not is_valid:
        log_operation(
            logger,
            operation="validate_recipe",
            outcome="validation_failed",
            level=logging.DEBUG,
            errors=errors,
        )
        raise ValidationError(errors)


def _check_units(request: CalculationRequest, ingredient_costs: Dict[int, IngredientCost]) -> None:
    """Reject lines whose unit differs from the ingredient's catalog unit."""
    errors = []
    for index, line in enumerate(request.ingredients, start=1):
        catalog_unit = ingredient_costs[line.ingredient_id].unit_of_measure
        line_unit = line.unit or ""
        if line_unit.strip().lower() != catalog_unit.strip().lower():
            errors.append(
                f"Ingredient line {index}: unit '{line_unit}' does not match "
                f"ingredient unit '{catalog_unit}'"
            )
    if errors:
        raise ValidationError(errors)


def _calculate(data: Dict[str, Any], session) -> Tuple[CalculationRequest, Dict[int, IngredientCost], CostBreakdown]:
    """Run the cost calculation for validated recipe data."""
    request = build_calculation_request(
        ingredients=data["ingredients"],
        labor_inputs=data["labor_inputs"],
        labor_hourly_rate=data["labor_hourly_rate"],
        batch_size=data["batch_size"],
        markup_percentage=data["markup_percentage"],
    )
    ingredient_costs = resolve_ingredient_costs(request.ingredient_ids, session)
    _check_units(request, ingredient_costs)
    breakdown = calculate_recipe_costs(request, ingredient_costs)
    return request, ingredient_costs, breakdown


def _find_duplicate(session, pie_name: str, variant: str, exclude_id: Optional[int] = None) -> Optional[Recipe]:
    q = session.query(Recipe).filter(
        func.lower(Recipe.pie_name) == pie_name.lower(),
        func.lower(Recipe.variant) == variant.lower(),
    )
    if exclude_id is not None:
        q = q.filter(Recipe.id != exclude_id)
    return q.first()


def _apply_inputs(recipe: Recipe, request: CalculationRequest, data: Dict[str, Any], session) -> None:
    """Copy validated inputs onto the recipe, replacing its lines."""
    recipe.pie_name = data["pie_name"]
    recipe.variant = data["variant"]
    recipe.batch_size = request.batch_size
    recipe.labor_hourly_rate = request.labor_hourly_rate
    recipe.markup_percentage = request.markup_percentage
    recipe.notes = sanitize_string(data.get("notes"))

    recipe.recipe_ingredients = [
        RecipeIngredient(
            ingredient=session.get(Ingredient, line.ingredient_id),
            quantity=line.quantity,
            unit=line.unit.strip(),
            position=position,
        )
        for position, line in enumerate(request.ingredients)
    ]
    recipe.labor_inputs = [
        RecipeLaborInput(
            workers=labor_input.workers,
            hours_per_worker=labor_input.hours_per_worker,
            position=position,
        )
        for position, labor_input in enumerate(request.labor_inputs)
    ]


def _get_recipe_impl(recipe_id: int, session) -> Recipe:
    recipe = session.get(Recipe, recipe_id)
    if recipe is None:
        raise RecipeNotFound(recipe_id)
    return recipe


def _run(operation: str, func_impl, *args, session=None):
    """Run an impl in the caller's session or a new session_scope()."""
    if session is not None:
        return func_impl(*args, session)
    try:
        with session_scope() as session:
            return func_impl(*args, session)
    except SQLAlchemyError as e:
        log_operation(
            logger, operation=operation, outcome="database_error", level=logging.ERROR, error=str(e)
        )
        raise DatabaseError(f"Failed to {operation.replace('_', ' ')}", original_error=e)


# ============================================================================
# CRUD
# ============================================================================


def create_recipe(recipe_data: Dict[str, Any], *, session=None) -> Recipe:
    """
    Create a recipe and calculate its costs.

    Args:
        recipe_data: Dictionary containing:
            - pie_name (str, required)
            - variant (str, optional): Defaults to "Standard"
            - batch_size (int, required): Pies per batch (> 0)
            - labor_hourly_rate (number, required): >= 0
            - markup_percentage (number, optional): >= 0, defaults to 0
            - notes (str, optional)
            - ingredients (list, required): dicts with ingredient_id,
              quantity and unit (must match the ingredient's unit)
            - labor_inputs (list, required): dicts with workers and
              hours_per_worker
        session: Optional database session

    Returns:
        Created Recipe with calculated fields populated

    Raises:
        ValidationError: If inputs are invalid or a line's unit mismatches
        IngredientReferenceError: If an ingredient ID does not exist
        DuplicateRecipe: If the pie name and variant are taken
        DatabaseError: If database operation fails
    """
    _check_input_keys(recipe_data)
    data = _prepare_recipe_data(recipe_data)
    _validate(data)
    return _run("create_recipe", _create_recipe_impl, data, session=session)


def _create_recipe_impl(data: Dict[str, Any], session) -> Recipe:
    if _find_duplicate(session, data["pie_name"], data["variant"]) is not None:
        raise DuplicateRecipe(data["pie_name"], data["variant"])

    request, _, breakdown = _calculate(data, session)

    recipe = Recipe()
    _apply_inputs(recipe, request, data, session)
    recipe.apply_breakdown(breakdown)
    session.add(recipe)
    session.flush()

    log_operation(
        logger,
        operation="create_recipe",
        outcome="success",
        recipe_id=recipe.id,
        cost_per_pie=str(recipe.cost_per_pie),
        selling_price=str(recipe.selling_price),
    )
    return recipe


def get_recipe(recipe_id: int, *, session=None) -> Recipe:
    """
    Retrieve a recipe by ID, with its ingredient and labor lines loaded.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    if session is not None:
        return _get_recipe_impl(recipe_id, session)
    with session_scope() as session:
        return _get_recipe_impl(recipe_id, session)


def find_recipe(pie_name: str, variant: str = DEFAULT_VARIANT, *, session=None) -> Optional[Recipe]:
    """Look up a recipe by pie name and variant (case-insensitive); None if absent."""
    if session is not None:
        return _find_duplicate(session, pie_name.strip(), variant.strip())
    with session_scope() as session:
        return _find_duplicate(session, pie_name.strip(), variant.strip())


def list_recipes(
    name_search: Optional[str] = None,
    variant: Optional[str] = None,
    *,
    session=None,
) -> List[Recipe]:
    """
    List recipes with optional filters.

    Args:
        name_search: Optional partial pie name (case-insensitive)
        variant: Optional variant (case-insensitive exact match)
        session: Optional database session

    Returns:
        Recipes sorted by pie name then variant
    """
    if session is not None:
        return _list_recipes_impl(name_search, variant, session)
    with session_scope() as session:
        return _list_recipes_impl(name_search, variant, session)


def _list_recipes_impl(name_search, variant, session) -> List[Recipe]:
    q = session.query(Recipe)
    if name_search:
        q = q.filter(Recipe.pie_name.ilike(f"%{name_search.strip()}%"))
    if variant:
        q = q.filter(func.lower(Recipe.variant) == variant.strip().lower())
    return q.order_by(Recipe.pie_name, Recipe.variant).all()


def update_recipe(recipe_id: int, updates: Dict[str, Any], *, session=None) -> Recipe:
    """
    Update a recipe and recalculate all of its costs.

    Any subset of the input fields may be supplied; supplying ingredients
    or labor_inputs replaces the whole list. Even a markup-only change
    re-derives every calculated field.

    Args:
        recipe_id: Recipe ID
        updates: Fields to change
        session: Optional database session

    Returns:
        Updated Recipe

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If the merged inputs are invalid
        IngredientReferenceError: If an ingredient ID does not exist
        DuplicateRecipe: If renamed onto an existing pie name and variant
        DatabaseError: If database operation fails
    """
    _check_input_keys(updates)
    return _run("update_recipe", _update_recipe_impl, recipe_id, updates, session=session)


def _update_recipe_impl(recipe_id: int, updates: Dict[str, Any], session) -> Recipe:
    recipe = _get_recipe_impl(recipe_id, session)

    merged = recipe.to_input_dict()
    merged.update(updates)
    data = _prepare_recipe_data(merged)
    _validate(data)

    if _find_duplicate(session, data["pie_name"], data["variant"], exclude_id=recipe.id):
        raise DuplicateRecipe(data["pie_name"], data["variant"])

    request, _, breakdown = _calculate(data, session)
    _apply_inputs(recipe, request, data, session)
    recipe.apply_breakdown(breakdown)
    session.flush()

    log_operation(
        logger,
        operation="update_recipe",
        outcome="success",
        recipe_id=recipe.id,
        fields=sorted(updates),
        selling_price=str(recipe.selling_price),
    )
    return recipe


def delete_recipe(recipe_id: int, *, session=None) -> bool:
    """
    Delete a recipe together with its ingredient and labor lines.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    return _run("delete_recipe", _delete_recipe_impl, recipe_id, session=session)


def _delete_recipe_impl(recipe_id: int, session) -> bool:
    recipe = _get_recipe_impl(recipe_id, session)
    session.delete(recipe)
    session.flush()
    log_operation(logger, operation="delete_recipe", outcome="success", recipe_id=recipe_id)
    return True


# ============================================================================
# Recalculation
# ============================================================================


def recalculate_recipe(recipe_id: int, *, session=None) -> Recipe:
    """
    Recalculate a recipe's costs from its stored inputs and current
    ingredient costs.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If an ingredient's unit no longer matches a line
    """
    return _run("recalculate_recipe", _recalculate_recipe_impl, recipe_id, session=session)


def _recalculate(recipe: Recipe, session) -> CostBreakdown:
    data = recipe.to_input_dict()
    _, _, breakdown = _calculate(data, session)
    recipe.apply_breakdown(breakdown)
    return breakdown


def _recalculate_recipe_impl(recipe_id: int, session) -> Recipe:
    recipe = _get_recipe_impl(recipe_id, session)
    _recalculate(recipe, session)
    session.flush()
    log_operation(
        logger,
        operation="recalculate_recipe",
        outcome="success",
        recipe_id=recipe.id,
        selling_price=str(recipe.selling_price),
    )
    return recipe


def recalculate_all_recipes(*, session=None) -> int:
    """
    Recalculate every recipe, e.g. after ingredient costs changed.

    All recipes are recalculated in one unit of work; a failure on any
    recipe rolls back the whole run.

    Returns:
        Number of recipes recalculated
    """
    return _run("recalculate_all_recipes", _recalculate_all_impl, session=session)


def _recalculate_all_impl(session) -> int:
    recipes = session.query(Recipe).order_by(Recipe.id).all()
    for recipe in recipes:
        _recalculate(recipe, session)
    session.flush()
    log_operation(logger, operation="recalculate_all_recipes", outcome="success", count=len(recipes))
    return len(recipes)


# ============================================================================
# Reporting
# ============================================================================


def get_recipe_cost_breakdown(recipe_id: int, *, session=None) -> Dict[str, Any]:
    """
    Build a per-line cost report from current ingredient costs.

    Nothing is persisted. is_stale reports whether the stored selling price
    differs from the freshly calculated one.

    Args:
        recipe_id: Recipe ID
        session: Optional database session

    Returns:
        Dictionary with:
            - recipe_id, pie_name, variant, batch_size
            - ingredients: list of dicts (ingredient_id, ingredient_name,
              quantity, unit, cost_per_unit, line_cost)
            - total_labor_hours, labor_hourly_rate, markup_percentage
            - the five calculated figures
            - is_stale

    Raises:
        RecipeNotFound: If recipe doesn't exist
        IngredientReferenceError: If an ingredient no longer resolves
    """
    if session is not None:
        return _cost_breakdown_impl(recipe_id, session)
    with session_scope() as session:
        return _cost_breakdown_impl(recipe_id, session)


def _cost_breakdown_impl(recipe_id: int, session) -> Dict[str, Any]:
    recipe = _get_recipe_impl(recipe_id, session)
    request, ingredient_costs, breakdown = _calculate(recipe.to_input_dict(), session)

    lines = []
    for line, stored in zip(request.ingredients, recipe.recipe_ingredients):
        ingredient_cost = ingredient_costs[line.ingredient_id]
        lines.append(
            {
                "ingredient_id": line.ingredient_id,
                "ingredient_name": stored.ingredient.name,
                "quantity": line.quantity,
                "unit": line.unit,
                "cost_per_unit": ingredient_cost.cost_per_unit,
                "line_cost": round_money(calculate_ingredient_cost(line, ingredient_cost)),
            }
        )

    report = {
        "recipe_id": recipe.id,
        "pie_name": recipe.pie_name,
        "variant": recipe.variant,
        "batch_size": recipe.batch_size,
        "ingredients": lines,
        "total_labor_hours": total_labor_hours(request.labor_inputs),
        "labor_hourly_rate": request.labor_hourly_rate,
        "markup_percentage": request.markup_percentage,
    }
    report.update(breakdown.to_dict())
    report["is_stale"] = recipe.selling_price is None or (
        round_money(recipe.selling_price) != breakdown.selling_price
    )
    return report

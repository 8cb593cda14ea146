"""Ingredient Service - Catalog management for ingredient costs.

This module provides business logic for managing the ingredient catalog including
CRUD operations, search, dependency checking, and the cost lookup used by the
recipe cost calculator.

All functions are stateless and use session_scope() for transaction management.
Public functions accept an optional ``session`` so callers (the recipe and
import services) can run them inside their own unit of work.

Key Features:
- Names are unique case-insensitively (enforced through a normalized slug)
- Deletion is blocked while any recipe references the ingredient, one ID
  at a time or in bulk
- Search by name (partial match) and category filtering
- resolve_ingredient_costs() for the calculator

Example Usage:
  >>> from pie_costing.services.ingredient_service import create_ingredient
  >>> flour = create_ingredient({
  ...     "name": "Cake Flour",
  ...     "unit_of_measure": "kg",
  ...     "cost_per_unit": "15.50",
  ...     "category": "Pantry",
  ... })
  >>> flour.slug
  'cake_flour'
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..models import Ingredient, RecipeIngredient
from ..utils.constants import DEFAULT_INGREDIENT_CATEGORY, ERROR_EMPTY_LIST
from ..utils.slug_utils import create_slug
from ..utils.validators import sanitize_string, validate_ingredient_data
from .cost_calculator import IngredientCost, to_decimal
from .database import session_scope
from .exceptions import (
    DatabaseError,
    DuplicateIngredient,
    IngredientInUse,
    IngredientNotFound,
    IngredientReferenceError,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

UPDATABLE_FIELDS = ("name", "unit_of_measure", "cost_per_unit", "supplier", "category", "notes")


def _normalize_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert validated input into column values."""
    values = {}
    if "name" in data:
        values["name"] = data["name"].strip()
    if "unit_of_measure" in data:
        values["unit_of_measure"] = data["unit_of_measure"].strip()
    if "cost_per_unit" in data:
        values["cost_per_unit"] = to_decimal(data["cost_per_unit"], "cost_per_unit")
    if "supplier" in data:
        values["supplier"] = sanitize_string(data["supplier"])
    if "category" in data:
        values["category"] = sanitize_string(data["category"]) or DEFAULT_INGREDIENT_CATEGORY
    if "notes" in data:
        values["notes"] = sanitize_string(data["notes"])
    return values


def _find_by_name(session, name: str) -> Optional[Ingredient]:
    return session.query(Ingredient).filter(Ingredient.slug == create_slug(name)).first()


def create_ingredient(ingredient_data: Dict[str, Any], *, session=None) -> Ingredient:
    """Create a new ingredient.

    Args:
        ingredient_data: Dictionary containing ingredient fields:
            - name (str, required): Ingredient name, unique case-insensitively
            - unit_of_measure (str, required): Unit the cost applies to
            - cost_per_unit (number, required): Cost of one unit (>= 0)
            - supplier (str, optional)
            - category (str, optional): Defaults to "Other"
            - notes (str, optional)
        session: Optional database session (uses session_scope if not provided)

    Returns:
        Ingredient: Created ingredient with ID and slug

    Raises:
        ValidationError: If required fields missing or invalid
        DuplicateIngredient: If an ingredient with the same name exists
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_ingredient_data(ingredient_data)
    if not is_valid:
        raise ValidationError(errors)

    if session is not None:
        return _create_ingredient_impl(ingredient_data, session)
    try:
        with session_scope() as session:
            return _create_ingredient_impl(ingredient_data, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create ingredient", original_error=e)


def _create_ingredient_impl(ingredient_data: Dict[str, Any], session) -> Ingredient:
    values = _normalize_fields(ingredient_data)
    slug = create_slug(values["name"])

    if session.query(Ingredient).filter(Ingredient.slug == slug).first():
        raise DuplicateIngredient(values["name"])

    values.setdefault("category", DEFAULT_INGREDIENT_CATEGORY)
    ingredient = Ingredient(slug=slug, **values)
    session.add(ingredient)
    session.flush()

    log_operation(
        logger,
        operation="create_ingredient",
        outcome="success",
        ingredient_id=ingredient.id,
        slug=slug,
    )
    return ingredient


def get_ingredient(ingredient_id: int, *, session=None) -> Ingredient:
    """Retrieve an ingredient by ID.

    Raises:
        IngredientNotFound: If the ID doesn't exist
    """
    if session is not None:
        return _get_ingredient_impl(ingredient_id, session)
    with session_scope() as session:
        return _get_ingredient_impl(ingredient_id, session)


def _get_ingredient_impl(ingredient_id: int, session) -> Ingredient:
    ingredient = session.get(Ingredient, ingredient_id)
    if ingredient is None:
        raise IngredientNotFound(ingredient_id)
    return ingredient


def get_ingredient_by_name(name: str, *, session=None) -> Ingredient:
    """Retrieve an ingredient by name, ignoring case and spacing differences.

    Example:
        >>> get_ingredient_by_name("cake  FLOUR").name
        'Cake Flour'

    Raises:
        IngredientNotFound: If no ingredient has that name
    """
    if session is not None:
        ingredient = _find_by_name(session, name)
    else:
        with session_scope() as session:
            ingredient = _find_by_name(session, name)

    if ingredient is None:
        raise IngredientNotFound(name)
    return ingredient


def list_ingredients(
    name_search: Optional[str] = None,
    category: Optional[str] = None,
    *,
    session=None,
) -> List[Ingredient]:
    """List ingredients with optional filters.

    Args:
        name_search: Optional partial name (case-insensitive)
        category: Optional category (exact match)
        session: Optional database session

    Returns:
        List[Ingredient]: Matching ingredients, sorted by name
    """
    if session is not None:
        return _list_ingredients_impl(name_search, category, session)
    with session_scope() as session:
        return _list_ingredients_impl(name_search, category, session)


def _list_ingredients_impl(name_search, category, session) -> List[Ingredient]:
    q = session.query(Ingredient)
    if name_search:
        q = q.filter(Ingredient.name.ilike(f"%{name_search.strip()}%"))
    if category:
        q = q.filter(Ingredient.category == category)
    return q.order_by(Ingredient.name).all()


def update_ingredient(ingredient_id: int, ingredient_data: Dict[str, Any], *, session=None) -> Ingredient:
    """Update ingredient attributes (partial update supported).

    Recipes that reference the ingredient are not recalculated here; their
    costs refresh on their next write or through recalculate_all_recipes().

    Args:
        ingredient_id: Ingredient ID
        ingredient_data: Fields to change (name, unit_of_measure, cost_per_unit,
            supplier, category, notes)
        session: Optional database session

    Returns:
        Ingredient: Updated ingredient

    Raises:
        IngredientNotFound: If the ID doesn't exist
        ValidationError: If update data invalid
        DuplicateIngredient: If renamed onto an existing ingredient's name
        DatabaseError: If database operation fails
    """
    unknown = sorted(set(ingredient_data) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError([f"{field}: Field cannot be updated" for field in unknown])

    is_valid, errors = validate_ingredient_data(ingredient_data, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    if session is not None:
        return _update_ingredient_impl(ingredient_id, ingredient_data, session)
    try:
        with session_scope() as session:
            return _update_ingredient_impl(ingredient_id, ingredient_data, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update ingredient {ingredient_id}", original_error=e)


def _update_ingredient_impl(ingredient_id: int, ingredient_data: Dict[str, Any], session) -> Ingredient:
    ingredient = _get_ingredient_impl(ingredient_id, session)
    values = _normalize_fields(ingredient_data)

    if "name" in values:
        slug = create_slug(values["name"])
        existing = session.query(Ingredient).filter(Ingredient.slug == slug).first()
        if existing is not None and existing.id != ingredient.id:
            raise DuplicateIngredient(values["name"])
        values["slug"] = slug

    for key, value in values.items():
        setattr(ingredient, key, value)
    session.flush()

    log_operation(
        logger,
        operation="update_ingredient",
        outcome="success",
        ingredient_id=ingredient.id,
        fields=sorted(ingredient_data),
    )
    return ingredient


def count_recipe_references(ingredient_id: int, *, session=None) -> int:
    """Number of distinct recipes that use the ingredient."""
    if session is not None:
        return _count_recipe_references_impl(ingredient_id, session)
    with session_scope() as session:
        return _count_recipe_references_impl(ingredient_id, session)


def _count_recipe_references_impl(ingredient_id: int, session) -> int:
    return (
        session.query(func.count(func.distinct(RecipeIngredient.recipe_id)))
        .filter(RecipeIngredient.ingredient_id == ingredient_id)
        .scalar()
    )


def delete_ingredient(ingredient_id: int, *, session=None) -> bool:
    """Delete an ingredient that no recipe references.

    Returns:
        bool: True if deletion successful

    Raises:
        IngredientNotFound: If the ID doesn't exist
        IngredientInUse: If any recipe uses the ingredient
        DatabaseError: If database operation fails
    """
    if session is not None:
        return _delete_ingredient_impl(ingredient_id, session)
    try:
        with session_scope() as session:
            return _delete_ingredient_impl(ingredient_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete ingredient {ingredient_id}", original_error=e)


def _delete_ingredient_impl(ingredient_id: int, session) -> bool:
    ingredient = _get_ingredient_impl(ingredient_id, session)

    recipe_count = _count_recipe_references_impl(ingredient_id, session)
    if recipe_count > 0:
        log_operation(
            logger,
            operation="delete_ingredient",
            outcome="in_use",
            level=logging.WARNING,
            ingredient_id=ingredient_id,
            recipe_count=recipe_count,
        )
        raise IngredientInUse(ingredient.name, recipe_count)

    session.delete(ingredient)
    session.flush()
    log_operation(logger, operation="delete_ingredient", outcome="success", ingredient_id=ingredient_id)
    return True


def delete_ingredients(ingredient_ids: List[int], *, session=None) -> Dict[str, List]:
    """Delete several ingredients, skipping those that cannot be deleted.

    Each ID gets the same check as delete_ingredient(): ingredients used by
    a recipe are kept and reported, unknown IDs are reported, everything
    else is deleted in one unit of work.

    Args:
        ingredient_ids: IDs to delete
        session: Optional database session

    Returns:
        Dict with:
            - deleted: IDs that were deleted
            - in_use: dicts (ingredient_id, name, recipe_count) of kept ingredients
            - not_found: IDs that don't exist

    Raises:
        ValidationError: If no IDs are given or an ID is not a whole number
        DatabaseError: If database operation fails
    """
    if not isinstance(ingredient_ids, (list, tuple)) or len(ingredient_ids) == 0:
        raise ValidationError([f"Ingredient IDs: {ERROR_EMPTY_LIST}"])
    errors = [
        f"Ingredient IDs: '{value}' is not a valid ID"
        for value in ingredient_ids
        if isinstance(value, bool) or not isinstance(value, int)
    ]
    if errors:
        raise ValidationError(errors)

    ids = list(dict.fromkeys(ingredient_ids))
    if session is not None:
        return _delete_ingredients_impl(ids, session)
    try:
        with session_scope() as session:
            return _delete_ingredients_impl(ids, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to delete ingredients", original_error=e)


def _delete_ingredients_impl(ids: List[int], session) -> Dict[str, List]:
    report: Dict[str, List] = {"deleted": [], "in_use": [], "not_found": []}

    for ingredient_id in ids:
        ingredient = session.get(Ingredient, ingredient_id)
        if ingredient is None:
            report["not_found"].append(ingredient_id)
            continue

        recipe_count = _count_recipe_references_impl(ingredient_id, session)
        if recipe_count > 0:
            report["in_use"].append(
                {"ingredient_id": ingredient_id, "name": ingredient.name, "recipe_count": recipe_count}
            )
            continue

        session.delete(ingredient)
        report["deleted"].append(ingredient_id)

    session.flush()
    log_operation(
        logger,
        operation="delete_ingredients",
        outcome="success" if not report["in_use"] else "partially_blocked",
        level=logging.INFO if not report["in_use"] else logging.WARNING,
        deleted=len(report["deleted"]),
        in_use=[entry["ingredient_id"] for entry in report["in_use"]],
        not_found=report["not_found"],
    )
    return report


def resolve_ingredient_costs(ingredient_ids: Iterable[int], session) -> Dict[int, IngredientCost]:
    """Resolve ingredient IDs to their current unit and cost.

    Read-only. Every ID must resolve; the first one that doesn't aborts the
    lookup so no partial cost map is ever used for a calculation.

    Args:
        ingredient_ids: Ingredient IDs referenced by a recipe
        session: Database session of the calling unit of work

    Returns:
        Dict mapping ingredient ID to IngredientCost

    Raises:
        IngredientReferenceError: If any ID does not exist
    """
    ids = list(dict.fromkeys(ingredient_ids))
    if not ids:
        return {}

    rows = session.query(Ingredient).filter(Ingredient.id.in_(ids)).all()
    found = {
        row.id: IngredientCost(
            unit_of_measure=row.unit_of_measure,
            cost_per_unit=to_decimal(row.cost_per_unit, "cost_per_unit"),
        )
        for row in rows
    }

    for ingredient_id in ids:
        if ingredient_id not in found:
            log_operation(
                logger,
                operation="resolve_ingredient_costs",
                outcome="unresolved_reference",
                level=logging.WARNING,
                ingredient_id=ingredient_id,
            )
            raise IngredientReferenceError(ingredient_id)

    return found


__all__ = [
    "create_ingredient",
    "get_ingredient",
    "get_ingredient_by_name",
    "list_ingredients",
    "update_ingredient",
    "count_recipe_references",
    "delete_ingredient",
    "delete_ingredients",
    "resolve_ingredient_costs",
]

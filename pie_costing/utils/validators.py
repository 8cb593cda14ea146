"""
Input validation functions for the Pie Costing application.

This module provides validation functions for all user inputs including:
- Numeric validation (positive, non-negative, whole numbers)
- String validation (length, required fields)
- Unit and category validation
- Complete record validation (ingredient, labor record, recipe)

Field-level validators return a (is_valid, error_message) tuple; record
validators return (is_valid, list_of_errors). Every message is prefixed
with the field or line it refers to so callers can point the user at the
exact input to correct.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

from .constants import (
    ALL_UNITS,
    INGREDIENT_CATEGORIES,
    MAX_BATCH_SIZE,
    MAX_COST,
    MAX_HOURS,
    MAX_INPUT_DECIMAL_PLACES,
    MAX_MARKUP,
    MAX_MINUTES,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_QUANTITY,
    MAX_RECORD_ID,
    MAX_SUPPLIER_LENGTH,
    MAX_UNIT_LENGTH,
    MAX_VARIANT_LENGTH,
    MAX_WORKERS,
    ERROR_EMPTY_LIST,
    ERROR_INVALID_CATEGORY,
    ERROR_INVALID_INTEGER,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_UNIT,
    ERROR_REQUIRED_FIELD,
    ERROR_TOO_MANY_DECIMALS,
)


def _to_finite_float(value: Any) -> Optional[float]:
    """Convert value to a finite float, or None if that isn't possible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        num_value = float(value)
    except (ValueError, TypeError):
        return None
    if not math.isfinite(num_value):
        return None
    return num_value


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or not isinstance(value, str) or value.strip() == "":
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: str, max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a string doesn't exceed maximum length.

    Args:
        value: The string value to validate
        max_length: Maximum allowed length
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a non-negative number (>= 0).

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_positive_integer(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a whole number greater than zero.

    Floats with no fractional part (e.g. 10.0 read from a spreadsheet)
    are accepted.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if not num_value.is_integer():
        return False, f"{field_name}: {ERROR_INVALID_INTEGER}"
    if num_value <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_maximum(value: Any, max_value: float, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that an already-numeric value doesn't exceed a maximum.

    Args:
        value: The value to validate
        max_value: Maximum allowed value
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    num_value = _to_finite_float(value)
    if num_value is not None and num_value > max_value:
        return False, f"{field_name}: Must be {max_value} or less"
    return True, ""


def validate_decimal_places(
    value: Any, places: int = MAX_INPUT_DECIMAL_PLACES, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that an already-numeric value fits the stored scale.

    Trailing zeros don't count, so "1.50000" passes with places=4.

    Args:
        value: The value to validate
        places: Maximum number of decimal places
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if _to_finite_float(value) is None:
        return True, ""
    try:
        exponent = Decimal(str(value).strip()).normalize().as_tuple().exponent
    except InvalidOperation:
        return True, ""
    if exponent < -places:
        return False, f"{field_name}: {ERROR_TOO_MANY_DECIMALS.format(places=places)}"
    return True, ""


def validate_unit(unit: Any, field_name: str = "Unit") -> Tuple[bool, str]:
    """
    Validate that a unit is in the list of valid units (case-insensitive).

    Args:
        unit: The unit string to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not unit or not isinstance(unit, str):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"

    if unit.strip().lower() not in [u.lower() for u in ALL_UNITS]:
        return False, f"{field_name}: {ERROR_INVALID_UNIT}"

    return True, ""


def validate_ingredient_category(category: Any, field_name: str = "Category") -> Tuple[bool, str]:
    """
    Validate that a category is one of the known ingredient categories.

    Args:
        category: The category string to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not category:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"

    if category not in INGREDIENT_CATEGORIES:
        return (
            False,
            f"{field_name}: {ERROR_INVALID_CATEGORY}. Valid: {', '.join(INGREDIENT_CATEGORIES)}",
        )

    return True, ""


def _check(errors: List[str], result: Tuple[bool, str]) -> bool:
    """Append the error message of a failed check; return whether it passed."""
    is_valid, error = result
    if not is_valid:
        errors.append(error)
    return is_valid


def _check_stored_number(errors: List[str], value: Any, max_value: float, field_name: str) -> bool:
    """Non-negative, at most max_value, and no finer than the stored scale."""
    return (
        _check(errors, validate_non_negative_number(value, field_name))
        and _check(errors, validate_maximum(value, max_value, field_name))
        and _check(errors, validate_decimal_places(value, field_name=field_name))
    )


def validate_ingredient_data(data: dict, partial: bool = False) -> Tuple[bool, list]:
    """
    Validate all fields for an ingredient.

    Args:
        data: Dictionary containing ingredient fields
        partial: If True, only validate the fields present (for updates)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not partial or "name" in data:
        if _check(errors, validate_required_string(data.get("name"), "Name")):
            _check(errors, validate_string_length(data["name"], MAX_NAME_LENGTH, "Name"))

    if not partial or "unit_of_measure" in data:
        if _check(errors, validate_unit(data.get("unit_of_measure"), "Unit")):
            _check(errors, validate_string_length(data["unit_of_measure"], MAX_UNIT_LENGTH, "Unit"))

    if not partial or "cost_per_unit" in data:
        _check_stored_number(errors, data.get("cost_per_unit"), MAX_COST, "Cost per Unit")

    if data.get("category") is not None:
        _check(errors, validate_ingredient_category(data.get("category"), "Category"))

    if data.get("supplier"):
        _check(
            errors, validate_string_length(data["supplier"], MAX_SUPPLIER_LENGTH, "Supplier")
        )

    if data.get("notes"):
        _check(errors, validate_string_length(data["notes"], MAX_NOTES_LENGTH, "Notes"))

    return len(errors) == 0, errors


def validate_labor_data(data: dict, partial: bool = False) -> Tuple[bool, list]:
    """
    Validate all fields for a per-product labor record.

    Negative rates and times are rejected here; the labor cost formula
    additionally clamps them to zero for records that bypass validation.

    Args:
        data: Dictionary containing labor record fields
        partial: If True, only validate the fields present (for updates)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not partial or "pie_name" in data:
        if _check(errors, validate_required_string(data.get("pie_name"), "Pie Name")):
            _check(errors, validate_string_length(data["pie_name"], MAX_NAME_LENGTH, "Pie Name"))

    if not partial or "cost_per_hour" in data:
        _check_stored_number(errors, data.get("cost_per_hour"), MAX_COST, "Cost per Hour")

    if not partial or "minutes_per_pie" in data:
        _check_stored_number(errors, data.get("minutes_per_pie"), MAX_MINUTES, "Minutes per Pie")

    return len(errors) == 0, errors


def validate_recipe_ingredient_lines(lines: Any) -> List[str]:
    """
    Validate the ingredient lines of a recipe.

    Args:
        lines: List of dicts with ingredient_id, quantity and unit

    Returns:
        List of error messages, each naming the 1-based line number
    """
    if not isinstance(lines, (list, tuple)) or len(lines) == 0:
        return [f"Ingredients: {ERROR_EMPTY_LIST}"]

    errors = []
    for index, line in enumerate(lines, start=1):
        label = f"Ingredient line {index}"
        if not isinstance(line, dict):
            errors.append(f"{label}: {ERROR_REQUIRED_FIELD}")
            continue

        if _check(
            errors, validate_positive_integer(line.get("ingredient_id"), f"{label}: Ingredient")
        ):
            _check(
                errors,
                validate_maximum(line["ingredient_id"], MAX_RECORD_ID, f"{label}: Ingredient"),
            )

        _check_stored_number(errors, line.get("quantity"), MAX_QUANTITY, f"{label}: Quantity")

        _check(errors, validate_required_string(line.get("unit"), f"{label}: Unit"))

    return errors


def validate_labor_inputs(labor_inputs: Any) -> List[str]:
    """
    Validate the itemized labor inputs of a recipe.

    Args:
        labor_inputs: List of dicts with workers and hours_per_worker

    Returns:
        List of error messages, each naming the 1-based line number
    """
    if not isinstance(labor_inputs, (list, tuple)) or len(labor_inputs) == 0:
        return [f"Labor Inputs: {ERROR_EMPTY_LIST}"]

    errors = []
    for index, labor_input in enumerate(labor_inputs, start=1):
        label = f"Labor input {index}"
        if not isinstance(labor_input, dict):
            errors.append(f"{label}: {ERROR_REQUIRED_FIELD}")
            continue

        if _check(
            errors, validate_positive_integer(labor_input.get("workers"), f"{label}: Workers")
        ):
            _check(
                errors, validate_maximum(labor_input["workers"], MAX_WORKERS, f"{label}: Workers")
            )
        _check_stored_number(
            errors, labor_input.get("hours_per_worker"), MAX_HOURS, f"{label}: Hours per Worker"
        )

    return errors


def validate_recipe_data(data: dict) -> Tuple[bool, list]:
    """
    Validate a complete recipe specification.

    Updates are validated after being merged onto the stored recipe, so
    this always checks the full input set the calculator will see.

    Args:
        data: Dictionary containing recipe fields

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if _check(errors, validate_required_string(data.get("pie_name"), "Pie Name")):
        _check(errors, validate_string_length(data["pie_name"], MAX_NAME_LENGTH, "Pie Name"))

    if _check(errors, validate_required_string(data.get("variant"), "Variant")):
        _check(errors, validate_string_length(data["variant"], MAX_VARIANT_LENGTH, "Variant"))

    if _check(errors, validate_positive_integer(data.get("batch_size"), "Batch Size")):
        _check(errors, validate_maximum(data["batch_size"], MAX_BATCH_SIZE, "Batch Size"))

    _check_stored_number(errors, data.get("labor_hourly_rate"), MAX_COST, "Labor Hourly Rate")
    _check_stored_number(errors, data.get("markup_percentage"), MAX_MARKUP, "Markup Percentage")

    errors.extend(validate_recipe_ingredient_lines(data.get("ingredients")))
    errors.extend(validate_labor_inputs(data.get("labor_inputs")))

    if data.get("notes"):
        _check(errors, validate_string_length(data["notes"], MAX_NOTES_LENGTH, "Notes"))

    return len(errors) == 0, errors


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string value by stripping whitespace and converting empty strings to None.

    Args:
        value: The string value to sanitize

    Returns:
        Sanitized string or None
    """
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None

"""
Import Service - Bulk loading of ingredients, labor rates and recipes.

Rows come from spreadsheet exports: ingredient and labor rows are dicts
keyed by the sheet's column headers (see IMPORT_* in utils.constants);
recipe records are dicts shaped like the recipe service input, except that
ingredients are referenced by name.

Each row is its own unit of work: a bad row is recorded in the
ImportResult and the import continues with the next one. Recipes go
through recipe_service, so imported costs are identical to what manual
entry would produce.
"""

import csv
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..models import Ingredient, LaborRecord
from ..utils.constants import (
    DEFAULT_INGREDIENT_ALIASES,
    DEFAULT_PIE_NAME_MAP,
    DEFAULT_VARIANT,
    IMPORT_INGREDIENT_CATEGORY,
    IMPORT_INGREDIENT_COST,
    IMPORT_INGREDIENT_NAME,
    IMPORT_INGREDIENT_SUPPLIER,
    IMPORT_INGREDIENT_UNIT,
    IMPORT_LABOR_COST_PER_HOUR,
    IMPORT_LABOR_MINUTES_PER_PIE,
    IMPORT_LABOR_PIE_NAME,
    MINI_SUFFIX_SEPARATOR,
    MINI_VARIANT,
)
from ..utils.slug_utils import create_slug
from . import ingredient_service, labor_service, recipe_service
from .alias_service import AliasTable, load_alias_table
from .database import session_scope
from .exceptions import ServiceError, ValidationError
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


class ImportResult:
    """Result of an import run."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        self.created = 0
        self.updated = 0
        self.skipped = 0
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def add_created(self, record_name: str):
        """Record a newly created record."""
        self.created += 1
        logger.debug(f"Import - Created {self.entity_type}: {record_name}")

    def add_updated(self, record_name: str):
        """Record an existing record that was updated."""
        self.updated += 1
        logger.debug(f"Import - Updated {self.entity_type}: {record_name}")

    def add_skip(self, reason: Optional[str] = None):
        """Record a skipped row; rows without a name are skipped without a message."""
        self.skipped += 1
        if reason:
            self.warnings.append(reason)

    def add_error(self, message: str):
        """Record a row that failed to import."""
        self.errors.append(message)
        logger.warning(f"Import - {self.entity_type}: {message}")

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def total_processed(self) -> int:
        """Rows seen, including skipped and failed ones."""
        return self.created + self.updated + self.skipped + self.failed

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_summary(self) -> str:
        """Get a user-friendly summary string of the import results."""
        lines = [
            f"Import finished ({self.entity_type}). "
            f"Created: {self.created}, Updated: {self.updated}, "
            f"Skipped: {self.skipped}, Errors: {self.failed}."
        ]
        lines.extend(f"  WARNING: {warning}" for warning in self.warnings)
        lines.extend(f"  ERROR: {error}" for error in self.errors)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


# ============================================================================
# Helpers
# ============================================================================


def _cell(row: Mapping[str, Any], header: str) -> Optional[str]:
    """Return a trimmed cell value, or None if the cell is empty."""
    value = row.get(header)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_amount(raw: Any) -> Optional[Decimal]:
    """Parse a spreadsheet amount such as 'R 1,250.50'; None if not a number."""
    if raw is None or isinstance(raw, bool):
        return None
    text = str(raw).strip().replace(",", "").replace(" ", "")
    if text[:1] in ("R", "r"):
        text = text[1:]
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def _map_pie_name(pie_name: str, pie_name_map: Optional[Mapping[str, str]]) -> str:
    """Translate a pie name through a case-insensitive name map."""
    if not pie_name_map:
        return pie_name
    lookup = {source.strip().lower(): target for source, target in pie_name_map.items()}
    return lookup.get(pie_name.strip().lower(), pie_name)


def _run_row(result: ImportResult, record_name: str, row_func) -> None:
    """
    Run one row in its own unit of work and record the outcome.

    row_func(session) returns "created" or "updated"; the outcome is only
    counted once the row's transaction has committed.
    """
    try:
        with session_scope() as session:
            outcome = row_func(session)
    except ServiceError as e:
        result.add_error(f"Error processing '{record_name}': {e}")
        return
    except SQLAlchemyError as e:
        logger.error(f"Database error importing {result.entity_type} '{record_name}': {e}")
        result.add_error(f"Error processing '{record_name}': database error")
        return

    if outcome == "created":
        result.add_created(record_name)
    else:
        result.add_updated(record_name)


# ============================================================================
# Ingredients
# ============================================================================


def import_ingredients(rows: Iterable[Mapping[str, Any]]) -> ImportResult:
    """
    Import ingredient catalog rows, upserting by case-insensitive name.

    Expected headers: "Ingredient Name", "Unit", "Cost per Unit (R)",
    and optionally "Supplier" and "Category".

    - Rows without an ingredient name are skipped silently
    - Rows missing the unit or cost, or with a negative or non-numeric
      cost, are recorded as errors
    - Existing ingredients keep their name casing; supplier and category
      are only overwritten when the row supplies them

    Returns:
        ImportResult
    """
    result = ImportResult("ingredients")

    for row in rows:
        name = _cell(row, IMPORT_INGREDIENT_NAME)
        if not name:
            result.add_skip()
            continue

        unit = _cell(row, IMPORT_INGREDIENT_UNIT)
        raw_cost = _cell(row, IMPORT_INGREDIENT_COST)
        if not unit or raw_cost is None:
            result.add_error(
                f"Skipped record: Missing required fields (Unit, Cost per Unit) for '{name}'."
            )
            continue

        cost = _parse_amount(raw_cost)
        if cost is None or cost < 0:
            result.add_error(f"Skipped record: Invalid Cost per Unit '{raw_cost}' for '{name}'.")
            continue

        data = {"unit_of_measure": unit, "cost_per_unit": cost}
        supplier = _cell(row, IMPORT_INGREDIENT_SUPPLIER)
        if supplier:
            data["supplier"] = supplier
        category = _cell(row, IMPORT_INGREDIENT_CATEGORY)
        if category:
            data["category"] = category

        def upsert(session, name=name, data=data):
            existing = (
                session.query(Ingredient).filter(Ingredient.slug == create_slug(name)).first()
            )
            if existing is not None:
                ingredient_service.update_ingredient(existing.id, data, session=session)
                return "updated"
            ingredient_service.create_ingredient({"name": name, **data}, session=session)
            return "created"

        _run_row(result, name, upsert)

    log_operation(
        logger,
        operation="import_ingredients",
        outcome="success" if not result.has_errors else "completed_with_errors",
        created=result.created,
        updated=result.updated,
        error_count=result.failed,
    )
    return result


# ============================================================================
# Labor rates
# ============================================================================


def import_labor_rates(
    rows: Iterable[Mapping[str, Any]],
    pie_name_map: Optional[Mapping[str, str]] = DEFAULT_PIE_NAME_MAP,
) -> ImportResult:
    """
    Import per-product labor rows, upserting LaborRecords by pie name.

    Expected headers: "Pie Name", "Cost per Hour", "Minutes per Pie".
    Pie names are translated through pie_name_map first (labor sheets use
    the Afrikaans names).

    Returns:
        ImportResult
    """
    result = ImportResult("labor_records")

    for row in rows:
        source_name = _cell(row, IMPORT_LABOR_PIE_NAME)
        if not source_name:
            result.add_skip()
            continue
        pie_name = _map_pie_name(source_name, pie_name_map)

        raw_rate = _cell(row, IMPORT_LABOR_COST_PER_HOUR)
        raw_minutes = _cell(row, IMPORT_LABOR_MINUTES_PER_PIE)
        rate = _parse_amount(raw_rate)
        minutes = _parse_amount(raw_minutes)
        if rate is None or rate < 0:
            result.add_error(f"Skipped record: Invalid Cost per Hour '{raw_rate}' for '{pie_name}'.")
            continue
        if minutes is None or minutes < 0:
            result.add_error(
                f"Skipped record: Invalid Minutes per Pie '{raw_minutes}' for '{pie_name}'."
            )
            continue

        data = {"cost_per_hour": rate, "minutes_per_pie": minutes}

        def upsert(session, pie_name=pie_name, data=data):
            existing = (
                session.query(LaborRecord)
                .filter(func.lower(LaborRecord.pie_name) == pie_name.lower())
                .first()
            )
            if existing is not None:
                labor_service.update_labor_record(existing.id, data, session=session)
                return "updated"
            labor_service.create_labor_record({"pie_name": pie_name, **data}, session=session)
            return "created"

        _run_row(result, pie_name, upsert)

    log_operation(
        logger,
        operation="import_labor_rates",
        outcome="success" if not result.has_errors else "completed_with_errors",
        created=result.created,
        updated=result.updated,
        error_count=result.failed,
    )
    return result


# ============================================================================
# Recipes
# ============================================================================


def _split_variant(pie_name: str, variant: Optional[str]):
    """Derive the variant from a ' - Mini' suffix when none is given."""
    if variant:
        return pie_name, variant.strip()
    suffix = f"{MINI_SUFFIX_SEPARATOR}{MINI_VARIANT}".lower()
    if pie_name.lower().endswith(suffix):
        return pie_name[: -len(suffix)].strip(), MINI_VARIANT
    return pie_name, DEFAULT_VARIANT


def _resolve_lines(lines: Any, alias_table: AliasTable, session) -> List[Dict[str, Any]]:
    """Resolve named ingredient lines to ingredient IDs and units."""
    if not isinstance(lines, list):
        return lines

    resolved = []
    errors = []
    for index, line in enumerate(lines, start=1):
        if not isinstance(line, dict):
            resolved.append(line)
            continue

        ingredient_id = line.get("ingredient_id")
        name = line.get("name") or line.get("ingredient")
        if ingredient_id is None:
            ingredient_id = alias_table.resolve(name)
            if ingredient_id is None:
                errors.append(f"Ingredient line {index}: unknown ingredient '{name}'")
                continue

        unit = line.get("unit")
        if not unit:
            ingredient = session.get(Ingredient, ingredient_id)
            unit = ingredient.unit_of_measure if ingredient is not None else None

        resolved.append({"ingredient_id": ingredient_id, "quantity": line.get("quantity"), "unit": unit})

    if errors:
        raise ValidationError(errors)
    return resolved


def import_recipes(
    records: Iterable[Mapping[str, Any]],
    alias_table: Optional[AliasTable] = None,
    pie_name_map: Optional[Mapping[str, str]] = None,
) -> ImportResult:
    """
    Import recipe records, upserting by (pie name, variant).

    Each record has pie_name, optional variant, batch_size, optional
    markup_percentage, optional labor_hourly_rate, labor_inputs, optional
    notes, and ingredients given as dicts with name (or ingredient_id),
    quantity and optional unit (defaults to the catalog unit).

    - Ingredient names are resolved through alias_table; when none is
      given it is loaded from the catalog plus DEFAULT_INGREDIENT_ALIASES
    - A pie name ending in " - Mini" without an explicit variant becomes
      the "Mini" variant of the base pie
    - Without labor_hourly_rate the pie's LaborRecord cost_per_hour is used;
      records with neither are reported as errors

    Returns:
        ImportResult
    """
    result = ImportResult("recipes")
    if alias_table is None:
        alias_table = load_alias_table(DEFAULT_INGREDIENT_ALIASES)

    for number, record in enumerate(records, start=1):
        if not isinstance(record, Mapping):
            result.add_error(f"Recipe record {number}: Expected an object, got {type(record).__name__}")
            continue

        raw_name = record.get("pie_name")
        if not isinstance(raw_name, str) or not raw_name.strip():
            result.add_error(f"Recipe record {number}: Pie Name: This field is required")
            continue

        pie_name, variant = _split_variant(
            _map_pie_name(raw_name.strip(), pie_name_map), record.get("variant")
        )
        record_name = f"{pie_name} - {variant}"

        def upsert(session, record=record, pie_name=pie_name, variant=variant):
            data = {
                "pie_name": pie_name,
                "variant": variant,
                "batch_size": record.get("batch_size"),
                "markup_percentage": record.get("markup_percentage"),
                "labor_hourly_rate": record.get("labor_hourly_rate"),
                "labor_inputs": record.get("labor_inputs"),
                "ingredients": _resolve_lines(record.get("ingredients"), alias_table, session),
            }
            if record.get("notes"):
                data["notes"] = record["notes"]

            if data["labor_hourly_rate"] is None:
                labor = labor_service.get_labor_record_by_pie_name(pie_name, session=session)
                data["labor_hourly_rate"] = labor.cost_per_hour

            existing = recipe_service.find_recipe(pie_name, variant, session=session)
            if existing is not None:
                recipe_service.update_recipe(existing.id, data, session=session)
                return "updated"
            recipe_service.create_recipe(data, session=session)
            return "created"

        _run_row(result, record_name, upsert)

    log_operation(
        logger,
        operation="import_recipes",
        outcome="success" if not result.has_errors else "completed_with_errors",
        created=result.created,
        updated=result.updated,
        error_count=result.failed,
    )
    return result


# ============================================================================
# File readers
# ============================================================================


def read_csv_rows(path: Union[str, Path]) -> List[Dict[str, str]]:
    """Read a CSV export into a list of header-keyed rows."""
    with open(path, newline="", encoding="utf-8-sig") as f:
        return list(csv.DictReader(f))


def read_json_records(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    Read recipe records from a JSON file.

    Accepts either a list of records or an object with a "recipes" list.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("recipes", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of recipe records")
    return data

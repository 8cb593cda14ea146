"""Labor Service - Per-product labor rate records.

A labor record stores, for one pie type, the hourly labor rate and the
minutes needed per pie. Its labor_cost_per_pie is recomputed on every
create and on every update that touches the rate or the minutes.

Labor records also supply the hourly rate for recipes loaded through the
bulk import when a recipe record does not carry its own rate.

All functions are stateless and use session_scope() for transaction management.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from ..models import LaborRecord
from ..utils.validators import validate_labor_data
from .cost_calculator import to_decimal
from .database import session_scope
from .exceptions import (
    DatabaseError,
    DuplicateLaborRecord,
    LaborRecordNotFound,
    ValidationError,
)
from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

UPDATABLE_FIELDS = ("pie_name", "cost_per_hour", "minutes_per_pie")


def _find_by_pie_name(session, pie_name: str) -> Optional[LaborRecord]:
    return (
        session.query(LaborRecord)
        .filter(func.lower(LaborRecord.pie_name) == pie_name.strip().lower())
        .first()
    )


def create_labor_record(labor_data: Dict[str, Any], *, session=None) -> LaborRecord:
    """Create a labor record for a pie type.

    Args:
        labor_data: Dictionary with pie_name, cost_per_hour and minutes_per_pie
        session: Optional database session

    Returns:
        LaborRecord with labor_cost_per_pie calculated

    Raises:
        ValidationError: If fields missing or invalid
        DuplicateLaborRecord: If the pie already has a labor record
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_labor_data(labor_data)
    if not is_valid:
        raise ValidationError(errors)

    if session is not None:
        return _create_labor_record_impl(labor_data, session)
    try:
        with session_scope() as session:
            return _create_labor_record_impl(labor_data, session)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create labor record", original_error=e)


def _create_labor_record_impl(labor_data: Dict[str, Any], session) -> LaborRecord:
    pie_name = labor_data["pie_name"].strip()
    if _find_by_pie_name(session, pie_name) is not None:
        raise DuplicateLaborRecord(pie_name)

    record = LaborRecord(
        pie_name=pie_name,
        cost_per_hour=to_decimal(labor_data["cost_per_hour"], "cost_per_hour"),
        minutes_per_pie=to_decimal(labor_data["minutes_per_pie"], "minutes_per_pie"),
    )
    record.recalculate()
    session.add(record)
    session.flush()

    log_operation(
        logger,
        operation="create_labor_record",
        outcome="success",
        labor_record_id=record.id,
        labor_cost_per_pie=str(record.labor_cost_per_pie),
    )
    return record


def get_labor_record(labor_record_id: int, *, session=None) -> LaborRecord:
    """Retrieve a labor record by ID.

    Raises:
        LaborRecordNotFound: If the ID doesn't exist
    """
    if session is not None:
        return _get_labor_record_impl(labor_record_id, session)
    with session_scope() as session:
        return _get_labor_record_impl(labor_record_id, session)


def _get_labor_record_impl(labor_record_id: int, session) -> LaborRecord:
    record = session.get(LaborRecord, labor_record_id)
    if record is None:
        raise LaborRecordNotFound(labor_record_id)
    return record


def get_labor_record_by_pie_name(pie_name: str, *, session=None) -> LaborRecord:
    """Retrieve the labor record of a pie type (case-insensitive).

    Raises:
        LaborRecordNotFound: If the pie has no labor record
    """
    if session is not None:
        record = _find_by_pie_name(session, pie_name)
    else:
        with session_scope() as session:
            record = _find_by_pie_name(session, pie_name)

    if record is None:
        raise LaborRecordNotFound(pie_name)
    return record


def list_labor_records(*, session=None) -> List[LaborRecord]:
    """List all labor records sorted by pie name."""
    if session is not None:
        return session.query(LaborRecord).order_by(LaborRecord.pie_name).all()
    with session_scope() as session:
        return session.query(LaborRecord).order_by(LaborRecord.pie_name).all()


def update_labor_record(labor_record_id: int, labor_data: Dict[str, Any], *, session=None) -> LaborRecord:
    """Update a labor record (partial update supported).

    labor_cost_per_pie is recomputed whenever cost_per_hour or
    minutes_per_pie is supplied.

    Raises:
        LaborRecordNotFound: If the ID doesn't exist
        ValidationError: If update data invalid
        DuplicateLaborRecord: If renamed onto another pie's record
        DatabaseError: If database operation fails
    """
    unknown = sorted(set(labor_data) - set(UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError([f"{field}: Field cannot be updated" for field in unknown])

    is_valid, errors = validate_labor_data(labor_data, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    if session is not None:
        return _update_labor_record_impl(labor_record_id, labor_data, session)
    try:
        with session_scope() as session:
            return _update_labor_record_impl(labor_record_id, labor_data, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update labor record {labor_record_id}", original_error=e)


def _update_labor_record_impl(labor_record_id: int, labor_data: Dict[str, Any], session) -> LaborRecord:
    record = _get_labor_record_impl(labor_record_id, session)

    if "pie_name" in labor_data:
        pie_name = labor_data["pie_name"].strip()
        existing = _find_by_pie_name(session, pie_name)
        if existing is not None and existing.id != record.id:
            raise DuplicateLaborRecord(pie_name)
        record.pie_name = pie_name

    if "cost_per_hour" in labor_data:
        record.cost_per_hour = to_decimal(labor_data["cost_per_hour"], "cost_per_hour")
    if "minutes_per_pie" in labor_data:
        record.minutes_per_pie = to_decimal(labor_data["minutes_per_pie"], "minutes_per_pie")

    if "cost_per_hour" in labor_data or "minutes_per_pie" in labor_data:
        record.recalculate()

    session.flush()
    log_operation(
        logger,
        operation="update_labor_record",
        outcome="success",
        labor_record_id=record.id,
        labor_cost_per_pie=str(record.labor_cost_per_pie),
    )
    return record


def delete_labor_record(labor_record_id: int, *, session=None) -> bool:
    """Delete a labor record.

    Raises:
        LaborRecordNotFound: If the ID doesn't exist
    """
    if session is not None:
        return _delete_labor_record_impl(labor_record_id, session)
    try:
        with session_scope() as session:
            return _delete_labor_record_impl(labor_record_id, session)
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete labor record {labor_record_id}", original_error=e)


def _delete_labor_record_impl(labor_record_id: int, session) -> bool:
    record = _get_labor_record_impl(labor_record_id, session)
    session.delete(record)
    session.flush()
    log_operation(logger, operation="delete_labor_record", outcome="success", labor_record_id=labor_record_id)
    return True

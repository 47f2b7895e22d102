"""Consumption Service - Recording and managing consumption events.

This module records consumption against inventory items and keeps item
balances consistent when records are edited or removed.

All functions are stateless and use session_scope() for transaction management.

Recording a consumption:
    1. Request validation: finite quantity > 0, unit present, notes length
    2. Strict unit conversion into the item's stock unit; units from
       different families are refused (IncompatibleUnitsError)
    3. Balance check via consumption_validator (InsufficientStock)
    4. Record insert, balance decrement, status refresh, last_consumed_at,
       all in one transaction

Edit rules:
    - Admins may edit any record
    - The user who recorded a consumption may edit it within
      CONSUMPTION_EDIT_WINDOW_HOURS
    - Only admins may delete records
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from spog.models import ConsumptionRecord, InventoryItem, User
from spog.utils.constants import CONSUMPTION_EDIT_WINDOW_HOURS, MAX_NOTES_LENGTH
from spog.utils.datetime_utils import ensure_aware, utc_now
from spog.utils.validators import (
    validate_consumption_request,
    validate_positive_number,
    validate_string_length,
)
from spog.services.consumption_validator import ConsumptionRequest, evaluate_consumption
from spog.services.database import session_scope
from spog.services.dto import PageParams, PageResult
from spog.services.exceptions import (
    ConsumptionRecordNotFound,
    DatabaseError,
    InsufficientStock,
    InvalidQuantity,
    PermissionDenied,
    ServiceError,
    UserNotFound,
    ValidationError,
)
from spog.services.inventory_service import _get_item, snapshot_of
from spog.services.logging_utils import get_service_logger, log_operation
from spog.services.unit_converter import convert_strict

logger = get_service_logger(__name__)

SORT_FIELDS = {
    "recorded_at": ConsumptionRecord.recorded_at,
    "quantity": ConsumptionRecord.quantity,
    "created_at": ConsumptionRecord.created_at,
}

SUMMARY_TYPES = ("item", "user")


def _get_record(sess: Session, record_id: int) -> ConsumptionRecord:
    record = sess.get(ConsumptionRecord, record_id)
    if record is None:
        raise ConsumptionRecordNotFound(record_id)
    return record


def _validate_request(quantity: Any, unit: Optional[str], notes: Optional[str]) -> None:
    is_valid, _ = validate_positive_number(quantity, "Quantity")
    if not is_valid:
        raise InvalidQuantity(quantity)

    is_valid, errors = validate_consumption_request(quantity, unit, notes)
    if not is_valid:
        raise ValidationError(errors)


def can_edit_record(record: ConsumptionRecord, actor: User, now: Optional[datetime] = None) -> bool:
    """Check whether actor may edit a consumption record.

    Admins can edit any record; owners can edit their own records for
    CONSUMPTION_EDIT_WINDOW_HOURS after they were created.
    """
    if actor.is_admin:
        return True
    if record.user_id is None or record.user_id != actor.id:
        return False
    now = now or utc_now()
    return now - ensure_aware(record.created_at) <= timedelta(hours=CONSUMPTION_EDIT_WINDOW_HOURS)


def record_consumption(
    item_id: int,
    user_id: Optional[int],
    quantity: float,
    unit: str,
    notes: Optional[str] = None,
    recorded_at: Optional[datetime] = None,
    session: Optional[Session] = None,
) -> ConsumptionRecord:
    """Record a consumption event and decrement the item's balance.

    Args:
        item_id: Item consumed from
        user_id: User recording the consumption (None for system imports)
        quantity: Amount consumed (> 0)
        unit: Unit of quantity; must be convertible into the stock unit
        notes: Optional notes (max 1000 characters)
        recorded_at: When the consumption happened (defaults to now)
        session: Optional database session

    Returns:
        ConsumptionRecord: The stored record

    Raises:
        InvalidQuantity: If quantity is zero, negative or not finite
        ValidationError: If unit or notes are invalid
        InventoryItemNotFound: If item_id doesn't exist
        UserNotFound: If user_id doesn't exist
        IncompatibleUnitsError: If unit cannot be converted into the stock unit
        InsufficientStock: If the consumption exceeds the balance
        DatabaseError: If database operation fails

    Example:
        >>> record = record_consumption(item.id, user.id, 250, "mL")  # item in L
        >>> record.quantity_in_stock_unit
        0.25
    """
    _validate_request(quantity, unit, notes)
    quantity = float(quantity)
    unit = unit.strip()

    def _impl(sess: Session) -> ConsumptionRecord:
        item = _get_item(sess, item_id)
        if user_id is not None and sess.get(User, user_id) is None:
            raise UserNotFound(user_id)

        decision = evaluate_consumption(
            snapshot_of(item), ConsumptionRequest(quantity=quantity, unit=unit), strict=True
        )
        if not decision.is_valid:
            log_operation(
                logger,
                "record_consumption",
                "insufficient_stock",
                level=logging.WARNING,
                item_id=item_id,
                requested=quantity,
                unit=unit,
                available=decision.max_quantity,
            )
            raise InsufficientStock(item.name, quantity, unit, decision.max_quantity)

        record = ConsumptionRecord(
            inventory_item_id=item.id,
            user_id=user_id,
            quantity=quantity,
            unit=unit,
            quantity_in_stock_unit=decision.converted_quantity,
            notes=notes,
            recorded_at=recorded_at or utc_now(),
        )
        sess.add(record)

        item.current_balance = decision.new_balance
        item.last_consumed_at = record.recorded_at
        item.updated_by = user_id
        item.refresh_status()

        sess.flush()
        sess.refresh(record)
        log_operation(
            logger,
            "record_consumption",
            "success",
            record_id=record.id,
            item_id=item_id,
            converted=decision.converted_quantity,
            new_balance=item.current_balance,
            status=item.status,
        )
        return record

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError("Failed to record consumption", original_error=e)


def check_consumption(item_id: int, quantity: float, unit: str) -> Dict[str, Any]:
    """Dry-run a consumption without writing anything.

    Runs the same request validation and strict unit check as
    record_consumption(), then reports the validator's decision instead of
    raising InsufficientStock.

    Returns:
        Dict with is_valid, requested quantity and unit, converted_quantity
        (stock unit), new_balance, max_quantity (request unit), the status
        the item would end up with, and the stock unit
    """
    _validate_request(quantity, unit, None)
    quantity = float(quantity)
    unit = unit.strip()

    with session_scope() as session:
        item = _get_item(session, item_id)
        decision = evaluate_consumption(
            snapshot_of(item), ConsumptionRequest(quantity=quantity, unit=unit), strict=True
        )
        return {
            "item_id": item.id,
            "is_valid": decision.is_valid,
            "quantity": quantity,
            "unit": unit,
            "stock_unit": item.unit,
            "converted_quantity": decision.converted_quantity,
            "new_balance": decision.new_balance,
            "max_quantity": decision.max_quantity,
            "status": decision.status.value,
        }


def get_record(record_id: int, session: Optional[Session] = None) -> ConsumptionRecord:
    """Get a consumption record by ID.

    Raises:
        ConsumptionRecordNotFound: If record_id doesn't exist
    """
    if session is not None:
        return _get_record(session, record_id)
    with session_scope() as sess:
        return _get_record(sess, record_id)


def list_records(
    item_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0,
    sort_by: str = "recorded_at",
    sort_order: str = "desc",
) -> PageResult[ConsumptionRecord]:
    """List consumption records with filtering and pagination.

    Args:
        item_id: Only records for this item
        user_id: Only records by this user
        start_date / end_date: Inclusive recorded_at range
        limit / offset: Pagination
        sort_by: recorded_at, quantity or created_at
        sort_order: "asc" or "desc"

    Raises:
        ValidationError: If paging or sorting parameters are invalid
    """
    errors = []
    try:
        page = PageParams(limit=limit, offset=offset)
    except ValueError as e:
        errors.append(f"Pagination: {e}")
    if sort_by not in SORT_FIELDS:
        errors.append(f"Sort: Unknown field '{sort_by}'. Valid: {', '.join(SORT_FIELDS)}")
    if sort_order not in ("asc", "desc"):
        errors.append("Sort: Order must be 'asc' or 'desc'")
    if errors:
        raise ValidationError(errors)

    with session_scope() as session:
        q = session.query(ConsumptionRecord)
        if item_id is not None:
            q = q.filter(ConsumptionRecord.inventory_item_id == item_id)
        if user_id is not None:
            q = q.filter(ConsumptionRecord.user_id == user_id)
        if start_date is not None:
            q = q.filter(ConsumptionRecord.recorded_at >= start_date)
        if end_date is not None:
            q = q.filter(ConsumptionRecord.recorded_at <= end_date)

        total = q.count()

        column = SORT_FIELDS[sort_by]
        order = column.desc() if sort_order == "desc" else column.asc()
        records = (
            q.order_by(order, ConsumptionRecord.id).limit(page.limit).offset(page.offset).all()
        )
        return PageResult(items=records, total=total, limit=page.limit, offset=page.offset)


def update_record(
    record_id: int,
    actor: User,
    quantity: Optional[float] = None,
    unit: Optional[str] = None,
    notes: Optional[str] = None,
    session: Optional[Session] = None,
) -> ConsumptionRecord:
    """Edit a consumption record and rebalance its item.

    The item balance is adjusted by the difference between the old and the
    new amount (both in the stock unit).

    Args:
        record_id: Record to edit
        actor: User making the change
        quantity: New quantity (> 0), or None to keep
        unit: New unit, or None to keep
        notes: New notes, or None to keep

    Raises:
        ConsumptionRecordNotFound: If record_id doesn't exist
        PermissionDenied: If actor may not edit the record
        InvalidQuantity / ValidationError: If the new values are invalid
        IncompatibleUnitsError: If unit cannot be converted into the stock unit
        InsufficientStock: If the increase exceeds the item's balance
    """
    if quantity is not None:
        is_valid, _ = validate_positive_number(quantity, "Quantity")
        if not is_valid:
            raise InvalidQuantity(quantity)
    if unit is not None and not unit.strip():
        raise ValidationError(["Unit: This field is required"])
    is_valid, error = validate_string_length(notes, MAX_NOTES_LENGTH, "Notes")
    if not is_valid:
        raise ValidationError([error])

    def _impl(sess: Session) -> ConsumptionRecord:
        record = _get_record(sess, record_id)
        if not can_edit_record(record, actor):
            raise PermissionDenied(
                "consumption:update",
                "Only admins, or the recording user within "
                f"{CONSUMPTION_EDIT_WINDOW_HOURS} hours, can edit this record",
            )

        item = record.inventory_item

        if quantity is not None or unit is not None:
            new_quantity = float(quantity) if quantity is not None else record.quantity
            new_unit = unit.strip() if unit is not None else record.unit
            new_converted = convert_strict(new_quantity, new_unit, item.unit)
            delta = new_converted - record.quantity_in_stock_unit

            if item.current_balance - delta < 0:
                available = record.quantity_in_stock_unit + item.current_balance
                raise InsufficientStock(
                    item.name,
                    new_quantity,
                    new_unit,
                    convert_strict(available, item.unit, new_unit),
                )

            item.current_balance = item.current_balance - delta
            if item.current_balance > item.original_amount:
                item.original_amount = item.current_balance
            item.updated_by = actor.id
            item.refresh_status()

            record.quantity = new_quantity
            record.unit = new_unit
            record.quantity_in_stock_unit = new_converted

        if notes is not None:
            record.notes = notes

        sess.flush()
        log_operation(
            logger,
            "update_record",
            "success",
            record_id=record_id,
            actor_id=actor.id,
            new_balance=item.current_balance,
        )
        return record

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to update consumption record {record_id}", original_error=e)


def delete_record(record_id: int, actor: User, session: Optional[Session] = None) -> None:
    """Delete a consumption record and give its amount back to the item.

    Raises:
        ConsumptionRecordNotFound: If record_id doesn't exist
        PermissionDenied: If actor is not an admin
    """

    def _impl(sess: Session) -> None:
        record = _get_record(sess, record_id)
        if not actor.is_admin:
            raise PermissionDenied(
                "consumption:delete", "Only admins can delete consumption records"
            )

        item = record.inventory_item
        item.current_balance = item.current_balance + record.quantity_in_stock_unit
        if item.current_balance > item.original_amount:
            item.original_amount = item.current_balance
        item.updated_by = actor.id
        item.refresh_status()

        sess.delete(record)
        sess.flush()
        log_operation(
            logger,
            "delete_record",
            "success",
            record_id=record_id,
            item_id=item.id,
            restored=record.quantity_in_stock_unit,
        )

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to delete consumption record {record_id}", original_error=e)


def get_summary(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    summary_type: str = "item",
) -> List[Dict[str, Any]]:
    """Aggregate consumption per item or per user.

    Args:
        start_date / end_date: Inclusive recorded_at range
        summary_type: "item" or "user"

    Returns:
        For "item": item_id, item_name, category, unit, total_consumed
        (stock unit), record_count, last_consumed.
        For "user": user_id, user_name, email, total_records,
        items_consumed, last_consumption.
        Sorted by total_consumed / total_records, highest first.

    Raises:
        ValidationError: If summary_type is unknown
    """
    if summary_type not in SUMMARY_TYPES:
        raise ValidationError([f"Summary type: Must be one of {', '.join(SUMMARY_TYPES)}"])

    with session_scope() as session:
        if summary_type == "item":
            q = session.query(
                InventoryItem.id,
                InventoryItem.name,
                InventoryItem.category,
                InventoryItem.unit,
                func.sum(ConsumptionRecord.quantity_in_stock_unit),
                func.count(ConsumptionRecord.id),
                func.max(ConsumptionRecord.recorded_at),
            ).join(ConsumptionRecord, ConsumptionRecord.inventory_item_id == InventoryItem.id)
            group_by = (InventoryItem.id,)
        else:
            q = session.query(
                User.id,
                User.first_name,
                User.last_name,
                User.email,
                func.count(ConsumptionRecord.id),
                func.count(func.distinct(ConsumptionRecord.inventory_item_id)),
                func.max(ConsumptionRecord.recorded_at),
            ).join(ConsumptionRecord, ConsumptionRecord.user_id == User.id)
            group_by = (User.id,)

        if start_date is not None:
            q = q.filter(ConsumptionRecord.recorded_at >= start_date)
        if end_date is not None:
            q = q.filter(ConsumptionRecord.recorded_at <= end_date)

        rows = q.group_by(*group_by).all()

    if summary_type == "item":
        summary = [
            {
                "item_id": item_id,
                "item_name": name,
                "category": category,
                "unit": unit,
                "total_consumed": total or 0.0,
                "record_count": count,
                "last_consumed": ensure_aware(last).isoformat() if last else None,
            }
            for item_id, name, category, unit, total, count, last in rows
        ]
        return sorted(summary, key=lambda row: row["total_consumed"], reverse=True)

    summary = [
        {
            "user_id": user_id,
            "user_name": f"{first} {last_name}".strip(),
            "email": email,
            "total_records": count,
            "items_consumed": distinct_items,
            "last_consumption": ensure_aware(last).isoformat() if last else None,
        }
        for user_id, first, last_name, email, count, distinct_items, last in rows
    ]
    return sorted(summary, key=lambda row: row["total_records"], reverse=True)

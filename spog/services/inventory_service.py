"""Inventory Service - SPOG inventory item management.

This module provides business logic for inventory items: creation, lookup,
filtered listing, updates, balance adjustments and refills.

All functions are stateless and use session_scope() for transaction management.

Key Features:
- Stock status is re-derived (stock_status.classify) on every balance or
  original-amount change; it is never written directly
- Refills convert the refill amount into the stock unit with strict,
  family-aware conversion
- get_consumption_limits() exposes the maximum consumable amount for
  consumption forms

Example Usage:
      >>> from spog.services.inventory_service import create_item, refill_item
      >>> item = create_item({
      ...     "name": "PR-1422 B2 Sealant",
      ...     "category": "Sealant",
      ...     "unit": "L",
      ...     "original_amount": 10,
      ... })
      >>> item.status
      'normal'
      >>> refill_item(item.id, 500, "mL").current_balance
      10.5
"""

from typing import Any, Dict, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from spog.models import ConsumptionRecord, InventoryItem, Location
from spog.models.enums import StockStatus
from spog.utils.datetime_utils import utc_now
from spog.utils.validators import (
    validate_inventory_item_data,
    validate_non_negative_number,
    validate_positive_number,
    validate_unit,
)
from spog.services.consumption_validator import InventorySnapshot, get_max_consumption_amount
from spog.services.database import session_scope
from spog.services.dto import PageParams, PageResult
from spog.services.exceptions import (
    DatabaseError,
    InventoryItemNotFound,
    ItemInUse,
    LocationNotFound,
    ServiceError,
    ValidationError,
)
from spog.services.logging_utils import get_service_logger, log_operation
from spog.services.unit_converter import convert_strict

logger = get_service_logger(__name__)

_CREATE_FIELDS = (
    "name",
    "description",
    "category",
    "location_id",
    "current_balance",
    "original_amount",
    "minimum_quantity",
    "unit",
    "consumption_unit",
    "expiry_date",
    "batch_number",
)

# Balance changes go through adjust_balance() / refill_item() / consumption
_UPDATE_FIELDS = tuple(f for f in _CREATE_FIELDS if f != "current_balance")

SORT_FIELDS = {
    "name": InventoryItem.name,
    "category": InventoryItem.category,
    "current_balance": InventoryItem.current_balance,
    "status": InventoryItem.status,
    "expiry_date": InventoryItem.expiry_date,
    "created_at": InventoryItem.created_at,
    "updated_at": InventoryItem.updated_at,
}


def _get_item(sess: Session, item_id: int) -> InventoryItem:
    item = sess.get(InventoryItem, item_id)
    if item is None:
        raise InventoryItemNotFound(item_id)
    return item


def _check_location(sess: Session, location_id: Optional[int]) -> None:
    if location_id is not None and sess.get(Location, location_id) is None:
        raise LocationNotFound(location_id)


def snapshot_of(item: InventoryItem) -> InventorySnapshot:
    """Build the consumption-validator view of an item."""
    return InventorySnapshot(
        current_balance=item.current_balance,
        original_amount=item.original_amount,
        unit=item.unit,
    )


def create_item(
    data: Dict[str, Any], user_id: Optional[int] = None, session: Optional[Session] = None
) -> InventoryItem:
    """Create an inventory item.

    Args:
        data: Item fields. Required: name, category, unit, original_amount.
            current_balance defaults to original_amount.
        user_id: User creating the item
        session: Optional database session

    Returns:
        InventoryItem: The created item with its derived status

    Raises:
        ValidationError: If a field is invalid or the balance exceeds the
            original amount
        LocationNotFound: If location_id doesn't exist
        DatabaseError: If database operation fails
    """
    fields = {k: v for k, v in data.items() if k in _CREATE_FIELDS}

    is_valid, errors = validate_inventory_item_data(fields)
    if not is_valid:
        raise ValidationError(errors)

    original_amount = float(fields["original_amount"])
    current_balance = fields.get("current_balance")
    current_balance = original_amount if current_balance is None else float(current_balance)
    if current_balance > original_amount:
        raise ValidationError(["Current balance: Cannot exceed the original amount"])

    fields.update(
        name=fields["name"].strip(),
        original_amount=original_amount,
        current_balance=current_balance,
        minimum_quantity=float(fields.get("minimum_quantity") or 0.0),
    )

    def _impl(sess: Session) -> InventoryItem:
        _check_location(sess, fields.get("location_id"))

        item = InventoryItem(**fields, created_by=user_id, updated_by=user_id)
        item.refresh_status()
        sess.add(item)
        sess.flush()
        sess.refresh(item)
        log_operation(
            logger, "create_item", "success", item_id=item.id, status=item.status, user_id=user_id
        )
        return item

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError("Failed to create inventory item", original_error=e)


def get_item(item_id: int, session: Optional[Session] = None) -> InventoryItem:
    """Get an inventory item by ID.

    Raises:
        InventoryItemNotFound: If item_id doesn't exist
    """
    if session is not None:
        return _get_item(session, item_id)
    with session_scope() as sess:
        return _get_item(sess, item_id)


def list_items(
    category: Optional[str] = None,
    location_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    needs_restock: Optional[bool] = None,
    limit: int = 50,
    offset: int = 0,
    sort_by: str = "name",
    sort_order: str = "asc",
) -> PageResult[InventoryItem]:
    """List inventory items with filtering, sorting and pagination.

    Args:
        category: Exact category filter
        location_id: Location filter
        status: normal / low / critical
        search: Case-insensitive substring of name, description or batch number
        needs_restock: True for items at or below their minimum quantity
        limit: Page size (1-1000)
        offset: Items to skip
        sort_by: One of SORT_FIELDS
        sort_order: "asc" or "desc"

    Returns:
        PageResult with the page of items and the total match count

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
    if status is not None and status not in {s.value for s in StockStatus}:
        errors.append(f"Status: Unknown status '{status}'")
    if errors:
        raise ValidationError(errors)

    with session_scope() as session:
        q = session.query(InventoryItem)

        if category:
            q = q.filter(InventoryItem.category == category)
        if location_id is not None:
            q = q.filter(InventoryItem.location_id == location_id)
        if status:
            q = q.filter(InventoryItem.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(
                or_(
                    InventoryItem.name.ilike(pattern),
                    InventoryItem.description.ilike(pattern),
                    InventoryItem.batch_number.ilike(pattern),
                )
            )
        if needs_restock is True:
            q = q.filter(InventoryItem.current_balance <= InventoryItem.minimum_quantity)
        elif needs_restock is False:
            q = q.filter(InventoryItem.current_balance > InventoryItem.minimum_quantity)

        total = q.count()

        column = SORT_FIELDS[sort_by]
        order = column.desc() if sort_order == "desc" else column.asc()
        items = q.order_by(order, InventoryItem.id).limit(page.limit).offset(page.offset).all()

        return PageResult(items=items, total=total, limit=page.limit, offset=page.offset)


def _change_stock_unit(sess: Session, item: InventoryItem, new_unit: str) -> None:
    """Re-express the item's stored quantities and its history in new_unit.

    Raises:
        IncompatibleUnitsError: If the old and new units cannot be converted
    """
    old_unit = item.unit
    item.current_balance = convert_strict(item.current_balance, old_unit, new_unit)
    item.original_amount = convert_strict(item.original_amount, old_unit, new_unit)
    item.minimum_quantity = convert_strict(item.minimum_quantity or 0.0, old_unit, new_unit)

    records = (
        sess.query(ConsumptionRecord)
        .filter(ConsumptionRecord.inventory_item_id == item.id)
        .all()
    )
    for record in records:
        record.quantity_in_stock_unit = convert_strict(
            record.quantity_in_stock_unit, old_unit, new_unit
        )
    item.unit = new_unit
    log_operation(
        logger,
        "change_stock_unit",
        "success",
        item_id=item.id,
        from_unit=old_unit,
        to_unit=new_unit,
        records=len(records),
    )


def update_item(
    item_id: int,
    updates: Dict[str, Any],
    user_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> InventoryItem:
    """Update inventory item fields.

    current_balance cannot be set here; use adjust_balance(). Changing
    original_amount re-derives the status. Changing unit converts the
    balance, original amount, minimum quantity and every consumption
    record's stock-unit quantity into the new unit; an original_amount
    given in the same call is read in the new unit.

    Raises:
        InventoryItemNotFound: If item_id doesn't exist
        ValidationError: If a field is invalid, or original_amount would
            drop below the current balance
        LocationNotFound: If location_id doesn't exist
        IncompatibleUnitsError: If unit cannot be converted from the current unit
    """
    updates = {k: v for k, v in updates.items() if k in _UPDATE_FIELDS}

    is_valid, errors = validate_inventory_item_data(updates, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    def _impl(sess: Session) -> InventoryItem:
        item = _get_item(sess, item_id)

        if "location_id" in updates:
            _check_location(sess, updates["location_id"])
        if "unit" in updates:
            updates["unit"] = updates["unit"].strip()
            if updates["unit"] != item.unit:
                _change_stock_unit(sess, item, updates["unit"])
        if "original_amount" in updates:
            updates["original_amount"] = float(updates["original_amount"])
            if updates["original_amount"] < item.current_balance:
                raise ValidationError(
                    ["Original amount: Cannot be less than the current balance"]
                )
        if "name" in updates:
            updates["name"] = updates["name"].strip()

        item.update_from_dict(updates)
        item.updated_by = user_id
        item.refresh_status()
        sess.flush()
        sess.refresh(item)
        log_operation(
            logger, "update_item", "success", item_id=item_id, fields=sorted(updates)
        )
        return item

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to update inventory item {item_id}", original_error=e)


def delete_item(item_id: int, force: bool = False, session: Optional[Session] = None) -> None:
    """Delete an inventory item.

    Args:
        item_id: Item to delete
        force: Also delete the item's consumption history

    Raises:
        InventoryItemNotFound: If item_id doesn't exist
        ItemInUse: If consumption records exist and force is False
    """

    def _impl(sess: Session) -> None:
        item = _get_item(sess, item_id)
        record_count = (
            sess.query(func.count(ConsumptionRecord.id))
            .filter(ConsumptionRecord.inventory_item_id == item_id)
            .scalar()
        )
        if record_count and not force:
            raise ItemInUse(item_id, record_count)

        sess.delete(item)
        sess.flush()
        log_operation(
            logger, "delete_item", "success", item_id=item_id, deleted_records=record_count
        )

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to delete inventory item {item_id}", original_error=e)


def adjust_balance(
    item_id: int,
    new_balance: float,
    reason: Optional[str] = None,
    user_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> InventoryItem:
    """Set an item's balance directly (stock count correction).

    A balance above the original amount raises the original amount with it.

    Args:
        item_id: Item to adjust
        new_balance: Counted balance, in the item's stock unit
        reason: Why the balance was corrected (logged)
        user_id: User making the correction

    Raises:
        InventoryItemNotFound: If item_id doesn't exist
        ValidationError: If new_balance is negative or not a number
    """
    is_valid, error = validate_non_negative_number(new_balance, "Balance")
    if not is_valid:
        raise ValidationError([error])
    new_balance = float(new_balance)

    def _impl(sess: Session) -> InventoryItem:
        item = _get_item(sess, item_id)
        previous = item.current_balance

        item.current_balance = new_balance
        if new_balance > item.original_amount:
            item.original_amount = new_balance
        item.updated_by = user_id
        item.refresh_status()
        sess.flush()
        log_operation(
            logger,
            "adjust_balance",
            "success",
            item_id=item_id,
            previous_balance=previous,
            new_balance=new_balance,
            reason=reason,
            user_id=user_id,
        )
        return item

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to adjust balance of item {item_id}", original_error=e)


def refill_item(
    item_id: int,
    amount: float,
    unit: Optional[str] = None,
    user_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> InventoryItem:
    """Add stock to an item.

    Args:
        item_id: Item to refill
        amount: Amount added (> 0)
        unit: Unit of amount; defaults to the item's stock unit

    Returns:
        InventoryItem: Item with the new balance and last_refilled_at set

    Raises:
        InventoryItemNotFound: If item_id doesn't exist
        ValidationError: If amount is not positive
        IncompatibleUnitsError: If unit cannot be converted into the stock unit
    """
    is_valid, error = validate_positive_number(amount, "Amount")
    if not is_valid:
        raise ValidationError([error])

    def _impl(sess: Session) -> InventoryItem:
        item = _get_item(sess, item_id)
        added = convert_strict(float(amount), unit or item.unit, item.unit)

        item.current_balance = item.current_balance + added
        if item.current_balance > item.original_amount:
            item.original_amount = item.current_balance
        item.last_refilled_at = utc_now()
        item.updated_by = user_id
        item.refresh_status()
        sess.flush()
        log_operation(
            logger,
            "refill_item",
            "success",
            item_id=item_id,
            added=added,
            new_balance=item.current_balance,
        )
        return item

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to refill item {item_id}", original_error=e)


def get_consumption_limits(
    item_id: int, consumption_unit: Optional[str] = None
) -> Dict[str, Any]:
    """Maximum amount that can be consumed from an item.

    Args:
        item_id: Item to check
        consumption_unit: Unit the user will enter; defaults to the item's
            consumption_unit, then its stock unit

    Returns:
        Dict with item_id, stock_unit, available_balance, consumption_unit
        and max_consumption (in consumption_unit)

    Raises:
        InventoryItemNotFound: If item_id doesn't exist
        ValidationError: If consumption_unit is invalid
        IncompatibleUnitsError: If consumption_unit cannot be converted
    """
    if consumption_unit is not None:
        is_valid, error = validate_unit(consumption_unit)
        if not is_valid:
            raise ValidationError([error])

    item = get_item(item_id)
    unit = consumption_unit or item.consumption_unit or item.unit

    return {
        "item_id": item.id,
        "stock_unit": item.unit,
        "available_balance": item.current_balance,
        "consumption_unit": unit,
        "max_consumption": get_max_consumption_amount(
            item.current_balance, item.unit, unit, strict=True
        ),
    }

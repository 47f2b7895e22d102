"""Location Service - Storage location management.

All functions are stateless and use session_scope() for transaction
management. Each accepts an optional ``session`` so callers can compose
several operations in one transaction.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from spog.models import InventoryItem, Location
from spog.utils.constants import MAX_DESCRIPTION_LENGTH, MAX_NAME_LENGTH
from spog.utils.validators import validate_required_string, validate_string_length
from spog.services.database import session_scope
from spog.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    LocationInUse,
    LocationNotFound,
    ServiceError,
    ValidationError,
)
from spog.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

_UPDATABLE_FIELDS = ("name", "description", "is_active", "parent_id")


def _validate_location_data(data: Dict[str, Any], partial: bool = False) -> None:
    errors = []

    if not partial or "name" in data:
        is_valid, error = validate_required_string(data.get("name"), "Name")
        if is_valid:
            is_valid, error = validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Name")
        if not is_valid:
            errors.append(error)

    is_valid, error = validate_string_length(
        data.get("description"), MAX_DESCRIPTION_LENGTH, "Description"
    )
    if not is_valid:
        errors.append(error)

    if errors:
        raise ValidationError(errors)


def _check_unique_name(sess: Session, name: str, exclude_id: Optional[int] = None) -> None:
    q = sess.query(Location).filter(func.lower(Location.name) == name.strip().lower())
    if exclude_id is not None:
        q = q.filter(Location.id != exclude_id)
    if q.first() is not None:
        raise DuplicateNameError("Location", name.strip())


def _get_location(sess: Session, location_id: int) -> Location:
    location = sess.get(Location, location_id)
    if location is None:
        raise LocationNotFound(location_id)
    return location


def create_location(
    name: str,
    description: Optional[str] = None,
    parent_id: Optional[int] = None,
    session: Optional[Session] = None,
) -> Location:
    """Create a storage location.

    Args:
        name: Unique location name (case-insensitive)
        description: Optional description
        parent_id: Optional enclosing location
        session: Optional database session

    Returns:
        Location: The created location

    Raises:
        ValidationError: If name is empty or too long
        DuplicateNameError: If a location with that name exists
        LocationNotFound: If parent_id doesn't exist
        DatabaseError: If database operation fails
    """
    _validate_location_data({"name": name, "description": description})

    def _impl(sess: Session) -> Location:
        _check_unique_name(sess, name)
        if parent_id is not None:
            _get_location(sess, parent_id)

        location = Location(name=name.strip(), description=description, parent_id=parent_id)
        sess.add(location)
        sess.flush()
        log_operation(logger, "create_location", "success", location_id=location.id)
        return location

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError("Failed to create location", original_error=e)


def get_location(location_id: int, session: Optional[Session] = None) -> Location:
    """Get a location by ID.

    Raises:
        LocationNotFound: If location_id doesn't exist
    """
    if session is not None:
        return _get_location(session, location_id)
    with session_scope() as sess:
        return _get_location(sess, location_id)


def list_locations(include_inactive: bool = False) -> List[Dict[str, Any]]:
    """List locations ordered by name, each with its item count.

    Args:
        include_inactive: Include deactivated locations

    Returns:
        List of location dicts with an added ``item_count``
    """
    with session_scope() as session:
        counts = dict(
            session.query(InventoryItem.location_id, func.count(InventoryItem.id))
            .group_by(InventoryItem.location_id)
            .all()
        )

        q = session.query(Location)
        if not include_inactive:
            q = q.filter(Location.is_active.is_(True))

        result = []
        for location in q.order_by(Location.name).all():
            data = location.to_dict()
            data["item_count"] = counts.get(location.id, 0)
            result.append(data)
        return result


def update_location(
    location_id: int, updates: Dict[str, Any], session: Optional[Session] = None
) -> Location:
    """Update a location.

    Args:
        location_id: Location to update
        updates: Any of name, description, is_active, parent_id

    Raises:
        LocationNotFound: If location_id doesn't exist
        ValidationError: If a field is invalid or the location would become
            its own parent
        DuplicateNameError: If the new name is taken
    """
    updates = {k: v for k, v in updates.items() if k in _UPDATABLE_FIELDS}
    _validate_location_data(updates, partial=True)

    def _impl(sess: Session) -> Location:
        location = _get_location(sess, location_id)

        if "name" in updates:
            _check_unique_name(sess, updates["name"], exclude_id=location_id)
            updates["name"] = updates["name"].strip()

        if updates.get("parent_id") is not None:
            if updates["parent_id"] == location_id:
                raise ValidationError(["Parent: A location cannot be its own parent"])
            _get_location(sess, updates["parent_id"])

        location.update_from_dict(updates)
        sess.flush()
        log_operation(
            logger, "update_location", "success", location_id=location_id, fields=sorted(updates)
        )
        return location

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to update location {location_id}", original_error=e)


def delete_location(location_id: int, session: Optional[Session] = None) -> None:
    """Delete a location that holds no inventory items.

    Raises:
        LocationNotFound: If location_id doesn't exist
        LocationInUse: If inventory items are still stored there
    """

    def _impl(sess: Session) -> None:
        location = _get_location(sess, location_id)
        item_count = (
            sess.query(func.count(InventoryItem.id))
            .filter(InventoryItem.location_id == location_id)
            .scalar()
        )
        if item_count:
            raise LocationInUse(location_id, item_count)

        for child in list(location.children):
            child.parent = location.parent
        sess.delete(location)
        sess.flush()
        log_operation(logger, "delete_location", "success", location_id=location_id)

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to delete location {location_id}", original_error=e)

"""Service layer exception classes for the SPOG Inventory Tracker.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application. The HTTP layer maps each
family onto a status code in one place (see spog.api.app).

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidQuantity
    │   └── IncompatibleUnitsError
    ├── NotFoundError
    │   ├── LocationNotFound
    │   ├── InventoryItemNotFound
    │   ├── ConsumptionRecordNotFound
    │   └── UserNotFound
    ├── DuplicateNameError
    ├── LocationInUse
    ├── ItemInUse
    ├── InsufficientStock
    ├── AuthenticationError
    ├── PermissionDenied
    └── DatabaseError
"""

from typing import List, Optional


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


# ============================================================================
# Validation
# ============================================================================


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Args:
        errors: List of human-readable error messages
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class InvalidQuantity(ValidationError):
    """Raised when a quantity is zero, negative or not a finite number.

    Example:
        >>> raise InvalidQuantity(-5)
        InvalidQuantity: Validation failed: Quantity must be a finite number greater than 0, got -5
    """

    def __init__(self, quantity):
        self.quantity = quantity
        super().__init__([f"Quantity must be a finite number greater than 0, got {quantity}"])


class IncompatibleUnitsError(ValidationError):
    """Raised when two units cannot be converted into one another.

    Args:
        from_unit: Unit the value is expressed in
        to_unit: Unit that was requested
        reason: Why the conversion is refused

    Example:
        >>> raise IncompatibleUnitsError("L", "kg", "volume cannot be converted to weight")
        IncompatibleUnitsError: Validation failed: Cannot convert 'L' to 'kg': volume ...
    """

    def __init__(self, from_unit: str, to_unit: str, reason: str = ""):
        self.from_unit = from_unit
        self.to_unit = to_unit
        self.reason = reason
        message = f"Cannot convert '{from_unit}' to '{to_unit}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__([message])


# ============================================================================
# Not Found
# ============================================================================


class NotFoundError(ServiceError):
    """Raised when an entity cannot be found by ID."""

    entity = "Record"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} with ID {entity_id} not found")


class LocationNotFound(NotFoundError):
    """Raised when a storage location cannot be found by ID."""

    entity = "Location"


class InventoryItemNotFound(NotFoundError):
    """Raised when an inventory item cannot be found by ID.

    Example:
        >>> raise InventoryItemNotFound(456)
        InventoryItemNotFound: Inventory item with ID 456 not found
    """

    entity = "Inventory item"


class ConsumptionRecordNotFound(NotFoundError):
    entity = "Consumption record"


class UserNotFound(NotFoundError):
    entity = "User"


# ============================================================================
# Conflicts
# ============================================================================


class DuplicateNameError(ServiceError):
    """Raised when a unique name (location name, user email) is already taken.

    Args:
        entity: Kind of record, e.g. "Location"
        name: The value that already exists
    """

    def __init__(self, entity: str, name: str):
        self.entity = entity
        self.name = name
        super().__init__(f"{entity} '{name}' already exists")


class LocationInUse(ServiceError):
    """Raised when attempting to delete a location that still holds items."""

    def __init__(self, location_id: int, item_count: int):
        self.location_id = location_id
        self.item_count = item_count
        super().__init__(
            f"Cannot delete location {location_id}: holds {item_count} inventory item(s)"
        )


class ItemInUse(ServiceError):
    """Raised when attempting to delete an item that has consumption history.

    Args:
        item_id: The inventory item being deleted
        record_count: Number of consumption records referencing it
    """

    def __init__(self, item_id: int, record_count: int):
        self.item_id = item_id
        self.record_count = record_count
        super().__init__(
            f"Cannot delete inventory item {item_id}: used in {record_count} consumption record(s)"
        )


class InsufficientStock(ServiceError):
    """Raised when a consumption would drive the balance below zero.

    Args:
        item_name: Inventory item name
        requested: Requested amount, in the request unit
        unit: Request unit
        available: Maximum consumable amount, in the request unit
    """

    def __init__(self, item_name: str, requested: float, unit: str, available: float):
        self.item_name = item_name
        self.requested = requested
        self.unit = unit
        self.available = available
        super().__init__(
            f"Insufficient stock for {item_name}: "
            f"requested {requested:g} {unit}, available {available:g} {unit}"
        )


# ============================================================================
# Access
# ============================================================================


class AuthenticationError(ServiceError):
    """Raised for bad credentials, inactive accounts and invalid tokens."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class PermissionDenied(ServiceError):
    """Raised when a user lacks the permission an operation needs.

    Example:
        >>> raise PermissionDenied("inventory:delete")
        PermissionDenied: Permission 'inventory:delete' required
    """

    def __init__(self, permission: str, message: Optional[str] = None):
        self.permission = permission
        super().__init__(message or f"Permission '{permission}' required")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")

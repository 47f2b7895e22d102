"""
Input validation functions for the SPOG Inventory Tracker application.

This module provides validation functions for all user inputs including:
- Numeric validation (positive, non-negative, finite)
- String validation (length, format, required fields)
- Unit, category and role validation
- Email and password validation
- Aggregate validators for inventory items and consumption requests

Each single-field validator returns ``(is_valid, error_message)``; the
aggregate validators return ``(is_valid, list_of_errors)``.
"""

import math
import re
from typing import Any, List, Optional, Tuple

from spog.utils.constants import (
    ERROR_INVALID_CATEGORY,
    ERROR_INVALID_EMAIL,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_ROLE,
    ERROR_REQUIRED_FIELD,
    ERROR_WEAK_PASSWORD,
    INVENTORY_CATEGORIES,
    MAX_BATCH_NUMBER_LENGTH,
    MAX_DEPARTMENT_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_PERSON_NAME_LENGTH,
    MAX_QUANTITY,
    MAX_UNIT_LENGTH,
    MIN_ORIGINAL_AMOUNT,
    MIN_PASSWORD_LENGTH,
    USER_ROLES,
)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _to_finite_float(value: Any) -> Optional[float]:
    """Convert value to a finite float, or None if that is not possible."""
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
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
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


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a finite number greater than zero.

    NaN and infinities are rejected as invalid numbers.
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a finite number >= 0.
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_number_range(
    value: Any, min_value: float, max_value: float, field_name: str = "Field"
) -> Tuple[bool, str]:
    """
    Validate that a number is within a specified (inclusive) range.
    """
    num_value = _to_finite_float(value)
    if num_value is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if num_value < min_value or num_value > max_value:
        return False, f"{field_name}: Must be between {min_value} and {max_value}"
    return True, ""


def validate_unit(unit: Optional[str], field_name: str = "Unit") -> Tuple[bool, str]:
    """
    Validate a unit symbol.

    Any non-empty symbol up to MAX_UNIT_LENGTH characters is accepted;
    whether two units can be converted is decided by the unit converter.
    """
    is_valid, error = validate_required_string(unit, field_name)
    if not is_valid:
        return is_valid, error
    return validate_string_length(unit, MAX_UNIT_LENGTH, field_name)


def validate_category(category: Optional[str], field_name: str = "Category") -> Tuple[bool, str]:
    """
    Validate that a category is one of the SPOG categories.
    """
    if not category:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if category not in INVENTORY_CATEGORIES:
        return (
            False,
            f"{field_name}: {ERROR_INVALID_CATEGORY}. Valid: {', '.join(INVENTORY_CATEGORIES)}",
        )
    return True, ""


def validate_role(role: Optional[str], field_name: str = "Role") -> Tuple[bool, str]:
    """Validate that a role is admin, manager or user."""
    if not role:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if role not in USER_ROLES:
        return False, f"{field_name}: {ERROR_INVALID_ROLE}. Valid: {', '.join(USER_ROLES)}"
    return True, ""


def validate_email(email: Optional[str], field_name: str = "Email") -> Tuple[bool, str]:
    """Validate an email address (shape only)."""
    is_valid, error = validate_required_string(email, field_name)
    if not is_valid:
        return is_valid, error
    if len(email) > MAX_NAME_LENGTH or not _EMAIL_PATTERN.match(email.strip()):
        return False, f"{field_name}: {ERROR_INVALID_EMAIL}"
    return True, ""


def validate_password(password: Optional[str], field_name: str = "Password") -> Tuple[bool, str]:
    """
    Validate password strength.

    Passwords need MIN_PASSWORD_LENGTH characters including at least one
    letter and one digit.
    """
    if not password:
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    if (
        len(password) < MIN_PASSWORD_LENGTH
        or not re.search(r"[A-Za-z]", password)
        or not re.search(r"\d", password)
    ):
        return False, f"{field_name}: {ERROR_WEAK_PASSWORD}"
    return True, ""


def validate_consumption_request(
    quantity: Any, unit: Optional[str], notes: Optional[str] = None
) -> Tuple[bool, List[str]]:
    """
    Validate a consumption request before it reaches the balance check.

    Zero, negative and non-finite quantities are rejected here; the pure
    consumption validator deliberately does not check positivity.

    Args:
        quantity: Amount consumed
        unit: Unit the amount is expressed in
        notes: Optional free-text notes

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_positive_number(quantity, "Quantity")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_unit(unit, "Unit")
    if not is_valid:
        errors.append(error)

    is_valid, error = validate_string_length(notes, MAX_NOTES_LENGTH, "Notes")
    if not is_valid:
        errors.append(error)

    return len(errors) == 0, errors


def validate_inventory_item_data(data: dict, partial: bool = False) -> Tuple[bool, List[str]]:  # noqa: C901
    """
    Validate all fields for an inventory item.

    Args:
        data: Dictionary containing inventory item fields
        partial: If True, only validate the fields present (update semantics)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    def present(key: str) -> bool:
        return not partial or key in data

    if present("name"):
        is_valid, error = validate_required_string(data.get("name"), "Name")
        if not is_valid:
            errors.append(error)
        else:
            is_valid, error = validate_string_length(data.get("name"), MAX_NAME_LENGTH, "Name")
            if not is_valid:
                errors.append(error)

    if present("category"):
        is_valid, error = validate_category(data.get("category"))
        if not is_valid:
            errors.append(error)

    if present("unit"):
        is_valid, error = validate_unit(data.get("unit"))
        if not is_valid:
            errors.append(error)

    if data.get("consumption_unit"):
        is_valid, error = validate_unit(data.get("consumption_unit"), "Consumption unit")
        if not is_valid:
            errors.append(error)

    if present("original_amount"):
        is_valid, error = validate_number_range(
            data.get("original_amount"), MIN_ORIGINAL_AMOUNT, MAX_QUANTITY, "Original amount"
        )
        if not is_valid:
            errors.append(error)

    if data.get("current_balance") is not None:
        is_valid, error = validate_non_negative_number(
            data.get("current_balance"), "Current balance"
        )
        if not is_valid:
            errors.append(error)

    if data.get("minimum_quantity") is not None:
        is_valid, error = validate_non_negative_number(
            data.get("minimum_quantity"), "Minimum quantity"
        )
        if not is_valid:
            errors.append(error)

    for key, max_length, label in (
        ("description", MAX_DESCRIPTION_LENGTH, "Description"),
        ("batch_number", MAX_BATCH_NUMBER_LENGTH, "Batch number"),
    ):
        is_valid, error = validate_string_length(data.get(key), max_length, label)
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors


def validate_user_data(data: dict, partial: bool = False) -> Tuple[bool, List[str]]:
    """
    Validate user profile fields.

    Args:
        data: Dictionary with email, first_name, last_name, role, department
        partial: If True, only validate the fields present

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not partial or "email" in data:
        is_valid, error = validate_email(data.get("email"))
        if not is_valid:
            errors.append(error)

    for key, label in (("first_name", "First name"), ("last_name", "Last name")):
        if not partial or key in data:
            is_valid, error = validate_required_string(data.get(key), label)
            if not is_valid:
                errors.append(error)
                continue
            is_valid, error = validate_string_length(data.get(key), MAX_PERSON_NAME_LENGTH, label)
            if not is_valid:
                errors.append(error)

    if "role" in data:
        is_valid, error = validate_role(data.get("role"))
        if not is_valid:
            errors.append(error)

    is_valid, error = validate_string_length(
        data.get("department"), MAX_DEPARTMENT_LENGTH, "Department"
    )
    if not is_valid:
        errors.append(error)

    return len(errors) == 0, errors

"""
Consumption validation for inventory items.

Pure functions that decide whether a consumption request can be applied to
an inventory snapshot. Nothing here touches the database; the consumption
service reads the snapshot, calls these functions and persists the result.

Balance Rule:
    converted = convert(quantity, request unit -> stock unit)
    valid = converted <= balance and balance - converted >= 0

Both comparisons are kept; they can disagree at the boundary under
floating-point rounding.

Positivity is not checked here. Zero, negative and non-finite quantities
are rejected by the request validators (validate_consumption_request)
before a snapshot is evaluated.
"""

from dataclasses import dataclass

from spog.models.enums import StockStatus
from spog.services.stock_status import classify
from spog.services.unit_converter import convert_strict, convert_uom


@dataclass(frozen=True)
class InventorySnapshot:
    """State of one inventory item when a consumption is evaluated."""

    current_balance: float
    original_amount: float
    unit: str


@dataclass(frozen=True)
class ConsumptionRequest:
    """One usage event: an amount and the unit it was entered in."""

    quantity: float
    unit: str


@dataclass(frozen=True)
class ConsumptionDecision:
    """
    Outcome of evaluate_consumption().

    Attributes:
        is_valid: True if the request fits in the balance
        converted_quantity: Request quantity in the stock unit
        new_balance: Balance after applying the request, in the stock unit
            (may be negative when is_valid is False)
        max_quantity: Largest admissible quantity, in the request unit
        status: Stock status the item would have after the consumption
    """

    is_valid: bool
    converted_quantity: float
    new_balance: float
    max_quantity: float
    status: StockStatus


def _convert(value: float, from_unit: str, to_unit: str, strict: bool) -> float:
    if strict:
        return convert_strict(value, from_unit, to_unit)
    return convert_uom(value, from_unit, to_unit)


def is_valid_consumption(
    consumption_amount: float,
    consumption_unit: str,
    available_balance: float,
    stock_unit: str,
    strict: bool = False,
) -> bool:
    """
    Check whether a consumption fits in the available balance.

    Args:
        consumption_amount: Amount to consume
        consumption_unit: Unit of consumption_amount
        available_balance: Balance on hand
        stock_unit: Unit of available_balance
        strict: If True, convert with convert_strict() so units from
            different families raise instead of converting 1:1

    Returns:
        True if the consumption can be applied (boundary inclusive)

    Raises:
        IncompatibleUnitsError: Only when strict=True and the units
            cannot be converted

    Examples:
        >>> is_valid_consumption(50, "L", 50, "L")
        True
        >>> is_valid_consumption(250, "mL", 1, "L")
        True
    """
    converted_amount = _convert(consumption_amount, consumption_unit, stock_unit, strict)
    new_balance = available_balance - converted_amount
    return converted_amount <= available_balance and new_balance >= 0


def get_max_consumption_amount(
    available_balance: float,
    stock_unit: str,
    consumption_unit: str,
    strict: bool = False,
) -> float:
    """
    Largest amount a user may consume, expressed in the consumption unit.

    Used to pre-fill the maximum of a consumption form.

    Examples:
        >>> get_max_consumption_amount(1, "L", "mL")
        1000
    """
    return _convert(available_balance, stock_unit, consumption_unit, strict)


def calculate_new_balance(
    consumption_amount: float,
    consumption_unit: str,
    available_balance: float,
    stock_unit: str,
    strict: bool = False,
) -> float:
    """
    Balance left after a consumption, in the stock unit.

    No validity check is made; a negative result means the consumption
    does not fit.
    """
    return available_balance - _convert(consumption_amount, consumption_unit, stock_unit, strict)


def evaluate_consumption(
    snapshot: InventorySnapshot, request: ConsumptionRequest, strict: bool = False
) -> ConsumptionDecision:
    """
    Evaluate a consumption request against an inventory snapshot.

    The snapshot is not modified.

    Args:
        snapshot: Current item state
        request: Requested consumption
        strict: Use family-aware conversion (see is_valid_consumption)

    Returns:
        ConsumptionDecision with the converted quantity, the resulting
        balance and the status the item would end up with
    """
    converted = _convert(request.quantity, request.unit, snapshot.unit, strict)
    new_balance = snapshot.current_balance - converted
    is_valid = is_valid_consumption(
        request.quantity, request.unit, snapshot.current_balance, snapshot.unit, strict
    )
    max_quantity = get_max_consumption_amount(
        snapshot.current_balance, snapshot.unit, request.unit, strict
    )

    return ConsumptionDecision(
        is_valid=is_valid,
        converted_quantity=converted,
        new_balance=new_balance,
        max_quantity=max_quantity,
        status=classify(max(new_balance, 0.0), snapshot.original_amount),
    )

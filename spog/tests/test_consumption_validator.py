"""
Unit tests for the consumption validator.

The validator is pure: it converts the request into the stock unit and
compares against the balance without touching the database.
"""

import pytest

from spog.models.enums import StockStatus
from spog.services.consumption_validator import (
    ConsumptionRequest,
    InventorySnapshot,
    calculate_new_balance,
    evaluate_consumption,
    get_max_consumption_amount,
    is_valid_consumption,
)
from spog.services.exceptions import IncompatibleUnitsError


class TestIsValidConsumption:
    """Test the balance rule."""

    def test_exact_balance_is_valid(self):
        """Test consuming the whole balance is allowed."""
        assert is_valid_consumption(50, "L", 50, "L") is True

    def test_just_over_balance_is_invalid(self):
        """Test consuming slightly more than the balance is refused."""
        assert is_valid_consumption(50.0001, "L", 50, "L") is False

    def test_converts_into_stock_unit(self):
        """Test 250 mL fits in 1 L."""
        assert is_valid_consumption(250, "mL", 1, "L") is True
        assert is_valid_consumption(1001, "mL", 1, "L") is False

    def test_zero_amount_passes(self):
        """Test positivity is left to request validation."""
        assert is_valid_consumption(0, "L", 5, "L") is True

    def test_empty_balance(self):
        """Test nothing can be taken from an empty item except zero."""
        assert is_valid_consumption(0.001, "kg", 0, "kg") is False

    def test_cross_family_defaults_to_one_to_one(self):
        """Test lenient mode converts unrelated units 1:1."""
        assert is_valid_consumption(3, "kg", 5, "L") is True

    def test_cross_family_strict_raises(self):
        """Test strict mode refuses unrelated units."""
        with pytest.raises(IncompatibleUnitsError):
            is_valid_consumption(3, "kg", 5, "L", strict=True)

    @pytest.mark.parametrize("amount", [0, 0.5, 1, 2.5, 4.999, 5])
    def test_amounts_up_to_balance_are_valid(self, amount):
        """Test every amount between 0 and the balance is accepted."""
        assert is_valid_consumption(amount, "L", 5, "L") is True


class TestMaxAndNewBalance:
    """Test the helper calculations."""

    def test_max_consumption_in_request_unit(self):
        """Test the balance is expressed in the consumption unit."""
        assert get_max_consumption_amount(1, "L", "mL") == 1000
        assert get_max_consumption_amount(2500, "g", "kg") == 2.5

    def test_new_balance(self):
        """Test 250 mL taken from 1 L leaves 0.75 L."""
        assert calculate_new_balance(250, "mL", 1, "L") == pytest.approx(0.75)

    def test_new_balance_may_go_negative(self):
        """Test no validity check is made when computing the balance."""
        assert calculate_new_balance(3, "L", 1, "L") == -2


class TestEvaluateConsumption:
    """Test the combined decision."""

    def test_valid_decision(self):
        """Test 250 mL from a full 1 L item."""
        snapshot = InventorySnapshot(current_balance=1, original_amount=1, unit="L")
        decision = evaluate_consumption(snapshot, ConsumptionRequest(quantity=250, unit="mL"))

        assert decision.is_valid is True
        assert decision.converted_quantity == pytest.approx(0.25)
        assert decision.new_balance == pytest.approx(0.75)
        assert decision.max_quantity == 1000
        assert decision.status == StockStatus.NORMAL

    def test_status_after_consumption(self):
        """Test the status reflects the resulting balance."""
        snapshot = InventorySnapshot(current_balance=20, original_amount=100, unit="kg")
        decision = evaluate_consumption(snapshot, ConsumptionRequest(quantity=12, unit="kg"))
        assert decision.status == StockStatus.CRITICAL

    def test_invalid_decision_keeps_snapshot(self):
        """Test an oversize request is refused and the snapshot is untouched."""
        snapshot = InventorySnapshot(current_balance=2, original_amount=10, unit="L")
        decision = evaluate_consumption(snapshot, ConsumptionRequest(quantity=3, unit="L"))

        assert decision.is_valid is False
        assert decision.new_balance == -1
        assert decision.status == StockStatus.CRITICAL
        assert snapshot.current_balance == 2

    @pytest.mark.parametrize(
        "quantity,unit", [(500, "mL"), (0.5, "L"), (0.5001, "L"), (2, "L"), (0, "mL")]
    )
    def test_agrees_with_is_valid_consumption(self, quantity, unit):
        """Test the decision and the single check never disagree."""
        snapshot = InventorySnapshot(current_balance=0.5, original_amount=1, unit="L")
        decision = evaluate_consumption(snapshot, ConsumptionRequest(quantity=quantity, unit=unit))
        assert decision.is_valid is is_valid_consumption(quantity, unit, 0.5, "L")
        assert decision.max_quantity == get_max_consumption_amount(0.5, "L", unit)

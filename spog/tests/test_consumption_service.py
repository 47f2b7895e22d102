"""
Tests for the consumption service.

Tests cover:
- Recording consumption with unit conversion and balance updates
- Request validation, unit checks and insufficient stock
- Edit and delete rules with rebalancing
- Dry-run checks and summaries
"""

from datetime import timedelta

import pytest

from spog.models import ConsumptionRecord
from spog.services import consumption_service, inventory_service
from spog.services.exceptions import (
    IncompatibleUnitsError,
    InsufficientStock,
    InvalidQuantity,
    PermissionDenied,
    ValidationError,
)
from spog.utils.datetime_utils import utc_now


@pytest.fixture
def litre_item(test_db):
    """1 L of primer, fully stocked."""
    return inventory_service.create_item(
        {"name": "Epoxy Primer", "category": "Paint", "unit": "L", "original_amount": 1}
    )


class TestRecordConsumption:
    """Test recording consumption."""

    def test_millilitres_from_litre_item(self, litre_item, regular_user):
        """Test 250 mL taken from 1 L leaves 0.75 L."""
        record = consumption_service.record_consumption(
            litre_item.id, regular_user.id, 250, "mL", notes="Panel 4"
        )

        assert record.quantity == 250
        assert record.unit == "mL"
        assert record.quantity_in_stock_unit == pytest.approx(0.25)

        item = inventory_service.get_item(litre_item.id)
        assert item.current_balance == pytest.approx(0.75)
        assert item.status == "normal"
        assert item.last_consumed_at is not None

        data = record.to_dict()
        assert data["item_name"] == "Epoxy Primer"
        assert data["user_name"] == regular_user.full_name

    def test_whole_balance(self, litre_item, regular_user):
        """Test the entire balance can be consumed."""
        consumption_service.record_consumption(litre_item.id, regular_user.id, 1, "L")
        item = inventory_service.get_item(litre_item.id)
        assert item.current_balance == 0
        assert item.status == "critical"

    def test_insufficient_stock(self, litre_item, regular_user):
        """Test over-consumption is refused with the available amount."""
        with pytest.raises(InsufficientStock) as exc_info:
            consumption_service.record_consumption(litre_item.id, regular_user.id, 1001, "mL")

        assert exc_info.value.available == 1000
        assert exc_info.value.unit == "mL"
        assert inventory_service.get_item(litre_item.id).current_balance == 1

    @pytest.mark.parametrize("quantity", [0, -5, float("nan"), float("inf")])
    def test_invalid_quantity(self, litre_item, regular_user, quantity):
        """Test non-positive and non-finite quantities are refused."""
        with pytest.raises(InvalidQuantity):
            consumption_service.record_consumption(litre_item.id, regular_user.id, quantity, "L")

    def test_invalid_unit_and_notes(self, litre_item, regular_user):
        """Test missing units and long notes are refused."""
        with pytest.raises(ValidationError) as exc_info:
            consumption_service.record_consumption(
                litre_item.id, regular_user.id, 1, "", notes="x" * 1001
            )
        assert len(exc_info.value.errors) == 2

    def test_cross_family_unit(self, litre_item, regular_user):
        """Test grams cannot be taken from a litre item."""
        with pytest.raises(IncompatibleUnitsError):
            consumption_service.record_consumption(litre_item.id, regular_user.id, 5, "g")


class TestCheckConsumption:
    """Test the dry-run check."""

    def test_check_does_not_write(self, litre_item):
        """Test the decision is reported and nothing is stored."""
        result = consumption_service.check_consumption(litre_item.id, 850, "mL")

        assert result["is_valid"] is True
        assert result["new_balance"] == pytest.approx(0.15)
        assert result["status"] == "low"
        assert result["max_quantity"] == 1000
        assert consumption_service.list_records().total == 0
        assert inventory_service.get_item(litre_item.id).current_balance == 1

    def test_check_too_much(self, litre_item):
        """Test an oversize request is reported invalid rather than raised."""
        assert consumption_service.check_consumption(litre_item.id, 2, "L")["is_valid"] is False


class TestEditRecords:
    """Test edit and delete rules."""

    @pytest.fixture
    def record(self, sample_item, regular_user):
        return consumption_service.record_consumption(sample_item.id, regular_user.id, 2, "L")

    def test_owner_edits_and_rebalances(self, record, regular_user, sample_item):
        """Test raising the quantity takes the difference from the item."""
        updated = consumption_service.update_record(
            record.id, regular_user, quantity=3000, unit="mL"
        )

        assert updated.quantity == 3000
        assert updated.quantity_in_stock_unit == pytest.approx(3)
        assert inventory_service.get_item(sample_item.id).current_balance == pytest.approx(7)

    def test_notes_only(self, record, regular_user, sample_item):
        """Test editing notes leaves the balance alone."""
        consumption_service.update_record(record.id, regular_user, notes="Re-sealed")
        assert consumption_service.get_record(record.id).notes == "Re-sealed"
        assert inventory_service.get_item(sample_item.id).current_balance == pytest.approx(8)

    def test_lowering_quantity_keeps_balance_within_original(
        self, record, admin_user, sample_item
    ):
        """Test a smaller edit raises the original amount when the balance passes it."""
        inventory_service.update_item(sample_item.id, {"original_amount": 8})

        consumption_service.update_record(record.id, admin_user, quantity=1)

        item = inventory_service.get_item(sample_item.id)
        assert item.current_balance == pytest.approx(9)
        assert item.original_amount == pytest.approx(9)
        assert item.status == "normal"

    def test_edit_beyond_balance(self, record, admin_user):
        """Test an edit cannot consume more than the item holds."""
        with pytest.raises(InsufficientStock) as exc_info:
            consumption_service.update_record(record.id, admin_user, quantity=11)
        assert exc_info.value.available == pytest.approx(10)

    def test_other_user_cannot_edit(self, record, manager_user):
        """Test only the owner or an admin may edit."""
        with pytest.raises(PermissionDenied):
            consumption_service.update_record(record.id, manager_user, notes="Mine now")

    def test_edit_window(self, record, regular_user, admin_user):
        """Test owners lose edit rights after 24 hours; admins keep them."""
        later = utc_now() + timedelta(hours=25)
        assert consumption_service.can_edit_record(record, regular_user) is True
        assert consumption_service.can_edit_record(record, regular_user, now=later) is False
        assert consumption_service.can_edit_record(record, admin_user, now=later) is True

    def test_admin_delete_restores_balance(self, record, admin_user, sample_item):
        """Test deleting a record gives the amount back."""
        consumption_service.delete_record(record.id, admin_user)

        assert inventory_service.get_item(sample_item.id).current_balance == pytest.approx(10)
        assert consumption_service.list_records().total == 0

    def test_owner_cannot_delete(self, record, regular_user):
        """Test only admins delete records."""
        with pytest.raises(PermissionDenied):
            consumption_service.delete_record(record.id, regular_user)


class TestListingAndSummary:
    """Test listing and aggregation."""

    def test_filters(self, sample_item, litre_item, regular_user, manager_user):
        """Test records filter by item and user."""
        consumption_service.record_consumption(sample_item.id, regular_user.id, 1, "L")
        consumption_service.record_consumption(litre_item.id, manager_user.id, 100, "mL")
        consumption_service.record_consumption(sample_item.id, manager_user.id, 500, "mL")

        assert consumption_service.list_records(item_id=sample_item.id).total == 2
        assert consumption_service.list_records(user_id=manager_user.id).total == 2
        assert consumption_service.list_records(
            start_date=utc_now() + timedelta(days=1)
        ).items == []

    def test_summary_by_item(self, sample_item, litre_item, regular_user):
        """Test totals are in the stock unit, highest first."""
        consumption_service.record_consumption(sample_item.id, regular_user.id, 1, "L")
        consumption_service.record_consumption(sample_item.id, regular_user.id, 500, "mL")
        consumption_service.record_consumption(litre_item.id, regular_user.id, 100, "mL")

        summary = consumption_service.get_summary(summary_type="item")
        assert [row["item_id"] for row in summary] == [sample_item.id, litre_item.id]
        assert summary[0]["total_consumed"] == pytest.approx(1.5)
        assert summary[0]["record_count"] == 2

    def test_summary_by_user(self, sample_item, regular_user):
        """Test per-user counts."""
        consumption_service.record_consumption(sample_item.id, regular_user.id, 1, "L")
        summary = consumption_service.get_summary(summary_type="user")
        assert summary == [
            {
                "user_id": regular_user.id,
                "user_name": "Terry Technician",
                "email": "tech@example.com",
                "total_records": 1,
                "items_consumed": 1,
                "last_consumption": summary[0]["last_consumption"],
            }
        ]

    def test_unknown_summary_type(self, test_db):
        """Test summary types are validated."""
        with pytest.raises(ValidationError):
            consumption_service.get_summary(summary_type="location")

    def test_records_stored(self, sample_item, regular_user, test_db):
        """Test the record row is persisted."""
        consumption_service.record_consumption(sample_item.id, regular_user.id, 1, "L")
        session = test_db()
        try:
            assert session.query(ConsumptionRecord).count() == 1
        finally:
            session.close()

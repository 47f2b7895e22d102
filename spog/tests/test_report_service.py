"""
Tests for the report service.

Tests cover:
- Inventory status summary counts and average stock level
- Consumption trends grouped by date, category and user
- Expiry labels
- Location utilization
- CSV export
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from spog.services import consumption_service, inventory_service, location_service
from spog.services import report_service
from spog.services.exceptions import LocationNotFound, ValidationError


def _item(name, balance, original=100, category="Oil", unit="L", **extra):
    data = {
        "name": name,
        "category": category,
        "unit": unit,
        "original_amount": original,
        "current_balance": balance,
    }
    data.update(extra)
    return inventory_service.create_item(data)


def _at(day, hour=12):
    return datetime(2026, 10, day, hour, tzinfo=timezone.utc)


# ============================================================================
# Inventory Status
# ============================================================================


class TestInventoryStatusReport:
    """Test the inventory status report."""

    def test_summary(self, test_db):
        """Test items at 80, 15 and 5 percent."""
        _item("Turbine Oil", 80)
        _item("Epoxy Primer", 15, category="Paint")
        _item("Grease 33", 5, category="Grease")

        report = report_service.inventory_status_report()

        assert report["report_type"] == "inventory-status"
        assert report["summary"] == {
            "total_items": 3,
            "low_stock_items": 1,
            "critical_stock_items": 1,
            "average_stock_level": 33,
        }
        by_name = {row["name"]: row for row in report["items"]}
        assert by_name["Turbine Oil"]["stock_percentage"] == 80
        assert by_name["Turbine Oil"]["status"] == "normal"
        assert by_name["Epoxy Primer"]["status"] == "low"
        assert by_name["Grease 33"]["status"] == "critical"

    def test_status_filter(self, test_db):
        """Test filtering by derived status."""
        _item("Turbine Oil", 80)
        _item("Grease 33", 5, category="Grease")

        report = report_service.inventory_status_report(status="critical")
        assert [row["name"] for row in report["items"]] == ["Grease 33"]
        assert report["parameters"] == {"status": "critical"}

    def test_unknown_status(self, test_db):
        """Test unknown statuses are rejected."""
        with pytest.raises(ValidationError):
            report_service.inventory_status_report(status="empty")

    def test_empty_inventory(self, test_db):
        """Test an empty report has zeroed summary figures."""
        report = report_service.inventory_status_report()
        assert report["items"] == []
        assert report["summary"]["average_stock_level"] == 0


# ============================================================================
# Consumption Trends
# ============================================================================


class TestConsumptionTrendsReport:
    """Test the consumption trends report."""

    @pytest.fixture
    def history(self, test_db, regular_user, manager_user):
        oil = _item("Turbine Oil", 100)
        paint = _item("Epoxy Primer", 100, category="Paint")
        # Wednesday 14 Oct and Saturday 17 Oct share the week starting Sunday 11 Oct
        consumption_service.record_consumption(oil.id, regular_user.id, 2, "L", recorded_at=_at(14))
        consumption_service.record_consumption(oil.id, manager_user.id, 3, "L", recorded_at=_at(17))
        consumption_service.record_consumption(
            paint.id, regular_user.id, 10, "L", recorded_at=_at(18)
        )
        return {"start_date": _at(1), "end_date": _at(31)}

    def test_by_day(self, history):
        """Test daily groups sorted by date."""
        report = report_service.consumption_trends_report(group_by="day", **history)

        assert [row["date"] for row in report["trends"]] == [
            "2026-10-14",
            "2026-10-17",
            "2026-10-18",
        ]
        assert report["summary"] == {
            "total_consumption": 15,
            "total_records": 3,
            "average_per_record": 5,
        }

    def test_by_week_starts_sunday(self, history):
        """Test weeks start on Sunday."""
        report = report_service.consumption_trends_report(group_by="week", **history)
        assert report["trends"] == [
            {"week_start": "2026-10-11", "total_quantity": 5, "consumption_count": 2},
            {"week_start": "2026-10-18", "total_quantity": 10, "consumption_count": 1},
        ]

    def test_by_category_sorted_by_quantity(self, history):
        """Test non-date groups are sorted by quantity, highest first."""
        report = report_service.consumption_trends_report(group_by="category", **history)
        assert [row["category"] for row in report["trends"]] == ["Paint", "Oil"]

    def test_by_user(self, history, regular_user):
        """Test grouping by user."""
        report = report_service.consumption_trends_report(group_by="user", **history)
        top = report["trends"][0]
        assert top["user_id"] == regular_user.id
        assert top["user_name"] == "Terry Technician"
        assert top["total_quantity"] == 12

    def test_filters(self, history, manager_user):
        """Test category and user filters."""
        by_category = report_service.consumption_trends_report(category="Oil", **history)
        assert by_category["summary"]["total_records"] == 2

        by_user = report_service.consumption_trends_report(user_id=manager_user.id, **history)
        assert by_user["summary"]["total_consumption"] == 3

    def test_invalid_parameters(self, test_db):
        """Test unknown groupings and reversed periods are rejected."""
        with pytest.raises(ValidationError):
            report_service.consumption_trends_report(group_by="hour")
        with pytest.raises(ValidationError):
            report_service.consumption_trends_report(start_date=_at(20), end_date=_at(10))


# ============================================================================
# Expiry
# ============================================================================


class TestExpiryReport:
    """Test the expiry report."""

    def test_labels(self, test_db):
        """Test expired, critical and warning labels."""
        today = date(2026, 10, 17)
        _item("Expired Sealant", 50, category="Sealant", expiry_date=today - timedelta(days=1))
        _item("Due Today", 50, expiry_date=today)
        _item("Next Week", 50, expiry_date=today + timedelta(days=7))
        _item("Next Month", 50, expiry_date=today + timedelta(days=20))
        _item("Far Away", 50, expiry_date=today + timedelta(days=300))
        _item("No Expiry", 50)

        report = report_service.expiry_report(today=today)

        statuses = {row["name"]: row["status"] for row in report["items"]}
        assert statuses == {
            "Expired Sealant": "expired",
            "Due Today": "expired",
            "Next Week": "critical",
            "Next Month": "warning",
        }
        assert report["summary"] == {
            "total_expiring_items": 4,
            "expired_items": 2,
            "critical_items": 1,
            "warning_items": 1,
        }

    def test_expiry_status(self):
        """Test the day thresholds."""
        assert report_service.expiry_status(0) == "expired"
        assert report_service.expiry_status(1) == "critical"
        assert report_service.expiry_status(7) == "critical"
        assert report_service.expiry_status(8) == "warning"

    def test_negative_window(self, test_db):
        """Test a negative window is rejected."""
        with pytest.raises(ValidationError):
            report_service.expiry_report(days_until_expiry=-1)


# ============================================================================
# Location Utilization
# ============================================================================


class TestLocationUtilizationReport:
    """Test the location utilization report."""

    def test_utilization(self, test_db):
        """Test item counts and quantities per location and category."""
        store = location_service.create_location("Paint Store")
        location_service.create_location("Empty Cabinet")
        _item("Primer", 4, category="Paint", location_id=store.id)
        _item("Topcoat", 6, category="Paint", location_id=store.id)
        _item("Sealant", 1, category="Sealant", location_id=store.id)

        report = report_service.location_utilization_report()
        assert len(report["locations"]) == 1
        row = report["locations"][0]
        assert row["total_items"] == 3
        assert row["total_quantity"] == 11
        assert row["categories"][0] == {"category": "Paint", "item_count": 2, "total_quantity": 10}

        with_empty = report_service.location_utilization_report(include_empty=True)
        assert with_empty["summary"]["total_locations"] == 2
        assert with_empty["summary"]["average_items_per_location"] == 2

    def test_unknown_location(self, test_db):
        """Test an unknown location raises."""
        with pytest.raises(LocationNotFound):
            report_service.location_utilization_report(location_id=99)


# ============================================================================
# Export
# ============================================================================


class TestReportExport:
    """Test CSV export and report dispatch."""

    def test_inventory_csv(self, test_db):
        """Test the inventory status CSV layout."""
        _item("Turbine Oil", 80)
        csv_text = report_service.report_to_csv(report_service.inventory_status_report())

        lines = csv_text.splitlines()
        assert lines[0] == (
            "ID,Name,Category,Current Quantity,Original Amount,Minimum Quantity,"
            "Unit,Stock Percentage,Status,Last Updated"
        )
        assert lines[1].startswith("1,Turbine Oil,Oil,80.0,100.0,0.0,L,80%,normal,")

    def test_trends_csv_uses_grouping(self, test_db):
        """Test the trends CSV header follows the grouping."""
        report = report_service.consumption_trends_report(group_by="user")
        assert report_service.report_to_csv(report).splitlines() == [
            "User ID,User Name,Total Quantity,Consumption Count"
        ]

    def test_generate_report(self, test_db):
        """Test dispatch by report type name."""
        report = report_service.generate_report("expiry", days_until_expiry=10)
        assert report["parameters"]["days_until_expiry"] == 10
        with pytest.raises(ValidationError):
            report_service.generate_report("sales")

    def test_unknown_csv_type(self):
        """Test reports without a CSV layout are rejected."""
        with pytest.raises(ValidationError):
            report_service.report_to_csv({"report_type": "sales"})

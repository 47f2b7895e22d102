"""Report Service - Inventory and consumption reports.

This module generates the four reports shown on the reports page and
converts any of them to CSV:

- inventory_status_report(): per-item stock percentage and status plus
  summary counts (stock_status.summarize_stock)
- consumption_trends_report(): consumption grouped by day, week, month,
  category or user
- expiry_report(): items expiring within a window, labelled expired /
  critical / warning
- location_utilization_report(): item counts and quantities per location

Every report is a plain dict with ``report_type``, ``generated_at``,
``parameters`` and ``summary`` keys, ready to be returned as JSON.
"""

import csv
import io
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from spog.models import ConsumptionRecord, InventoryItem, Location
from spog.models.enums import StockStatus
from spog.utils.constants import (
    DEFAULT_EXPIRY_WINDOW_DAYS,
    DEFAULT_TRENDS_PERIOD_DAYS,
    EXPIRY_CRITICAL_DAYS,
    EXPIRY_STATUS_CRITICAL,
    EXPIRY_STATUS_EXPIRED,
    EXPIRY_STATUS_WARNING,
    TREND_GROUPINGS,
)
from spog.utils.datetime_utils import ensure_aware, utc_now, week_start
from spog.services.database import session_scope
from spog.services.exceptions import LocationNotFound, ValidationError
from spog.services.logging_utils import get_service_logger, log_operation
from spog.services.stock_status import classify, round_half_up, stock_percentage, summarize_stock

logger = get_service_logger(__name__)

REPORT_INVENTORY_STATUS = "inventory-status"
REPORT_CONSUMPTION_TRENDS = "consumption-trends"
REPORT_EXPIRY = "expiry"
REPORT_LOCATION_UTILIZATION = "location-utilization"

REPORT_TYPES = (
    REPORT_INVENTORY_STATUS,
    REPORT_CONSUMPTION_TRENDS,
    REPORT_EXPIRY,
    REPORT_LOCATION_UTILIZATION,
)

# Trend groupings keyed by date sort ascending; the rest by quantity, highest first
_DATE_GROUP_KEYS = {"day": "date", "week": "week_start", "month": "month"}


def _envelope(report_type: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "report_type": report_type,
        "generated_at": utc_now().isoformat(),
        "parameters": {k: v for k, v in parameters.items() if v is not None},
    }


# ============================================================================
# Inventory Status
# ============================================================================


def inventory_status_report(
    category: Optional[str] = None,
    location_id: Optional[int] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    """Generate the inventory status report.

    Args:
        category: Only items in this category
        location_id: Only items in this location
        status: Only items with this derived status (normal / low / critical)

    Returns:
        Report dict with ``summary`` (total_items, low_stock_items,
        critical_stock_items, average_stock_level) and ``items``

    Raises:
        ValidationError: If status is unknown
    """
    if status is not None and status not in {s.value for s in StockStatus}:
        raise ValidationError([f"Status: Unknown status '{status}'"])

    with session_scope() as session:
        q = session.query(InventoryItem)
        if category:
            q = q.filter(InventoryItem.category == category)
        if location_id is not None:
            q = q.filter(InventoryItem.location_id == location_id)
        items = q.order_by(InventoryItem.name, InventoryItem.id).all()

    rows = []
    for item in items:
        item_status = classify(item.current_balance, item.original_amount)
        if status is not None and item_status.value != status:
            continue
        rows.append(
            {
                "id": item.id,
                "name": item.name,
                "category": item.category,
                "location_id": item.location_id,
                "current_quantity": item.current_balance,
                "original_amount": item.original_amount,
                "minimum_quantity": item.minimum_quantity,
                "unit": item.unit,
                "stock_percentage": stock_percentage(item.current_balance, item.original_amount),
                "status": item_status.value,
                "needs_restock": item.needs_restock,
                "last_updated": ensure_aware(item.updated_at or item.created_at).isoformat(),
            }
        )

    summary = summarize_stock((row["current_quantity"], row["original_amount"]) for row in rows)

    report = _envelope(
        REPORT_INVENTORY_STATUS,
        {"category": category, "location_id": location_id, "status": status},
    )
    report["summary"] = summary.to_dict()
    report["items"] = rows

    log_operation(logger, "inventory_status_report", "success", total_items=summary.total_items)
    return report


# ============================================================================
# Consumption Trends
# ============================================================================


def _trend_key(record: ConsumptionRecord, group_by: str):
    """Return (group key, initial row) for a record under group_by."""
    recorded_at = ensure_aware(record.recorded_at)

    if group_by == "day":
        day = recorded_at.date().isoformat()
        return day, {"date": day}
    if group_by == "week":
        week = week_start(recorded_at).isoformat()
        return week, {"week_start": week}
    if group_by == "month":
        month = recorded_at.strftime("%Y-%m")
        return month, {"month": month}
    if group_by == "category":
        category = record.inventory_item.category if record.inventory_item else "Unknown"
        return category, {"category": category}

    user = record.user
    user_name = user.full_name if user else "Unknown User"
    return record.user_id, {"user_id": record.user_id, "user_name": user_name}


def consumption_trends_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    group_by: str = "day",
    category: Optional[str] = None,
    user_id: Optional[int] = None,
) -> Dict[str, Any]:
    """Generate the consumption trends report.

    Args:
        start_date: Period start (defaults to 30 days before end_date)
        end_date: Period end (defaults to now)
        group_by: day, week (weeks start on Sunday), month, category or user
        category: Only consumption of items in this category
        user_id: Only consumption recorded by this user

    Returns:
        Report dict with ``period``, ``summary`` (total_consumption,
        total_records, average_per_record) and ``trends``. Each trend row
        has total_quantity and consumption_count plus its group key.

    Raises:
        ValidationError: If group_by is unknown or the period is reversed
    """
    if group_by not in TREND_GROUPINGS:
        raise ValidationError([f"Group by: Must be one of {', '.join(TREND_GROUPINGS)}"])

    end = ensure_aware(end_date) if end_date else utc_now()
    start = (
        ensure_aware(start_date)
        if start_date
        else end - timedelta(days=DEFAULT_TRENDS_PERIOD_DAYS)
    )
    if start > end:
        raise ValidationError(["Period: Start date must be before end date"])

    with session_scope() as session:
        q = session.query(ConsumptionRecord).filter(
            ConsumptionRecord.recorded_at >= start, ConsumptionRecord.recorded_at <= end
        )
        if category:
            q = q.join(ConsumptionRecord.inventory_item).filter(
                InventoryItem.category == category
            )
        if user_id is not None:
            q = q.filter(ConsumptionRecord.user_id == user_id)
        records = q.order_by(ConsumptionRecord.recorded_at).all()

    groups: "OrderedDict[Any, Dict[str, Any]]" = OrderedDict()
    for record in records:
        key, initial = _trend_key(record, group_by)
        row = groups.get(key)
        if row is None:
            row = dict(initial, total_quantity=0.0, consumption_count=0)
            groups[key] = row
        row["total_quantity"] += record.quantity
        row["consumption_count"] += 1

    trends = list(groups.values())
    if group_by in _DATE_GROUP_KEYS:
        trends.sort(key=lambda row: row[_DATE_GROUP_KEYS[group_by]])
    else:
        trends.sort(key=lambda row: row["total_quantity"], reverse=True)

    total_consumption = sum(record.quantity for record in records)
    total_records = len(records)

    report = _envelope(
        REPORT_CONSUMPTION_TRENDS,
        {
            "start_date": start_date.isoformat() if start_date else None,
            "end_date": end_date.isoformat() if end_date else None,
            "group_by": group_by,
            "category": category,
            "user_id": user_id,
        },
    )
    report["period"] = {"start_date": start.isoformat(), "end_date": end.isoformat()}
    report["summary"] = {
        "total_consumption": total_consumption,
        "total_records": total_records,
        "average_per_record": (
            round_half_up(total_consumption / total_records * 100) / 100 if total_records else 0
        ),
    }
    report["trends"] = trends
    return report


# ============================================================================
# Expiry
# ============================================================================


def expiry_status(days_remaining: int) -> str:
    """Label an item by days left before expiry."""
    if days_remaining <= 0:
        return EXPIRY_STATUS_EXPIRED
    if days_remaining <= EXPIRY_CRITICAL_DAYS:
        return EXPIRY_STATUS_CRITICAL
    return EXPIRY_STATUS_WARNING


def expiry_report(
    days_until_expiry: int = DEFAULT_EXPIRY_WINDOW_DAYS,
    category: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Generate the expiry report.

    Lists items whose expiry date falls on or before today + days_until_expiry,
    including items that have already expired.

    Args:
        days_until_expiry: Window in days (default 30)
        category: Only items in this category
        today: Reference date (defaults to the current date)

    Raises:
        ValidationError: If days_until_expiry is negative
    """
    if days_until_expiry is None:
        days_until_expiry = DEFAULT_EXPIRY_WINDOW_DAYS
    if days_until_expiry < 0:
        raise ValidationError(["Days until expiry: Must be 0 or greater"])

    today = today or date.today()
    threshold = today + timedelta(days=days_until_expiry)

    with session_scope() as session:
        q = session.query(InventoryItem).filter(
            InventoryItem.expiry_date.isnot(None), InventoryItem.expiry_date <= threshold
        )
        if category:
            q = q.filter(InventoryItem.category == category)
        items = q.order_by(InventoryItem.expiry_date, InventoryItem.id).all()

    rows = []
    for item in items:
        days_remaining = (item.expiry_date - today).days
        rows.append(
            {
                "id": item.id,
                "name": item.name,
                "category": item.category,
                "location_id": item.location_id,
                "current_quantity": item.current_balance,
                "unit": item.unit,
                "expiry_date": item.expiry_date.isoformat(),
                "days_remaining": days_remaining,
                "status": expiry_status(days_remaining),
            }
        )

    report = _envelope(
        REPORT_EXPIRY, {"days_until_expiry": days_until_expiry, "category": category}
    )
    report["summary"] = {
        "total_expiring_items": len(rows),
        "expired_items": sum(1 for row in rows if row["status"] == EXPIRY_STATUS_EXPIRED),
        "critical_items": sum(1 for row in rows if row["status"] == EXPIRY_STATUS_CRITICAL),
        "warning_items": sum(1 for row in rows if row["status"] == EXPIRY_STATUS_WARNING),
    }
    report["items"] = rows
    return report


# ============================================================================
# Location Utilization
# ============================================================================


def location_utilization_report(
    location_id: Optional[int] = None, include_empty: bool = False
) -> Dict[str, Any]:
    """Generate the location utilization report.

    Args:
        location_id: Only this location
        include_empty: Include locations that hold no items

    Raises:
        LocationNotFound: If location_id doesn't exist
    """
    with session_scope() as session:
        if location_id is not None:
            location = session.get(Location, location_id)
            if location is None:
                raise LocationNotFound(location_id)
            locations = [location]
        else:
            locations = session.query(Location).order_by(Location.name).all()

        items_by_location: Dict[int, List[InventoryItem]] = {}
        for item in session.query(InventoryItem).order_by(InventoryItem.id).all():
            items_by_location.setdefault(item.location_id, []).append(item)

    rows = []
    for location in locations:
        items = items_by_location.get(location.id, [])
        if not items and not include_empty:
            continue

        categories: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for item in items:
            entry = categories.setdefault(
                item.category,
                {"category": item.category, "item_count": 0, "total_quantity": 0.0},
            )
            entry["item_count"] += 1
            entry["total_quantity"] += item.current_balance

        rows.append(
            {
                "location_id": location.id,
                "location_name": location.name,
                "is_active": location.is_active,
                "total_items": len(items),
                "total_quantity": sum(item.current_balance for item in items),
                "categories": list(categories.values()),
            }
        )

    total_items = sum(row["total_items"] for row in rows)

    report = _envelope(
        REPORT_LOCATION_UTILIZATION,
        {"location_id": location_id, "include_empty": include_empty},
    )
    report["summary"] = {
        "total_locations": len(rows),
        "total_items": total_items,
        "average_items_per_location": round_half_up(total_items / len(rows)) if rows else 0,
    }
    report["locations"] = rows
    return report


def generate_report(report_type: str, **parameters) -> Dict[str, Any]:
    """Generate a report by its type name (e.g. "expiry").

    Raises:
        ValidationError: If report_type is unknown
    """
    generators = {
        REPORT_INVENTORY_STATUS: inventory_status_report,
        REPORT_CONSUMPTION_TRENDS: consumption_trends_report,
        REPORT_EXPIRY: expiry_report,
        REPORT_LOCATION_UTILIZATION: location_utilization_report,
    }
    if report_type not in generators:
        raise ValidationError([f"Report type: Must be one of {', '.join(REPORT_TYPES)}"])
    return generators[report_type](**parameters)


# ============================================================================
# CSV Export
# ============================================================================

_TREND_COLUMNS = {
    "day": (["Date", "Total Quantity", "Consumption Count"], ["date"]),
    "week": (["Week Start", "Total Quantity", "Consumption Count"], ["week_start"]),
    "month": (["Month", "Total Quantity", "Consumption Count"], ["month"]),
    "category": (["Category", "Total Quantity", "Consumption Count"], ["category"]),
    "user": (
        ["User ID", "User Name", "Total Quantity", "Consumption Count"],
        ["user_id", "user_name"],
    ),
}


def report_to_csv(report: Dict[str, Any]) -> str:
    """Convert a report dict to CSV text.

    Args:
        report: Any dict returned by the report functions

    Returns:
        CSV text with a header row

    Raises:
        ValidationError: If report_type is unknown
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    report_type = report.get("report_type")

    if report_type == REPORT_INVENTORY_STATUS:
        writer.writerow(
            [
                "ID",
                "Name",
                "Category",
                "Current Quantity",
                "Original Amount",
                "Minimum Quantity",
                "Unit",
                "Stock Percentage",
                "Status",
                "Last Updated",
            ]
        )
        for item in report["items"]:
            writer.writerow(
                [
                    item["id"],
                    item["name"],
                    item["category"],
                    item["current_quantity"],
                    item["original_amount"],
                    item["minimum_quantity"],
                    item["unit"],
                    f"{item['stock_percentage']}%",
                    item["status"],
                    item["last_updated"],
                ]
            )

    elif report_type == REPORT_CONSUMPTION_TRENDS:
        group_by = report["parameters"].get("group_by", "day")
        header, key_fields = _TREND_COLUMNS[group_by]
        writer.writerow(header)
        for trend in report["trends"]:
            writer.writerow(
                [trend[field] for field in key_fields]
                + [trend["total_quantity"], trend["consumption_count"]]
            )

    elif report_type == REPORT_EXPIRY:
        writer.writerow(
            [
                "ID",
                "Name",
                "Category",
                "Current Quantity",
                "Unit",
                "Expiry Date",
                "Days Remaining",
                "Status",
            ]
        )
        for item in report["items"]:
            writer.writerow(
                [
                    item["id"],
                    item["name"],
                    item["category"],
                    item["current_quantity"],
                    item["unit"],
                    item["expiry_date"],
                    item["days_remaining"],
                    item["status"],
                ]
            )

    elif report_type == REPORT_LOCATION_UTILIZATION:
        writer.writerow(["Location ID", "Location Name", "Total Items", "Total Quantity"])
        for location in report["locations"]:
            writer.writerow(
                [
                    location["location_id"],
                    location["location_name"],
                    location["total_items"],
                    location["total_quantity"],
                ]
            )

    else:
        raise ValidationError([f"Report type: Cannot export '{report_type}' as CSV"])

    return output.getvalue()

"""Report endpoints, including CSV export."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from spog.models import User
from spog.services import report_service
from spog.services.exceptions import ValidationError
from spog.services.permissions import Permission
from spog.utils.constants import DEFAULT_EXPIRY_WINDOW_DAYS
from spog.utils.datetime_utils import utc_now
from spog.api.dependencies import require_permission

router = APIRouter(prefix="/reports", tags=["reports"])

EXPORT_FORMATS = ("csv", "json")

# Query parameters each report accepts on /export
_REPORT_PARAMETERS = {
    report_service.REPORT_INVENTORY_STATUS: ("category", "location_id", "status"),
    report_service.REPORT_CONSUMPTION_TRENDS: (
        "start_date",
        "end_date",
        "group_by",
        "category",
        "user_id",
    ),
    report_service.REPORT_EXPIRY: ("days_until_expiry", "category"),
    report_service.REPORT_LOCATION_UTILIZATION: ("location_id", "include_empty"),
}


@router.get("/inventory-status")
def inventory_status(
    category: Optional[str] = None,
    location_id: Optional[int] = None,
    status: Optional[str] = None,
    user: User = Depends(require_permission(Permission.REPORT_GENERATE)),
):
    return report_service.inventory_status_report(
        category=category, location_id=location_id, status=status
    )


@router.get("/consumption-trends")
def consumption_trends(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    group_by: str = "day",
    category: Optional[str] = None,
    user_id: Optional[int] = None,
    user: User = Depends(require_permission(Permission.REPORT_GENERATE)),
):
    return report_service.consumption_trends_report(
        start_date=start_date,
        end_date=end_date,
        group_by=group_by,
        category=category,
        user_id=user_id,
    )


@router.get("/expiry")
def expiry(
    days_until_expiry: int = DEFAULT_EXPIRY_WINDOW_DAYS,
    category: Optional[str] = None,
    user: User = Depends(require_permission(Permission.REPORT_GENERATE)),
):
    return report_service.expiry_report(days_until_expiry=days_until_expiry, category=category)


@router.get("/location-utilization")
def location_utilization(
    location_id: Optional[int] = None,
    include_empty: bool = False,
    user: User = Depends(require_permission(Permission.REPORT_GENERATE)),
):
    return report_service.location_utilization_report(
        location_id=location_id, include_empty=include_empty
    )


@router.get("/export")
def export_report(
    report_type: str,
    format: str = "csv",
    category: Optional[str] = None,
    location_id: Optional[int] = None,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    group_by: Optional[str] = None,
    user_id: Optional[int] = None,
    days_until_expiry: Optional[int] = None,
    include_empty: Optional[bool] = None,
    user: User = Depends(require_permission(Permission.REPORT_EXPORT)),
):
    """Generate a report and return it as a CSV download (or JSON)."""
    if format not in EXPORT_FORMATS:
        raise ValidationError([f"Format: Must be one of {', '.join(EXPORT_FORMATS)}"])
    if report_type not in _REPORT_PARAMETERS:
        raise ValidationError(
            [f"Report type: Must be one of {', '.join(report_service.REPORT_TYPES)}"]
        )

    supplied = {
        "category": category,
        "location_id": location_id,
        "status": status,
        "start_date": start_date,
        "end_date": end_date,
        "group_by": group_by,
        "user_id": user_id,
        "days_until_expiry": days_until_expiry,
        "include_empty": include_empty,
    }
    parameters = {
        name: supplied[name]
        for name in _REPORT_PARAMETERS[report_type]
        if supplied[name] is not None
    }
    report = report_service.generate_report(report_type, **parameters)

    if format == "json":
        return report

    filename = f"{report_type}-{utc_now().strftime('%Y%m%d')}.csv"
    return Response(
        content=report_service.report_to_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

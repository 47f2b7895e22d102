"""Consumption endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends

from spog.models import User
from spog.services import consumption_service
from spog.services.permissions import Permission
from spog.api import schemas
from spog.api.dependencies import require_permission

router = APIRouter(prefix="/consumption", tags=["consumption"])


@router.get("")
def list_consumption(
    item_id: Optional[int] = None,
    user_id: Optional[int] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0,
    sort_by: str = "recorded_at",
    sort_order: str = "desc",
    user: User = Depends(require_permission(Permission.CONSUMPTION_READ)),
):
    page = consumption_service.list_records(
        item_id=item_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "records": [record.to_dict() for record in page.items],
        "pagination": page.pagination(),
    }


@router.post("", status_code=201)
def create_consumption(
    data: schemas.ConsumptionCreate,
    user: User = Depends(require_permission(Permission.CONSUMPTION_CREATE)),
):
    record = consumption_service.record_consumption(
        data.inventory_item_id,
        user.id,
        data.quantity,
        data.unit,
        notes=data.notes,
        recorded_at=data.recorded_at,
    )
    return {"record": record.to_dict()}


@router.post("/validate")
def validate_consumption(
    data: schemas.ConsumptionValidate,
    user: User = Depends(require_permission(Permission.CONSUMPTION_CREATE)),
):
    """Check a consumption against the current balance without recording it."""
    return consumption_service.check_consumption(
        data.inventory_item_id, data.quantity, data.unit
    )


@router.get("/summary")
def consumption_summary(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    summary_type: str = "item",
    user: User = Depends(require_permission(Permission.CONSUMPTION_READ)),
):
    summary = consumption_service.get_summary(
        start_date=start_date, end_date=end_date, summary_type=summary_type
    )
    return {"summary_type": summary_type, "summary": summary}


@router.get("/{record_id}")
def get_consumption(
    record_id: int, user: User = Depends(require_permission(Permission.CONSUMPTION_READ))
):
    return {"record": consumption_service.get_record(record_id).to_dict()}


@router.put("/{record_id}")
def update_consumption(
    record_id: int,
    data: schemas.ConsumptionUpdate,
    user: User = Depends(require_permission(Permission.CONSUMPTION_CREATE)),
):
    record = consumption_service.update_record(
        record_id, user, quantity=data.quantity, unit=data.unit, notes=data.notes
    )
    return {"record": record.to_dict()}


@router.delete("/{record_id}")
def delete_consumption(
    record_id: int, user: User = Depends(require_permission(Permission.CONSUMPTION_READ))
):
    consumption_service.delete_record(record_id, user)
    return {"deleted": True, "id": record_id}

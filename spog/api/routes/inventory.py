"""Inventory item endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from spog.models import User
from spog.services import inventory_service
from spog.services.permissions import Permission
from spog.api import schemas
from spog.api.dependencies import require_permission

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("")
def list_inventory(
    category: Optional[str] = None,
    location_id: Optional[int] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    needs_restock: Optional[bool] = None,
    limit: int = Query(50),
    offset: int = Query(0),
    sort_by: str = "name",
    sort_order: str = "asc",
    user: User = Depends(require_permission(Permission.INVENTORY_READ)),
):
    page = inventory_service.list_items(
        category=category,
        location_id=location_id,
        status=status,
        search=search,
        needs_restock=needs_restock,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "items": [item.to_dict() for item in page.items],
        "pagination": page.pagination(),
    }


@router.post("", status_code=201)
def create_inventory_item(
    data: schemas.ItemCreate,
    user: User = Depends(require_permission(Permission.INVENTORY_CREATE)),
):
    item = inventory_service.create_item(data.model_dump(exclude_unset=True), user_id=user.id)
    return {"item": item.to_dict()}


@router.get("/{item_id}")
def get_inventory_item(
    item_id: int, user: User = Depends(require_permission(Permission.INVENTORY_READ))
):
    return {"item": inventory_service.get_item(item_id).to_dict()}


@router.put("/{item_id}")
def update_inventory_item(
    item_id: int,
    data: schemas.ItemUpdate,
    user: User = Depends(require_permission(Permission.INVENTORY_UPDATE)),
):
    item = inventory_service.update_item(
        item_id, data.model_dump(exclude_unset=True), user_id=user.id
    )
    return {"item": item.to_dict()}


@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: int,
    force: bool = False,
    user: User = Depends(require_permission(Permission.INVENTORY_DELETE)),
):
    inventory_service.delete_item(item_id, force=force)
    return {"deleted": True, "id": item_id}


@router.post("/{item_id}/adjust")
def adjust_inventory_balance(
    item_id: int,
    data: schemas.BalanceAdjust,
    user: User = Depends(require_permission(Permission.INVENTORY_UPDATE)),
):
    item = inventory_service.adjust_balance(
        item_id, data.new_balance, reason=data.reason, user_id=user.id
    )
    return {"item": item.to_dict()}


@router.post("/{item_id}/refill")
def refill_inventory_item(
    item_id: int,
    data: schemas.RefillRequest,
    user: User = Depends(require_permission(Permission.INVENTORY_UPDATE)),
):
    item = inventory_service.refill_item(item_id, data.amount, unit=data.unit, user_id=user.id)
    return {"item": item.to_dict()}


@router.get("/{item_id}/limits")
def consumption_limits(
    item_id: int,
    unit: Optional[str] = None,
    user: User = Depends(require_permission(Permission.INVENTORY_READ)),
):
    """Maximum amount a consumption form may accept for this item."""
    return inventory_service.get_consumption_limits(item_id, consumption_unit=unit)

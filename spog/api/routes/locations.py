"""Storage location endpoints."""

from fastapi import APIRouter, Depends

from spog.models import User
from spog.services import location_service
from spog.services.permissions import Permission
from spog.api import schemas
from spog.api.dependencies import require_permission

router = APIRouter(prefix="/locations", tags=["locations"])


@router.get("")
def list_locations(
    include_inactive: bool = False,
    user: User = Depends(require_permission(Permission.LOCATION_READ)),
):
    return {"locations": location_service.list_locations(include_inactive=include_inactive)}


@router.post("", status_code=201)
def create_location(
    data: schemas.LocationCreate,
    user: User = Depends(require_permission(Permission.LOCATION_CREATE)),
):
    location = location_service.create_location(
        data.name, description=data.description, parent_id=data.parent_id
    )
    return {"location": location.to_dict()}


@router.get("/{location_id}")
def get_location(
    location_id: int, user: User = Depends(require_permission(Permission.LOCATION_READ))
):
    return {"location": location_service.get_location(location_id).to_dict()}


@router.put("/{location_id}")
def update_location(
    location_id: int,
    data: schemas.LocationUpdate,
    user: User = Depends(require_permission(Permission.LOCATION_UPDATE)),
):
    location = location_service.update_location(location_id, data.model_dump(exclude_unset=True))
    return {"location": location.to_dict()}


@router.delete("/{location_id}")
def delete_location(
    location_id: int, user: User = Depends(require_permission(Permission.LOCATION_DELETE))
):
    location_service.delete_location(location_id)
    return {"deleted": True, "id": location_id}

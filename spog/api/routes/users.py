"""User management endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from spog.models import User
from spog.services import auth_service, user_service
from spog.services.exceptions import PermissionDenied
from spog.services.permissions import (
    Permission,
    get_user_permissions,
    grant_permission,
    has_permission,
    revoke_permission,
)
from spog.api import schemas
from spog.api.dependencies import get_current_user, require_permission

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    user: User = Depends(require_permission(Permission.USER_READ)),
):
    page = user_service.list_users(
        role=role, is_active=is_active, search=search, limit=limit, offset=offset
    )
    return {
        "users": [u.to_dict() for u in page.items],
        "pagination": page.pagination(),
    }


@router.post("", status_code=201)
def create_user(
    data: schemas.UserCreate,
    user: User = Depends(require_permission(Permission.USER_CREATE)),
):
    created = user_service.create_user(data.model_dump(), actor=user)
    return {"user": created.to_dict()}


@router.get("/{user_id}")
def get_user(user_id: int, user: User = Depends(get_current_user)):
    """Users can always read their own account; others need user:read."""
    if user_id != user.id and not has_permission(user, Permission.USER_READ):
        raise PermissionDenied(Permission.USER_READ.value)
    data = user_service.get_user(user_id).to_dict()
    data["permissions"] = get_user_permissions(user_id)
    return {"user": data}


@router.put("/{user_id}")
def update_user(
    user_id: int, data: schemas.UserUpdate, user: User = Depends(get_current_user)
):
    updated = user_service.update_user(user_id, data.model_dump(exclude_unset=True), actor=user)
    return {"user": updated.to_dict()}


@router.put("/{user_id}/status")
def set_user_status(
    user_id: int,
    data: schemas.UserStatus,
    user: User = Depends(require_permission(Permission.USER_MANAGE)),
):
    updated = user_service.set_user_active(user_id, data.is_active, actor=user)
    return {"user": updated.to_dict()}


@router.delete("/{user_id}")
def delete_user(
    user_id: int, user: User = Depends(require_permission(Permission.USER_DELETE))
):
    user_service.delete_user(user_id, actor=user)
    return {"deleted": True, "id": user_id}


@router.post("/{user_id}/permissions", status_code=201)
def grant_user_permission(
    user_id: int,
    data: schemas.PermissionGrant,
    user: User = Depends(require_permission(Permission.USER_MANAGE)),
):
    grant_permission(user_id, data.permission, granted_by=user.id, resource=data.resource)
    return {"permissions": get_user_permissions(user_id)}


@router.delete("/{user_id}/permissions/{permission}")
def revoke_user_permission(
    user_id: int,
    permission: str,
    resource: Optional[str] = None,
    user: User = Depends(require_permission(Permission.USER_MANAGE)),
):
    revoked = revoke_permission(user_id, permission, resource=resource)
    return {"revoked": revoked, "permissions": get_user_permissions(user_id)}


@router.post("/{user_id}/verify-email")
def verify_user_email(
    user_id: int, user: User = Depends(require_permission(Permission.USER_MANAGE))
):
    """Mark an account's email as verified once delivery has been confirmed."""
    return {"user": auth_service.verify_email(user_id).to_dict()}

"""Permission model for role-based access control.

A user's effective permissions are the fixed permissions of their role
plus any per-user grants stored in UserPermission.

Roles:
    admin:   every permission
    manager: inventory, locations, consumption, reports (incl. export), user:read
    user:    inventory:read, consumption:create/read, report:generate, location:read
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from sqlalchemy import or_
from sqlalchemy.orm import Session

from spog.models import User, UserPermission
from spog.models.enums import UserRole
from spog.services.database import session_scope
from spog.services.exceptions import (
    DatabaseError,
    PermissionDenied,
    ServiceError,
    UserNotFound,
    ValidationError,
)
from spog.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)


class Permission(str, Enum):
    """Permission strings, ``<resource>:<action>``."""

    # User management
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_MANAGE = "manage:users"

    # Inventory
    INVENTORY_CREATE = "inventory:create"
    INVENTORY_READ = "inventory:read"
    INVENTORY_UPDATE = "inventory:update"
    INVENTORY_DELETE = "inventory:delete"

    # Consumption
    CONSUMPTION_CREATE = "consumption:create"
    CONSUMPTION_READ = "consumption:read"

    # Reports
    REPORT_GENERATE = "report:generate"
    REPORT_EXPORT = "report:export"

    # Locations
    LOCATION_CREATE = "location:create"
    LOCATION_READ = "location:read"
    LOCATION_UPDATE = "location:update"
    LOCATION_DELETE = "location:delete"


ALL_PERMISSIONS: FrozenSet[str] = frozenset(p.value for p in Permission)

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    UserRole.ADMIN.value: ALL_PERMISSIONS,
    UserRole.MANAGER.value: frozenset(
        p.value
        for p in (
            Permission.USER_READ,
            Permission.INVENTORY_CREATE,
            Permission.INVENTORY_READ,
            Permission.INVENTORY_UPDATE,
            Permission.INVENTORY_DELETE,
            Permission.CONSUMPTION_CREATE,
            Permission.CONSUMPTION_READ,
            Permission.REPORT_GENERATE,
            Permission.REPORT_EXPORT,
            Permission.LOCATION_CREATE,
            Permission.LOCATION_READ,
            Permission.LOCATION_UPDATE,
            Permission.LOCATION_DELETE,
        )
    ),
    UserRole.USER.value: frozenset(
        p.value
        for p in (
            Permission.INVENTORY_READ,
            Permission.CONSUMPTION_CREATE,
            Permission.CONSUMPTION_READ,
            Permission.REPORT_GENERATE,
            Permission.LOCATION_READ,
        )
    ),
}

PermissionLike = Union[Permission, str]


def _value(permission: PermissionLike) -> str:
    return permission.value if isinstance(permission, Permission) else permission


def get_role_permissions(role: str) -> FrozenSet[str]:
    """Permissions granted by a role (empty for unknown roles)."""
    return ROLE_PERMISSIONS.get(role, frozenset())


def _granted(sess: Session, user_id: int, permission: str, resource: Optional[str]) -> bool:
    q = sess.query(UserPermission.id).filter(
        UserPermission.user_id == user_id, UserPermission.permission == permission
    )
    if resource is None:
        q = q.filter(UserPermission.resource.is_(None))
    else:
        q = q.filter(or_(UserPermission.resource.is_(None), UserPermission.resource == resource))
    return q.first() is not None


def has_permission(
    user: User,
    permission: PermissionLike,
    resource: Optional[str] = None,
    session: Optional[Session] = None,
) -> bool:
    """Check whether a user holds a permission.

    Inactive users hold no permissions.

    Args:
        user: User to check
        permission: Permission (enum member or string)
        resource: Optional resource a per-user grant may be limited to
        session: Optional database session for the per-user grant lookup
    """
    if user is None or not user.is_active:
        return False

    permission = _value(permission)
    if permission in get_role_permissions(user.role):
        return True

    if session is not None:
        return _granted(session, user.id, permission, resource)
    with session_scope() as sess:
        return _granted(sess, user.id, permission, resource)


def require_permission(
    user: User, permission: PermissionLike, resource: Optional[str] = None
) -> None:
    """Raise PermissionDenied unless the user holds the permission."""
    if not has_permission(user, permission, resource):
        log_operation(
            logger,
            "require_permission",
            "denied",
            user_id=getattr(user, "id", None),
            permission=_value(permission),
        )
        raise PermissionDenied(_value(permission))


def get_user_permissions(user_id: int) -> List[str]:
    """Effective permissions of a user (role plus grants), sorted.

    Raises:
        UserNotFound: If user_id doesn't exist
    """
    with session_scope() as session:
        user = session.get(User, user_id)
        if user is None:
            raise UserNotFound(user_id)
        granted = {
            row.permission
            for row in session.query(UserPermission).filter(UserPermission.user_id == user_id)
        }
        return sorted(get_role_permissions(user.role) | granted)


def grant_permission(
    user_id: int,
    permission: PermissionLike,
    granted_by: Optional[int] = None,
    resource: Optional[str] = None,
) -> UserPermission:
    """Grant an extra permission to a user.

    Granting a permission the user already has returns the existing grant.

    Raises:
        ValidationError: If the permission is unknown
        UserNotFound: If user_id doesn't exist
    """
    permission = _value(permission)
    if permission not in ALL_PERMISSIONS:
        raise ValidationError([f"Permission: Unknown permission '{permission}'"])

    try:
        with session_scope() as session:
            if session.get(User, user_id) is None:
                raise UserNotFound(user_id)

            existing = (
                session.query(UserPermission)
                .filter(
                    UserPermission.user_id == user_id,
                    UserPermission.permission == permission,
                    UserPermission.resource.is_(None)
                    if resource is None
                    else UserPermission.resource == resource,
                )
                .first()
            )
            if existing is not None:
                return existing

            grant = UserPermission(
                user_id=user_id, permission=permission, resource=resource, granted_by=granted_by
            )
            session.add(grant)
            session.flush()
            log_operation(
                logger,
                "grant_permission",
                "success",
                user_id=user_id,
                permission=permission,
                granted_by=granted_by,
            )
            return grant
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to grant {permission} to user {user_id}", original_error=e)


def revoke_permission(
    user_id: int, permission: PermissionLike, resource: Optional[str] = None
) -> bool:
    """Remove a per-user grant.

    Role permissions cannot be revoked this way.

    Returns:
        True if a grant was removed
    """
    permission = _value(permission)
    with session_scope() as session:
        q = session.query(UserPermission).filter(
            UserPermission.user_id == user_id, UserPermission.permission == permission
        )
        if resource is None:
            q = q.filter(UserPermission.resource.is_(None))
        else:
            q = q.filter(UserPermission.resource == resource)
        deleted = q.delete(synchronize_session=False)

    if deleted:
        log_operation(
            logger, "revoke_permission", "success", user_id=user_id, permission=permission
        )
    return bool(deleted)

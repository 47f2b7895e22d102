"""FastAPI dependencies for authentication and permission checks."""

from typing import Optional

from fastapi import Depends, Header

from spog.models import User
from spog.services import auth_service
from spog.services.exceptions import AuthenticationError
from spog.services.permissions import PermissionLike
from spog.services.permissions import require_permission as check_permission


def get_bearer_token(authorization: Optional[str] = Header(None)) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthenticationError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


def get_current_user(token: str = Depends(get_bearer_token)) -> User:
    return auth_service.get_user_for_token(token)


def require_permission(permission: PermissionLike):
    """Dependency factory: the current user, if they hold ``permission``.

    Example:
        @router.get("/inventory")
        def list_inventory(user: User = Depends(require_permission(Permission.INVENTORY_READ))):
            ...
    """

    def dependency(user: User = Depends(get_current_user)) -> User:
        check_permission(user, permission)
        return user

    return dependency

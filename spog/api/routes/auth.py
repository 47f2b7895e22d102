"""Authentication endpoints: registration, login sessions, passwords."""

from fastapi import APIRouter, Depends, Request

from spog.models import User
from spog.services import auth_service, user_service
from spog.services.permissions import get_user_permissions
from spog.utils.datetime_utils import ensure_aware
from spog.api import schemas
from spog.api.dependencies import get_bearer_token, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
def register(data: schemas.RegisterRequest):
    user = user_service.register_user(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        department=data.department,
    )
    return {"user": user.to_dict()}


@router.post("/login")
def login(data: schemas.LoginRequest, request: Request):
    """Open a session. The returned token goes in ``Authorization: Bearer``."""
    result = auth_service.authenticate(
        data.email,
        data.password,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        remember_me=data.remember_me,
    )
    return {
        "token": result.token,
        "expires_at": ensure_aware(result.expires_at).isoformat(),
        "user": result.user.to_dict(),
    }


@router.post("/logout")
def logout(token: str = Depends(get_bearer_token)):
    return {"logged_out": auth_service.logout(token)}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    data = user.to_dict()
    data["full_name"] = user.full_name
    data["permissions"] = get_user_permissions(user.id)
    return {"user": data}


@router.put("/me")
def update_me(data: schemas.ProfileUpdate, user: User = Depends(get_current_user)):
    updated = user_service.update_profile(user.id, data.model_dump(exclude_unset=True))
    return {"user": updated.to_dict()}


@router.post("/password-update")
def password_update(
    data: schemas.PasswordUpdateRequest, user: User = Depends(get_current_user)
):
    auth_service.change_password(user.id, data.current_password, data.new_password)
    return {"message": "Password updated"}


@router.post("/password-reset")
def password_reset(data: schemas.PasswordResetRequest):
    """Start a password reset.

    The response is the same whether or not the email is registered. The
    token is included so an external mailer can deliver it.
    """
    token = auth_service.request_password_reset(data.email)
    return {
        "message": "If the email is registered, a reset token has been issued",
        "reset_token": token,
    }


@router.post("/password-reset/confirm")
def password_reset_confirm(data: schemas.PasswordResetConfirm):
    auth_service.reset_password(data.token, data.new_password)
    return {"message": "Password has been reset"}

"""Authentication Service - Login sessions and password management.

Sessions are opaque bearer tokens (secrets.token_urlsafe) stored in
UserSession. A session lasts SPOG_SESSION_HOURS, or SPOG_REMEMBER_ME_DAYS
when the user asks to be remembered.

Password reset tokens expire after PASSWORD_RESET_TOKEN_HOURS and are
returned to the caller, which is responsible for delivering them.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from spog.models import User, UserSession
from spog.utils.config import get_config
from spog.utils.constants import PASSWORD_RESET_TOKEN_HOURS
from spog.utils.datetime_utils import ensure_aware, utc_now
from spog.utils.validators import validate_password
from spog.services.database import session_scope
from spog.services.exceptions import AuthenticationError, UserNotFound, ValidationError
from spog.services.logging_utils import get_service_logger, log_operation
from spog.services.user_service import _invalidate_sessions, normalize_email

logger = get_service_logger(__name__)

TOKEN_BYTES = 32


@dataclass
class LoginResult:
    """Outcome of a successful authenticate() call."""

    user: User
    token: str
    expires_at: datetime


def _new_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def authenticate(
    email: str,
    password: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    remember_me: bool = False,
) -> LoginResult:
    """Check credentials and open a session.

    Args:
        email: Login email (case-insensitive)
        password: Plain-text password
        ip_address / user_agent: Client details stored with the session
        remember_me: Use the long session lifetime

    Returns:
        LoginResult with the user, the bearer token and its expiry

    Raises:
        AuthenticationError: If the credentials are wrong or the account
            is inactive
    """
    config = get_config()
    lifetime = (
        timedelta(days=config.remember_me_days)
        if remember_me
        else timedelta(hours=config.session_hours)
    )

    with session_scope() as session:
        user = session.query(User).filter(User.email == normalize_email(email or "")).first()

        if user is None or not user.check_password(password or ""):
            log_operation(logger, "authenticate", "invalid_credentials", level=logging.WARNING)
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            log_operation(
                logger, "authenticate", "inactive_user", level=logging.WARNING, user_id=user.id
            )
            raise AuthenticationError("Account is deactivated")

        now = utc_now()
        user_session = UserSession(
            user_id=user.id,
            token=_new_token(),
            expires_at=now + lifetime,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255] or None,
        )
        session.add(user_session)
        user.last_login = now
        session.flush()

        log_operation(logger, "authenticate", "success", user_id=user.id, remember_me=remember_me)
        return LoginResult(user=user, token=user_session.token, expires_at=user_session.expires_at)


def logout(token: str) -> bool:
    """Invalidate a session.

    Returns:
        True if a valid session was closed
    """
    with session_scope() as session:
        user_session = (
            session.query(UserSession)
            .filter(UserSession.token == token, UserSession.is_valid.is_(True))
            .first()
        )
        if user_session is None:
            return False
        user_session.is_valid = False
        log_operation(logger, "logout", "success", user_id=user_session.user_id)
        return True


def get_user_for_token(token: Optional[str]) -> User:
    """Resolve a bearer token to its user.

    Raises:
        AuthenticationError: If the token is missing, unknown, expired,
            invalidated, or belongs to an inactive user
    """
    if not token:
        raise AuthenticationError("Authentication required")

    with session_scope() as session:
        user_session = session.query(UserSession).filter(UserSession.token == token).first()
        if user_session is None or not user_session.is_usable():
            raise AuthenticationError("Session is invalid or has expired")

        user = session.get(User, user_session.user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user


def change_password(user_id: int, current_password: str, new_password: str) -> None:
    """Change a password after checking the current one.

    Raises:
        UserNotFound: If user_id doesn't exist
        AuthenticationError: If current_password is wrong
        ValidationError: If new_password is weak
    """
    is_valid, error = validate_password(new_password, "New password")
    if not is_valid:
        raise ValidationError([error])

    with session_scope() as session:
        user = session.get(User, user_id)
        if user is None:
            raise UserNotFound(user_id)
        if not user.check_password(current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        user.set_password(new_password)
        log_operation(logger, "change_password", "success", user_id=user_id)


def request_password_reset(email: str) -> Optional[str]:
    """Create a password reset token.

    Returns:
        The reset token, or None if no active account uses that email.
        Callers should answer the same way in both cases.
    """
    with session_scope() as session:
        user = session.query(User).filter(User.email == normalize_email(email or "")).first()
        if user is None or not user.is_active:
            log_operation(logger, "request_password_reset", "unknown_email", level=logging.DEBUG)
            return None

        user.reset_token = _new_token()
        user.reset_token_expires = utc_now() + timedelta(hours=PASSWORD_RESET_TOKEN_HOURS)
        log_operation(logger, "request_password_reset", "success", user_id=user.id)
        return user.reset_token


def reset_password(token: str, new_password: str) -> None:
    """Set a new password using a reset token.

    The token is single-use and every open session of the user is closed.

    Raises:
        ValidationError: If new_password is weak
        AuthenticationError: If the token is unknown or expired
    """
    is_valid, error = validate_password(new_password, "New password")
    if not is_valid:
        raise ValidationError([error])
    if not token:
        raise AuthenticationError("Reset token is invalid or has expired")

    with session_scope() as session:
        user = session.query(User).filter(User.reset_token == token).first()
        if (
            user is None
            or user.reset_token_expires is None
            or ensure_aware(user.reset_token_expires) <= utc_now()
        ):
            raise AuthenticationError("Reset token is invalid or has expired")

        user.set_password(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        revoked = _invalidate_sessions(session, user.id)
        log_operation(
            logger, "reset_password", "success", user_id=user.id, revoked_sessions=revoked
        )


def verify_email(user_id: int) -> User:
    """Mark a user's email address as verified.

    Raises:
        UserNotFound: If user_id doesn't exist
    """
    with session_scope() as session:
        user = session.get(User, user_id)
        if user is None:
            raise UserNotFound(user_id)
        user.email_verified = True
        log_operation(logger, "verify_email", "success", user_id=user_id)
        return user

"""User Service - Account management.

This module provides user creation (by admins and by self-registration),
lookup, listing, profile updates, activation and deletion.

All functions are stateless and use session_scope() for transaction management.

Rules:
- Emails are unique and stored lowercase
- Admins can update anyone; other users only themselves
- Only admins may change roles, activate/deactivate or delete users
- Admins cannot deactivate or delete their own account
- Deactivating a user invalidates all of their sessions
"""

from typing import Any, Dict, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from spog.models import User, UserSession
from spog.models.enums import UserRole
from spog.utils.validators import validate_password, validate_role, validate_user_data
from spog.services.database import session_scope
from spog.services.dto import PageParams, PageResult
from spog.services.exceptions import (
    DatabaseError,
    DuplicateNameError,
    PermissionDenied,
    ServiceError,
    UserNotFound,
    ValidationError,
)
from spog.services.logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

_PROFILE_FIELDS = ("first_name", "last_name", "department")
_UPDATE_FIELDS = _PROFILE_FIELDS + ("email", "role")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _get_user(sess: Session, user_id: int) -> User:
    user = sess.get(User, user_id)
    if user is None:
        raise UserNotFound(user_id)
    return user


def _check_unique_email(sess: Session, email: str, exclude_id: Optional[int] = None) -> None:
    q = sess.query(User).filter(User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first() is not None:
        raise DuplicateNameError("User", email)


def _require_admin(actor: Optional[User], permission: str, message: str) -> None:
    if actor is None or not actor.is_admin:
        raise PermissionDenied(permission, message)


def _invalidate_sessions(sess: Session, user_id: int) -> int:
    return (
        sess.query(UserSession)
        .filter(UserSession.user_id == user_id, UserSession.is_valid.is_(True))
        .update({UserSession.is_valid: False}, synchronize_session=False)
    )


def create_user(
    data: Dict[str, Any], actor: Optional[User] = None, session: Optional[Session] = None
) -> User:
    """Create a user account.

    Args:
        data: email, password, first_name, last_name, and optionally role
            (default "user"), department, email_verified
        actor: Admin creating the account; None for system callers (CLI)
        session: Optional database session

    Returns:
        User: The created user

    Raises:
        PermissionDenied: If actor is given and is not an admin
        ValidationError: If a field is invalid or the password is weak
        DuplicateNameError: If the email is already registered
    """
    if actor is not None:
        _require_admin(actor, "user:create", "Only admins can create users")

    fields = dict(data)
    fields.setdefault("role", UserRole.USER.value)

    is_valid, errors = validate_user_data(fields)
    is_valid_pw, error = validate_password(fields.get("password"))
    if not is_valid_pw:
        errors.append(error)
    if errors:
        raise ValidationError(errors)

    email = normalize_email(fields["email"])

    def _impl(sess: Session) -> User:
        _check_unique_email(sess, email)

        user = User(
            email=email,
            first_name=fields["first_name"].strip(),
            last_name=fields["last_name"].strip(),
            role=fields["role"],
            department=fields.get("department"),
            email_verified=bool(fields.get("email_verified", False)),
        )
        user.set_password(fields["password"])
        sess.add(user)
        sess.flush()
        log_operation(
            logger,
            "create_user",
            "success",
            user_id=user.id,
            role=user.role,
            actor_id=getattr(actor, "id", None),
        )
        return user

    try:
        if session is not None:
            return _impl(session)
        with session_scope() as sess:
            return _impl(sess)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError("Failed to create user", original_error=e)


def register_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    department: Optional[str] = None,
) -> User:
    """Self-registration. New accounts always get the "user" role and an
    unverified email address."""
    return create_user(
        {
            "email": email,
            "password": password,
            "first_name": first_name,
            "last_name": last_name,
            "department": department,
            "role": UserRole.USER.value,
        }
    )


def get_user(user_id: int, session: Optional[Session] = None) -> User:
    """Get a user by ID.

    Raises:
        UserNotFound: If user_id doesn't exist
    """
    if session is not None:
        return _get_user(session, user_id)
    with session_scope() as sess:
        return _get_user(sess, user_id)


def get_user_by_email(email: str) -> Optional[User]:
    """Get a user by email (case-insensitive), or None."""
    with session_scope() as session:
        return session.query(User).filter(User.email == normalize_email(email)).first()


def list_users(
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> PageResult[User]:
    """List users ordered by last name, first name.

    Args:
        role: Only users with this role
        is_active: Only active (True) or inactive (False) users
        search: Case-insensitive substring of name or email

    Raises:
        ValidationError: If role or paging parameters are invalid
    """
    errors = []
    if role is not None:
        is_valid, error = validate_role(role)
        if not is_valid:
            errors.append(error)
    try:
        page = PageParams(limit=limit, offset=offset)
    except ValueError as e:
        errors.append(f"Pagination: {e}")
    if errors:
        raise ValidationError(errors)

    with session_scope() as session:
        q = session.query(User)
        if role is not None:
            q = q.filter(User.role == role)
        if is_active is not None:
            q = q.filter(User.is_active.is_(is_active))
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(
                or_(
                    User.email.ilike(pattern),
                    User.first_name.ilike(pattern),
                    User.last_name.ilike(pattern),
                )
            )

        total = q.count()
        users = (
            q.order_by(func.lower(User.last_name), func.lower(User.first_name), User.id)
            .limit(page.limit)
            .offset(page.offset)
            .all()
        )
        return PageResult(items=users, total=total, limit=page.limit, offset=page.offset)


def update_user(user_id: int, updates: Dict[str, Any], actor: User) -> User:
    """Update a user's email, name, department or role.

    Raises:
        UserNotFound: If user_id doesn't exist
        PermissionDenied: If a non-admin updates someone else or changes a role
        ValidationError: If a field is invalid
        DuplicateNameError: If the new email is taken
    """
    updates = {k: v for k, v in updates.items() if k in _UPDATE_FIELDS}

    if not actor.is_admin:
        if actor.id != user_id:
            raise PermissionDenied("user:update", "You can only update your own account")
        if "role" in updates:
            raise PermissionDenied("user:update", "Only admins can change roles")

    is_valid, errors = validate_user_data(updates, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            user = _get_user(session, user_id)

            if "email" in updates:
                updates["email"] = normalize_email(updates["email"])
                _check_unique_email(session, updates["email"], exclude_id=user_id)
            for key in ("first_name", "last_name"):
                if key in updates:
                    updates[key] = updates[key].strip()

            user.update_from_dict(updates)
            session.flush()
            log_operation(
                logger,
                "update_user",
                "success",
                user_id=user_id,
                actor_id=actor.id,
                fields=sorted(updates),
            )
            return user
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to update user {user_id}", original_error=e)


def update_profile(user_id: int, updates: Dict[str, Any]) -> User:
    """Update the caller's own name and department."""
    updates = {k: v for k, v in updates.items() if k in _PROFILE_FIELDS}

    is_valid, errors = validate_user_data(updates, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    with session_scope() as session:
        user = _get_user(session, user_id)
        for key in ("first_name", "last_name"):
            if key in updates:
                updates[key] = updates[key].strip()
        user.update_from_dict(updates)
        session.flush()
        log_operation(logger, "update_profile", "success", user_id=user_id)
        return user


def set_user_active(user_id: int, is_active: bool, actor: User) -> User:
    """Activate or deactivate a user.

    Deactivation invalidates every session of the user.

    Raises:
        PermissionDenied: If actor is not an admin
        ValidationError: If an admin deactivates themselves
        UserNotFound: If user_id doesn't exist
    """
    _require_admin(actor, "manage:users", "Only admins can change account status")
    if not is_active and actor.id == user_id:
        raise ValidationError(["Status: You cannot deactivate your own account"])

    with session_scope() as session:
        user = _get_user(session, user_id)
        user.is_active = bool(is_active)
        revoked = 0 if is_active else _invalidate_sessions(session, user_id)
        session.flush()
        log_operation(
            logger,
            "set_user_active",
            "success",
            user_id=user_id,
            is_active=user.is_active,
            revoked_sessions=revoked,
        )
        return user


def delete_user(user_id: int, actor: User) -> None:
    """Delete a user account.

    Consumption records the user made are kept with their user removed.

    Raises:
        PermissionDenied: If actor is not an admin
        ValidationError: If an admin deletes themselves
        UserNotFound: If user_id doesn't exist
    """
    _require_admin(actor, "user:delete", "Only admins can delete users")
    if actor.id == user_id:
        raise ValidationError(["User: You cannot delete your own account"])

    try:
        with session_scope() as session:
            user = _get_user(session, user_id)
            session.delete(user)
            session.flush()
            log_operation(logger, "delete_user", "success", user_id=user_id, actor_id=actor.id)
    except ServiceError:
        raise
    except Exception as e:
        raise DatabaseError(f"Failed to delete user {user_id}", original_error=e)

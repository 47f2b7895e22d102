"""
User, UserSession and UserPermission models.

This module contains the account tables:
- User: login identity, profile and role
- UserSession: bearer-token sessions created at login
- UserPermission: per-user grants on top of the role's permissions
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel
from .enums import UserRole
from spog.utils.datetime_utils import ensure_aware, utc_now


class User(BaseModel):
    """
    Application user.

    Attributes:
        email: Unique login email (stored lowercase)
        password_hash: werkzeug password hash, never serialized
        first_name / last_name: Display name
        role: admin, manager or user
        department: Optional department
        is_active: Inactive users cannot log in
        email_verified: Set once the email address is confirmed
        last_login: Timestamp of the latest successful login
        reset_token / reset_token_expires: Pending password reset
    """

    __tablename__ = "users"

    _hidden_columns = ("password_hash", "reset_token", "reset_token_expires")

    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value, index=True)
    department = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime, nullable=True)
    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expires = Column(DateTime, nullable=True)

    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    permissions = relationship(
        "UserPermission",
        back_populates="user",
        foreign_keys="UserPermission.user_id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email='{self.email}', role='{self.role}')"

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class UserSession(BaseModel):
    """
    Login session identified by an opaque bearer token.

    Attributes:
        user_id: Session owner
        token: Opaque token sent as ``Authorization: Bearer <token>``
        expires_at: Session expiry
        ip_address / user_agent: Client details at login
        is_valid: False once logged out or revoked
    """

    __tablename__ = "user_sessions"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    token = Column(String(128), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    is_valid = Column(Boolean, nullable=False, default=True)

    user = relationship("User", back_populates="sessions")

    _hidden_columns = ("token",)

    def is_expired(self, now=None) -> bool:
        """True once expires_at has passed."""
        now = now or utc_now()
        return ensure_aware(self.expires_at) <= now

    def is_usable(self, now=None) -> bool:
        return bool(self.is_valid) and not self.is_expired(now)


class UserPermission(BaseModel):
    """
    Extra permission granted to a single user.

    Attributes:
        user_id: Grantee
        permission: Permission string, e.g. "report:export"
        resource: Optional resource the grant is limited to
        granted_by: Admin who granted it
    """

    __tablename__ = "user_permissions"

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission = Column(String(50), nullable=False)
    resource = Column(String(100), nullable=True)
    granted_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    user = relationship("User", back_populates="permissions", foreign_keys=[user_id])

    __table_args__ = (
        UniqueConstraint("user_id", "permission", "resource", name="uq_user_permission"),
    )

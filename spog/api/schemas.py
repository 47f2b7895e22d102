"""Request bodies for the HTTP API.

Only shapes and types are declared here. Field rules (lengths, units,
categories, password strength) are enforced by the service layer so the
same messages come back from the API, the CLI and direct service calls.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# Auth
# ============================================================================


class LoginRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = False


class RegisterRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    department: Optional[str] = None


class PasswordUpdateRequest(BaseModel):
    current_password: str
    new_password: str


class PasswordResetRequest(BaseModel):
    email: str


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None


# ============================================================================
# Inventory
# ============================================================================


class ItemCreate(BaseModel):
    name: str
    category: str
    unit: str
    original_amount: float
    current_balance: Optional[float] = None
    minimum_quantity: Optional[float] = None
    consumption_unit: Optional[str] = None
    location_id: Optional[int] = None
    description: Optional[str] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None


class ItemUpdate(BaseModel):
    """Partial update; balance changes go through /adjust and /refill."""

    name: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    original_amount: Optional[float] = None
    minimum_quantity: Optional[float] = None
    consumption_unit: Optional[str] = None
    location_id: Optional[int] = None
    description: Optional[str] = None
    expiry_date: Optional[date] = None
    batch_number: Optional[str] = None


class BalanceAdjust(BaseModel):
    new_balance: float
    reason: Optional[str] = Field(default=None, max_length=500)


class RefillRequest(BaseModel):
    amount: float
    unit: Optional[str] = None


# ============================================================================
# Consumption
# ============================================================================


class ConsumptionCreate(BaseModel):
    inventory_item_id: int
    quantity: float
    unit: str
    notes: Optional[str] = None
    recorded_at: Optional[datetime] = None


class ConsumptionUpdate(BaseModel):
    quantity: Optional[float] = None
    unit: Optional[str] = None
    notes: Optional[str] = None


class ConsumptionValidate(BaseModel):
    inventory_item_id: int
    quantity: float
    unit: str


# ============================================================================
# Locations
# ============================================================================


class LocationCreate(BaseModel):
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[int] = None
    is_active: Optional[bool] = None


# ============================================================================
# Users
# ============================================================================


class UserCreate(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: str = "user"
    department: Optional[str] = None
    email_verified: bool = False


class UserUpdate(BaseModel):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    department: Optional[str] = None
    role: Optional[str] = None


class UserStatus(BaseModel):
    is_active: bool


class PermissionGrant(BaseModel):
    permission: str
    resource: Optional[str] = None

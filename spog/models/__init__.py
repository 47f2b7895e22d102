"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import ItemCategory, StockStatus, UserRole
from .location import Location
from .inventory_item import InventoryItem
from .consumption_record import ConsumptionRecord
from .user import User, UserPermission, UserSession

__all__ = [
    "Base",
    "BaseModel",
    # Enums
    "ItemCategory",
    "StockStatus",
    "UserRole",
    # Inventory
    "Location",
    "InventoryItem",
    "ConsumptionRecord",
    # Accounts
    "User",
    "UserSession",
    "UserPermission",
]

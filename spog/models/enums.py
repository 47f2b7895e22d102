"""
Enumerations for inventory tracking.

This module contains enums used across the models and services:
- StockStatus: Stock-level classification of an inventory item
- ItemCategory: Kind of consumable (sealant, paint, oil, grease)
- UserRole: Role that decides a user's base permissions
"""

from enum import Enum


class StockStatus(str, Enum):
    """
    Stock-level classification.

    Derived from current_balance / original_amount:

    Values:
        NORMAL: 20% or more of the original amount remains
        LOW: at least 10% but less than 20% remains
        CRITICAL: less than 10% remains (or the original amount is 0)
    """

    NORMAL = "normal"
    LOW = "low"
    CRITICAL = "critical"


class ItemCategory(str, Enum):
    """Kind of consumable held in inventory."""

    SEALANT = "Sealant"
    PAINT = "Paint"
    OIL = "Oil"
    GREASE = "Grease"


class UserRole(str, Enum):
    """
    User roles.

    Values:
        ADMIN: Every permission, including user management
        MANAGER: Inventory, locations, reports and consumption
        USER: Record consumption and read inventory
    """

    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"

"""
Constants and enumerations for the SPOG Inventory Tracker application.

This module defines all system-wide constants including:
- Application metadata
- Unit symbols (volume, weight, length)
- Inventory categories (sealant, paint, oil, grease)
- Stock status thresholds
- Validation limits and error messages
"""

from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "SPOG Inventory Tracker"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "spog_tracker.db"

# ============================================================================
# Unit Symbols
# ============================================================================

# Volume units
VOLUME_UNITS: List[str] = [
    "L",  # Litre
    "mL",  # Millilitre
]

# Weight units
WEIGHT_UNITS: List[str] = [
    "kg",  # Kilogram
    "g",  # Gram
]

# Length units (tapes, beads of sealant)
LENGTH_UNITS: List[str] = [
    "m",  # Metre
    "cm",  # Centimetre
    "mm",  # Millimetre
]

ALL_UNITS: List[str] = VOLUME_UNITS + WEIGHT_UNITS + LENGTH_UNITS

MAX_UNIT_LENGTH = 50

# ============================================================================
# Inventory Categories
# ============================================================================

CATEGORY_SEALANT = "Sealant"
CATEGORY_PAINT = "Paint"
CATEGORY_OIL = "Oil"
CATEGORY_GREASE = "Grease"

INVENTORY_CATEGORIES: List[str] = [
    CATEGORY_SEALANT,
    CATEGORY_PAINT,
    CATEGORY_OIL,
    CATEGORY_GREASE,
]

# ============================================================================
# Stock Status
# ============================================================================

STATUS_NORMAL = "normal"
STATUS_LOW = "low"
STATUS_CRITICAL = "critical"

# Percent of original amount below which an item is critical / low
CRITICAL_STOCK_PERCENT = 10
LOW_STOCK_PERCENT = 20

# ============================================================================
# Expiry Report
# ============================================================================

DEFAULT_EXPIRY_WINDOW_DAYS = 30
EXPIRY_CRITICAL_DAYS = 7

EXPIRY_STATUS_EXPIRED = "expired"
EXPIRY_STATUS_CRITICAL = "critical"
EXPIRY_STATUS_WARNING = "warning"

# ============================================================================
# Consumption
# ============================================================================

# Owners may edit their own consumption records within this window
CONSUMPTION_EDIT_WINDOW_HOURS = 24

DEFAULT_TRENDS_PERIOD_DAYS = 30

TREND_GROUPINGS: List[str] = ["day", "week", "month", "category", "user"]

# ============================================================================
# Users and Roles
# ============================================================================

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_USER = "user"

USER_ROLES: List[str] = [ROLE_ADMIN, ROLE_MANAGER, ROLE_USER]

MIN_PASSWORD_LENGTH = 8
PASSWORD_RESET_TOKEN_HOURS = 1

# ============================================================================
# Validation Limits
# ============================================================================

MAX_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000
MAX_NOTES_LENGTH = 1000
MAX_PERSON_NAME_LENGTH = 100
MAX_DEPARTMENT_LENGTH = 100
MAX_BATCH_NUMBER_LENGTH = 100

MIN_ORIGINAL_AMOUNT = 0.1
MAX_QUANTITY = 1_000_000

DEFAULT_PAGE_LIMIT = 50
MAX_PAGE_LIMIT = 1000

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than 0"
ERROR_INVALID_NON_NEGATIVE = "Must be 0 or greater"
ERROR_INVALID_UNIT = "Invalid unit"
ERROR_INVALID_CATEGORY = "Invalid category"
ERROR_INVALID_ROLE = "Invalid role"
ERROR_INVALID_EMAIL = "Must be a valid email address"
ERROR_WEAK_PASSWORD = (
    f"Must be at least {MIN_PASSWORD_LENGTH} characters and contain a letter and a digit"
)

STATUS_LABELS: Dict[str, str] = {
    STATUS_NORMAL: "Normal",
    STATUS_LOW: "Low",
    STATUS_CRITICAL: "Critical",
}

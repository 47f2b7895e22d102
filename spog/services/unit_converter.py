"""
Unit of measure conversion for the SPOG Inventory Tracker.

This module provides:
- The standard conversion table (volume, weight, length)
- convert_uom(): lenient conversion used by the consumption validator
- convert_strict() / try_convert(): family-aware conversion that refuses
  to equate units from different families
- Conversion display helpers

Conversion Strategy:
- Identical symbols (exact, or after trim + lowercase) convert 1:1
- Otherwise the factor is read from CONVERSION_FACTORS keyed by the
  symbols exactly as given
- convert_uom() falls back to a factor of 1 for pairs it does not know;
  convert_strict() raises IncompatibleUnitsError for the same pairs
"""

import logging
from enum import Enum
from typing import Dict, Optional, Tuple

from spog.services.exceptions import IncompatibleUnitsError

logger = logging.getLogger(__name__)


# ============================================================================
# Standard Conversion Table
# ============================================================================

# CONVERSION_FACTORS[from_unit][to_unit] -> multiplier
CONVERSION_FACTORS: Dict[str, Dict[str, float]] = {
    # Volume
    "L": {"mL": 1000, "L": 1},
    "mL": {"L": 0.001, "mL": 1},
    # Weight
    "kg": {"g": 1000, "kg": 1},
    "g": {"kg": 0.001, "g": 1},
    # Length
    "m": {"cm": 100, "mm": 1000, "m": 1},
    "cm": {"m": 0.01, "mm": 10, "cm": 1},
    "mm": {"m": 0.001, "cm": 0.1, "mm": 1},
}

# Multiplier used by convert_uom() when a pair is missing from the table
DEFAULT_FACTOR = 1


class UnitFamily(str, Enum):
    """
    Groups of units that can be converted into one another.

    Values:
        VOLUME: L, mL
        WEIGHT: kg, g
        LENGTH: m, cm, mm
    """

    VOLUME = "volume"
    WEIGHT = "weight"
    LENGTH = "length"


UNIT_FAMILIES: Dict[UnitFamily, Tuple[str, ...]] = {
    UnitFamily.VOLUME: ("L", "mL"),
    UnitFamily.WEIGHT: ("kg", "g"),
    UnitFamily.LENGTH: ("m", "cm", "mm"),
}

# Lowercase symbol -> canonical table symbol ("ml" -> "mL")
_CANONICAL_SYMBOLS: Dict[str, str] = {
    symbol.lower(): symbol for symbols in UNIT_FAMILIES.values() for symbol in symbols
}

_SYMBOL_FAMILIES: Dict[str, UnitFamily] = {
    symbol: family for family, symbols in UNIT_FAMILIES.items() for symbol in symbols
}


# ============================================================================
# Unit Lookup
# ============================================================================


def normalize_unit(unit: str) -> str:
    """Trim whitespace and lowercase a unit symbol."""
    return unit.strip().lower()


def canonical_unit(unit: str) -> Optional[str]:
    """
    Map a unit symbol to its canonical table spelling.

    Args:
        unit: Unit symbol in any case, e.g. " ml "

    Returns:
        Canonical symbol such as "mL", or None for unknown units
    """
    return _CANONICAL_SYMBOLS.get(normalize_unit(unit))


def get_unit_family(unit: str) -> Optional[UnitFamily]:
    """
    Determine the family of a unit.

    Args:
        unit: Unit symbol (case-insensitive)

    Returns:
        UnitFamily, or None if the unit is not in the table
    """
    symbol = canonical_unit(unit)
    if symbol is None:
        return None
    return _SYMBOL_FAMILIES[symbol]


def units_compatible(unit1: str, unit2: str) -> bool:
    """
    Check if two units can be converted without guessing.

    Identical symbols are always compatible, including symbols the table
    does not know (e.g. "tube" and "Tube").
    """
    if unit1 == unit2 or normalize_unit(unit1) == normalize_unit(unit2):
        return True
    family1 = get_unit_family(unit1)
    family2 = get_unit_family(unit2)
    return family1 is not None and family1 == family2


def get_conversion_factor(from_unit: str, to_unit: str) -> Optional[float]:
    """
    Look up the multiplier for a pair of symbols exactly as given.

    Returns:
        Multiplier, or None if the pair is not in CONVERSION_FACTORS
    """
    return CONVERSION_FACTORS.get(from_unit, {}).get(to_unit)


# ============================================================================
# Conversions
# ============================================================================


def convert_uom(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert a value from one unit to another.

    This never raises. Pairs missing from the table (including units from
    different families, e.g. "L" -> "kg") are converted with a factor of 1
    and a warning is logged. Use convert_strict() where a silent 1:1 would
    hide a data-entry mistake.

    Args:
        value: Amount to convert (may be negative, e.g. a balance delta)
        from_unit: Unit the value is expressed in
        to_unit: Unit to convert to

    Returns:
        value * factor

    Examples:
        >>> convert_uom(100, "L", "mL")
        100000
        >>> convert_uom(500, "mL", "L")
        0.5
    """
    if from_unit == to_unit:
        return value

    if normalize_unit(from_unit) == normalize_unit(to_unit):
        return value

    factor = get_conversion_factor(from_unit, to_unit)
    if factor is None:
        logger.warning(
            f"No conversion from '{from_unit}' to '{to_unit}'; using factor {DEFAULT_FACTOR}"
        )
        factor = DEFAULT_FACTOR

    converted = value * factor
    logger.debug(f"Converted {value} {from_unit} -> {converted} {to_unit} (factor {factor})")
    return converted


def convert_strict(value: float, from_unit: str, to_unit: str) -> float:
    """
    Convert between units of the same family, refusing anything else.

    Symbols are matched case-insensitively ("ml" is treated as "mL").

    Args:
        value: Amount to convert
        from_unit: Source unit
        to_unit: Target unit

    Returns:
        Converted value

    Raises:
        IncompatibleUnitsError: If either unit is unknown or the units
            belong to different families
    """
    if from_unit == to_unit or normalize_unit(from_unit) == normalize_unit(to_unit):
        return value

    from_symbol = canonical_unit(from_unit)
    to_symbol = canonical_unit(to_unit)

    if from_symbol is None or to_symbol is None:
        unknown = from_unit if from_symbol is None else to_unit
        raise IncompatibleUnitsError(from_unit, to_unit, f"unknown unit '{unknown}'")

    from_family = _SYMBOL_FAMILIES[from_symbol]
    to_family = _SYMBOL_FAMILIES[to_symbol]
    if from_family != to_family:
        raise IncompatibleUnitsError(
            from_unit,
            to_unit,
            f"{from_family.value} cannot be converted to {to_family.value}",
        )

    return value * CONVERSION_FACTORS[from_symbol][to_symbol]


def try_convert(value: float, from_unit: str, to_unit: str) -> Tuple[bool, float, str]:
    """
    Family-aware conversion in result form.

    Returns:
        Tuple of (success, converted_value, error_message)
        - success: True if conversion successful
        - converted_value: Result (0.0 if failed)
        - error_message: Error description (empty string if successful)
    """
    try:
        return True, convert_strict(value, from_unit, to_unit), ""
    except IncompatibleUnitsError as e:
        return False, 0.0, str(e)


def format_conversion(value: float, from_unit: str, to_unit: str, precision: int = 2) -> str:
    """
    Format a unit conversion for display.

    Returns:
        Formatted string (e.g., "250 mL = 0.25 L"), or "Error: ..." if
        the units are incompatible
    """
    success, converted, error = try_convert(value, from_unit, to_unit)

    if not success:
        return f"Error: {error}"

    return f"{value:g} {from_unit} = {converted:.{precision}f} {to_unit}"

"""
Unit tests for the unit of measure converter.

Tests cover:
- Table conversions within the volume, weight and length families
- Identity for equal symbols (exact and normalized)
- The factor-1 fallback of convert_uom for unknown pairs
- Family-aware strict conversion and its result-form wrapper
"""

import logging
import math

import pytest

from spog.services.exceptions import IncompatibleUnitsError
from spog.services.unit_converter import (
    CONVERSION_FACTORS,
    UnitFamily,
    canonical_unit,
    convert_strict,
    convert_uom,
    format_conversion,
    get_conversion_factor,
    get_unit_family,
    try_convert,
    units_compatible,
)


# ============================================================================
# Table Conversions
# ============================================================================


class TestConvertUom:
    """Test the lenient converter."""

    def test_litres_to_millilitres(self):
        """Test 100 L is 100000 mL."""
        assert convert_uom(100, "L", "mL") == 100000

    def test_millilitres_to_litres(self):
        """Test 500 mL is 0.5 L."""
        assert convert_uom(500, "mL", "L") == 0.5

    def test_kilograms_to_grams(self):
        """Test 1 kg is 1000 g."""
        assert convert_uom(1, "kg", "g") == 1000

    def test_length_factors(self):
        """Test metre, centimetre and millimetre factors."""
        assert convert_uom(1, "m", "cm") == 100
        assert convert_uom(1, "m", "mm") == 1000
        assert convert_uom(3, "cm", "mm") == 30
        assert convert_uom(50, "mm", "cm") == pytest.approx(5)

    def test_negative_values_convert(self):
        """Test balance deltas may be negative."""
        assert convert_uom(-2, "L", "mL") == -2000

    @pytest.mark.parametrize("unit", ["L", "mL", "kg", "g", "m", "cm", "mm", "tube"])
    def test_same_unit_is_identity(self, unit):
        """Test converting a unit to itself returns the value unchanged."""
        assert convert_uom(12.34, unit, unit) == 12.34

    def test_normalized_match_is_identity(self):
        """Test symbols equal after trim and lowercase convert 1:1."""
        assert convert_uom(7, " ML ", "ml") == 7
        assert convert_uom(7, "KG", "kg") == 7

    def test_lookup_uses_symbols_as_given(self):
        """Test a miscased symbol is not found in the table and falls back to 1."""
        assert convert_uom(2, "l", "mL") == 2

    def test_unknown_pair_falls_back_to_one(self, caplog):
        """Test unknown pairs use factor 1 and log a warning."""
        with caplog.at_level(logging.WARNING, logger="spog.services.unit_converter"):
            assert convert_uom(5, "L", "kg") == 5
        assert "No conversion from 'L' to 'kg'" in caplog.text

    def test_nan_propagates(self):
        """Test non-finite input is not rejected by the converter."""
        assert math.isnan(convert_uom(float("nan"), "L", "mL"))

    def test_round_trip_within_family(self):
        """Test converting there and back returns the original value."""
        for from_unit, targets in CONVERSION_FACTORS.items():
            for to_unit in targets:
                there = convert_uom(12.5, from_unit, to_unit)
                assert convert_uom(there, to_unit, from_unit) == pytest.approx(12.5)


# ============================================================================
# Unit Lookup
# ============================================================================


class TestUnitLookup:
    """Test unit family helpers."""

    def test_canonical_unit(self):
        """Test symbols map to their table spelling."""
        assert canonical_unit(" ml ") == "mL"
        assert canonical_unit("KG") == "kg"
        assert canonical_unit("tube") is None

    def test_get_unit_family(self):
        """Test family detection."""
        assert get_unit_family("L") == UnitFamily.VOLUME
        assert get_unit_family("g") == UnitFamily.WEIGHT
        assert get_unit_family("mm") == UnitFamily.LENGTH
        assert get_unit_family("gallon") is None

    def test_units_compatible(self):
        """Test same-family and identical units are compatible."""
        assert units_compatible("L", "mL")
        assert units_compatible("tube", "Tube")
        assert not units_compatible("L", "kg")
        assert not units_compatible("L", "tube")

    def test_get_conversion_factor(self):
        """Test raw table lookup."""
        assert get_conversion_factor("kg", "g") == 1000
        assert get_conversion_factor("kg", "L") is None


# ============================================================================
# Strict Conversion
# ============================================================================


class TestConvertStrict:
    """Test family-aware conversion."""

    def test_same_family(self):
        """Test table conversions succeed."""
        assert convert_strict(250, "mL", "L") == 0.25

    def test_case_insensitive_symbols(self):
        """Test miscased symbols resolve to the table spelling."""
        assert convert_strict(2, "l", "ML") == 2000

    def test_cross_family_raises(self):
        """Test volume to weight is refused."""
        with pytest.raises(IncompatibleUnitsError) as exc_info:
            convert_strict(1, "L", "kg")
        assert "volume cannot be converted to weight" in str(exc_info.value)

    def test_unknown_unit_raises(self):
        """Test unknown units are refused."""
        with pytest.raises(IncompatibleUnitsError, match="unknown unit 'tube'"):
            convert_strict(1, "tube", "L")

    def test_identical_unknown_units_allowed(self):
        """Test identical symbols convert 1:1 even when unknown."""
        assert convert_strict(3, "tube", "tube") == 3

    def test_try_convert(self):
        """Test the result-form wrapper."""
        assert try_convert(1, "kg", "g") == (True, 1000, "")
        success, value, error = try_convert(1, "kg", "m")
        assert success is False
        assert value == 0.0
        assert "Cannot convert 'kg' to 'm'" in error

    def test_format_conversion(self):
        """Test display formatting."""
        assert format_conversion(250, "mL", "L") == "250 mL = 0.25 L"
        assert format_conversion(1, "L", "g").startswith("Error: ")

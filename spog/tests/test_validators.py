"""Tests for input validators."""

import pytest

from spog.utils.validators import (
    validate_category,
    validate_consumption_request,
    validate_email,
    validate_inventory_item_data,
    validate_non_negative_number,
    validate_password,
    validate_positive_number,
    validate_required_string,
    validate_role,
    validate_string_length,
    validate_unit,
    validate_user_data,
)


class TestFieldValidators:
    """Test single-field validators."""

    def test_required_string(self):
        """Test blank strings are rejected."""
        assert validate_required_string("Sealant") == (True, "")
        is_valid, error = validate_required_string("   ", "Name")
        assert is_valid is False
        assert error == "Name: This field is required"

    def test_string_length(self):
        """Test the maximum length is inclusive."""
        assert validate_string_length("abc", 3)[0] is True
        assert validate_string_length("abcd", 3, "Code") == (
            False,
            "Code: Must be 3 characters or less",
        )
        assert validate_string_length(None, 3)[0] is True

    @pytest.mark.parametrize("value", [0, -1, "abc", None, float("nan"), float("inf"), True])
    def test_positive_number_rejects(self, value):
        """Test zero, negative and non-finite values are rejected."""
        assert validate_positive_number(value, "Quantity")[0] is False

    def test_positive_number_accepts_numeric_strings(self):
        """Test form input like "2.5" is accepted."""
        assert validate_positive_number("2.5")[0] is True

    def test_non_negative_number(self):
        """Test zero is allowed but negatives are not."""
        assert validate_non_negative_number(0)[0] is True
        assert validate_non_negative_number(-0.01)[0] is False

    def test_unit(self):
        """Test units need 1 to 50 characters."""
        assert validate_unit("mL")[0] is True
        assert validate_unit("")[0] is False
        assert validate_unit("x" * 51)[0] is False

    def test_category(self):
        """Test only SPOG categories are accepted."""
        for category in ("Sealant", "Paint", "Oil", "Grease"):
            assert validate_category(category)[0] is True
        is_valid, error = validate_category("Adhesive")
        assert is_valid is False
        assert "Valid: Sealant, Paint, Oil, Grease" in error

    def test_role(self):
        """Test roles."""
        assert validate_role("manager")[0] is True
        assert validate_role("owner")[0] is False

    def test_email(self):
        """Test email shape."""
        assert validate_email("tech@example.com")[0] is True
        assert validate_email("tech@example")[0] is False
        assert validate_email("")[0] is False

    @pytest.mark.parametrize("password", ["short1", "allletters", "12345678", None])
    def test_weak_passwords(self, password):
        """Test passwords need 8 characters with a letter and a digit."""
        assert validate_password(password)[0] is False

    def test_strong_password(self):
        """Test an acceptable password."""
        assert validate_password("sealant42") == (True, "")


class TestAggregateValidators:
    """Test validators that collect several errors."""

    def test_consumption_request_collects_errors(self):
        """Test every failing field is reported."""
        is_valid, errors = validate_consumption_request(0, "", "n" * 1001)
        assert is_valid is False
        assert len(errors) == 3

    def test_consumption_request_valid(self):
        """Test a valid request."""
        assert validate_consumption_request(250, "mL", "Wing panel") == (True, [])

    def test_inventory_item_data(self):
        """Test required item fields."""
        is_valid, errors = validate_inventory_item_data({"name": "Primer"})
        assert is_valid is False
        assert any(e.startswith("Category") for e in errors)
        assert any(e.startswith("Unit") for e in errors)
        assert any(e.startswith("Original amount") for e in errors)

    def test_inventory_item_partial(self):
        """Test partial validation only checks supplied fields."""
        assert validate_inventory_item_data({"minimum_quantity": 1}, partial=True) == (True, [])
        is_valid, errors = validate_inventory_item_data({"original_amount": 0}, partial=True)
        assert is_valid is False
        assert errors[0].startswith("Original amount")

    def test_user_data(self):
        """Test user fields."""
        data = {"email": "a@b.co", "first_name": "Ada", "last_name": "Admin", "role": "admin"}
        assert validate_user_data(data) == (True, [])
        assert validate_user_data({"role": "root"}, partial=True)[0] is False

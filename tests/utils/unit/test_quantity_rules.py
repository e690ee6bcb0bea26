"""
Quantity Rules Tests

Tests parsing and validation of cart / order quantities:
- Parsing client input (numbers and digit strings, two decimal places)
- Whole-number rule for everything except fabric
- Minimum and step rules of a variant
- Line totals rounded to whole kobo

Run with:
    pytest tests/utils/unit/test_quantity_rules.py -v
"""

from decimal import Decimal

import pytest

from enums.product_type import ProductType
from exceptions.cart import InvalidQuantityException
from utils.quantity import parse_quantity, check_step_rule, validate_line_quantity, line_total_kobo, \
    format_quantity, MAX_QUANTITY


class TestParseQuantity:
    """Test parsing of client-supplied quantities"""

    @pytest.mark.parametrize("value,expected", [
        (2, Decimal("2")),
        (2.5, Decimal("2.5")),
        ("2", Decimal("2")),
        ("2.50", Decimal("2.5")),
        (" 3.25 ", Decimal("3.25")),
        (0, Decimal("0")),
    ])
    def test_valid_values(self, value, expected):
        assert parse_quantity(value) == expected

    @pytest.mark.parametrize("value", [None, True, False, -1, "-1", "", "abc", "1e3", float("nan"),
                                       float("inf"), [1], {"qty": 1}])
    def test_invalid_values_are_absent(self, value):
        assert parse_quantity(value) is None

    def test_more_than_two_decimals_rejected(self):
        with pytest.raises(InvalidQuantityException) as exc_info:
            parse_quantity("1.255")
        assert "2 decimal places" in str(exc_info.value)

    def test_trailing_zeros_do_not_count_as_decimals(self):
        assert parse_quantity("1.2500") == Decimal("1.25")

    @pytest.mark.parametrize("value", ["9" * 30, "1000000.01", 10 ** 17])
    def test_oversized_values_rejected(self, value):
        with pytest.raises(InvalidQuantityException, match="Quantity cannot exceed 1000000"):
            parse_quantity(value)

    def test_maximum_itself_is_valid(self):
        assert parse_quantity("1000000") == Decimal("1000000")


class TestStepRule:
    """Test minimum and step rules"""

    def test_zero_rejected(self):
        with pytest.raises(InvalidQuantityException, match="greater than 0"):
            check_step_rule(Decimal("0"), None, None)

    def test_above_maximum_rejected(self):
        with pytest.raises(InvalidQuantityException, match="cannot exceed"):
            check_step_rule(MAX_QUANTITY + 1, None, None)

    def test_below_minimum(self):
        with pytest.raises(InvalidQuantityException, match="Minimum quantity is 1.5"):
            check_step_rule(Decimal("1"), Decimal("1.5"), None)

    def test_minimum_itself_is_valid(self):
        check_step_rule(Decimal("1"), Decimal("1"), Decimal("0.5"))

    @pytest.mark.parametrize("qty", ["1.5", "2", "4.5"])
    def test_minimum_plus_whole_steps(self, qty):
        check_step_rule(Decimal(qty), Decimal("1"), Decimal("0.5"))

    def test_off_step_rejected(self):
        with pytest.raises(InvalidQuantityException) as exc_info:
            check_step_rule(Decimal("1.25"), Decimal("1"), Decimal("0.5"))
        assert str(exc_info.value) == "Quantity must follow step rules (min: 1, step: 0.5)"

    def test_step_without_minimum_counts_from_zero(self):
        check_step_rule(Decimal("1.5"), None, Decimal("0.5"))
        with pytest.raises(InvalidQuantityException, match="min: 0"):
            check_step_rule(Decimal("0.7"), None, Decimal("0.5"))


class TestLineQuantity:
    """Test the whole-number rule per product type"""

    def test_fabric_accepts_fractions(self):
        validate_line_quantity(Decimal("2.5"), ProductType.FABRIC, Decimal("1"), Decimal("0.5"))

    @pytest.mark.parametrize("product_type", [ProductType.READY_MADE, ProductType.CAP, ProductType.SHOE,
                                              ProductType.SERVICE])
    def test_other_types_need_whole_numbers(self, product_type):
        with pytest.raises(InvalidQuantityException, match="whole number"):
            validate_line_quantity(Decimal("1.5"), product_type, None, None)

    def test_custom_whole_number_message(self):
        with pytest.raises(InvalidQuantityException, match="Non-fabric items must use whole-number quantity"):
            validate_line_quantity(Decimal("0.5"), ProductType.CAP, None, None,
                                   whole_number_message="Non-fabric items must use whole-number quantity")


class TestLineTotal:
    """Test money arithmetic on quantities"""

    def test_whole_quantity(self):
        assert line_total_kobo(500000, Decimal("3")) == 1500000

    def test_fractional_quantity(self):
        assert line_total_kobo(500000, Decimal("2.5")) == 1250000

    def test_rounds_half_up_to_whole_kobo(self):
        # 333 * 1.5 = 499.5
        assert line_total_kobo(333, Decimal("1.5")) == 500

    def test_format_quantity(self):
        assert format_quantity(Decimal("2.50")) == "2.5"
        assert format_quantity(Decimal("100")) == "100"
        assert format_quantity(None) is None

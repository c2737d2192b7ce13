"""
Unit tests for utility functions.
"""

from datetime import date, datetime
from enum import Enum

import pytest

from investment_tax.models import CostOfImprovement, GainType
from investment_tax.utils import (
    ADVANCE_TAX_QUARTERS,
    add_months,
    format_currency_inr,
    get_advance_tax_quarter,
    months_between,
    parse_date,
    to_jsonable,
    years_between,
)


class TestParseDate:
    """Tests for parse_date."""

    def test_iso_string(self):
        """Test ISO date string."""
        assert parse_date("2024-12-31") == date(2024, 12, 31)

    def test_custom_format(self):
        """Test explicit format."""
        assert parse_date("31-Dec-2024", "%d-%b-%Y") == date(2024, 12, 31)

    def test_datetime_passthrough(self):
        """Test datetime is reduced to a date."""
        assert parse_date(datetime(2024, 12, 31, 10, 30)) == date(2024, 12, 31)

    def test_invalid(self):
        """Test invalid string raises ValueError."""
        with pytest.raises(ValueError):
            parse_date("31/12/2024")


class TestMonthArithmetic:
    """Tests for add_months and months_between."""

    def test_add_months_clamps_month_end(self):
        """Test 31 Jan + 1 month lands on the last day of February."""
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)

    def test_add_months_negative(self):
        """Test shifting backwards across a year."""
        assert add_months(date(2024, 5, 15), -6) == date(2023, 11, 15)

    def test_months_between(self):
        """Test whole calendar months."""
        assert months_between(date(2023, 1, 15), date(2024, 12, 16)) == 23
        assert months_between(date(2023, 1, 15), date(2023, 2, 14)) == 0

    def test_months_between_month_end(self):
        """Test month-end acquisitions count on shorter month ends."""
        assert months_between(date(2024, 1, 31), date(2024, 2, 29)) == 1

    def test_months_between_reversed(self):
        """Test end before start gives zero."""
        assert months_between(date(2024, 5, 1), date(2024, 1, 1)) == 0

    def test_years_between(self):
        """Test fractional years."""
        assert years_between(date(2024, 1, 1), date(2025, 1, 1)) == pytest.approx(366 / 365.25)


class TestFormatCurrencyInr:
    """Tests for format_currency_inr."""

    def test_lakh_grouping(self):
        """Test Indian digit grouping."""
        assert format_currency_inr(123456.78) == "₹1,23,456.78"

    def test_crore_grouping(self):
        """Test crore grouping."""
        assert format_currency_inr(12345678) == "₹1,23,45,678.00"

    def test_small_amount(self):
        """Test amount under a thousand."""
        assert format_currency_inr(999) == "₹999.00"

    def test_negative_without_symbol(self):
        """Test negative amount without symbol."""
        assert format_currency_inr(-1500, include_symbol=False) == "-1,500.00"


class TestAdvanceTaxQuarter:
    """Tests for get_advance_tax_quarter."""

    @pytest.mark.parametrize("sale_date,expected", [
        (date(2025, 4, 1), "Upto 15 Jun"),
        (date(2025, 6, 15), "Upto 15 Jun"),
        (date(2025, 6, 16), "16 Jun-15 Sep"),
        (date(2025, 9, 15), "16 Jun-15 Sep"),
        (date(2025, 9, 16), "16 Sep-15 Dec"),
        (date(2025, 12, 16), "16 Dec-15 Mar"),
        (date(2026, 3, 15), "16 Dec-15 Mar"),
        (date(2026, 3, 16), "16 Mar-31 Mar"),
    ])
    def test_quarters(self, sale_date, expected):
        """Test quarter boundaries."""
        assert get_advance_tax_quarter(sale_date) == expected
        assert expected in ADVANCE_TAX_QUARTERS


class TestToJsonable:
    """Tests for to_jsonable."""

    def test_dataclass(self):
        """Test dataclass with a date."""
        item = CostOfImprovement(incurred_on=date(2020, 5, 1), amount=5000.0, description="Roof")

        assert to_jsonable(item) == {
            "incurred_on": "2020-05-01",
            "amount": 5000.0,
            "description": "Roof",
        }

    def test_enum_and_tuple(self):
        """Test enums become values and tuples lists."""
        assert to_jsonable((GainType.LTCG, GainType.STCG)) == ["LTCG", "STCG"]

    def test_nested_dict(self):
        """Test nested dictionaries."""
        class Color(Enum):
            RED = "red"

        assert to_jsonable({"a": {"b": Color.RED}}) == {"a": {"b": "red"}}

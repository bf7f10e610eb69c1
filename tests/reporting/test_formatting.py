"""Tests for number and date display formatting."""

from datetime import date
from decimal import Decimal

import pytest

from stock_modules.reporting.formatting import export_file_name, format_date, format_number


class TestFormatNumber:

    @pytest.mark.parametrize(
        "value, decimals, expected",
        [
            (Decimal("1234567.891"), 2, "1 234 567,89"),
            (Decimal("1050"), 3, "1 050,000"),
            (Decimal("0.005"), 2, "0,01"),
            (Decimal("-1234.5"), 2, "-1 234,50"),
            (Decimal("12"), 0, "12"),
            (7, 2, "7,00"),
        ],
    )
    def test_formats(self, value, decimals, expected):
        assert format_number(value, decimals) == expected

    def test_negligible_prints_as_zero(self):
        assert format_number(Decimal("-0.0000001"), 3) == "0,000"

    def test_no_negative_zero(self):
        assert format_number(Decimal("-0.001"), 2) == "0,00"


class TestDates:

    def test_format_date(self):
        assert format_date(date(2024, 3, 7)) == "07/03/2024"

    def test_missing_date(self):
        assert format_date(None) == "-"

    def test_export_file_name(self):
        assert export_file_name(date(2024, 6, 15), "csv") == "stock_report_2024-06-15.csv"
        assert export_file_name(date(2024, 6, 15), ".xlsx") == "stock_report_2024-06-15.xlsx"

"""Tests for export value parsing."""

import math
from datetime import UTC, datetime

import pandas as pd
import pytest
from studiostats.conversions.parsing import (
    clean_text,
    format_currency,
    is_missing,
    parse_amount,
    parse_date,
    parse_flag,
)


class TestIsMissing:
    """Test is_missing."""

    @pytest.mark.parametrize("value", [None, "", "   ", math.nan, pd.NaT])
    def test_missing(self, value):
        """Test values treated as missing."""
        assert is_missing(value) is True

    @pytest.mark.parametrize("value", ["x", 0, 0.0, False])
    def test_present(self, value):
        """Test values treated as present."""
        assert is_missing(value) is False


class TestCleanText:
    """Test clean_text."""

    def test_trims(self):
        assert clean_text("  Kemps Corner ") == "Kemps Corner"

    def test_numbers_become_text(self):
        assert clean_text(42) == "42"

    def test_missing_becomes_empty(self):
        assert clean_text(math.nan) == ""


class TestParseDate:
    """Test parse_date."""

    def test_iso_date(self):
        """Test ISO date strings."""
        assert parse_date("2024-01-05") == datetime(2024, 1, 5)

    def test_datetime_string(self):
        """Test date-time strings keep the time."""
        assert parse_date("2024-01-05 18:30:00") == datetime(2024, 1, 5, 18, 30)

    def test_datetime_passthrough(self):
        """Test datetime objects."""
        assert parse_date(datetime(2024, 3, 1, 9, 0)) == datetime(2024, 3, 1, 9, 0)

    def test_pandas_timestamp(self):
        """Test pandas Timestamps become plain datetimes."""
        parsed = parse_date(pd.Timestamp("2024-03-01"))
        assert parsed == datetime(2024, 3, 1)

    def test_timezone_aware_converted_to_utc(self):
        """Test aware values are compared on UTC."""
        parsed = parse_date("2024-01-05T05:30:00+05:30")
        assert parsed == datetime(2024, 1, 5, 0, 0)
        assert parsed.tzinfo is None

    def test_aware_datetime(self):
        """Test aware datetime objects are made naive UTC."""
        parsed = parse_date(datetime(2024, 1, 5, 12, 0, tzinfo=UTC))
        assert parsed == datetime(2024, 1, 5, 12, 0)

    @pytest.mark.parametrize("value", ["not a date", "", None, math.nan, 12345, "now", " Today ", "yesterday"])
    def test_unreadable(self, value):
        """Test unreadable values, including clock-relative words, return None."""
        assert parse_date(value) is None


class TestParseAmount:
    """Test parse_amount."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1000, 1000.0),
            (99.5, 99.5),
            ("1000", 1000.0),
            ("₹1,250.00", 1250.0),
            (" INR 2,000 ", 2000.0),
            ("-50", -50.0),
            ("0", 0.0),
        ],
    )
    def test_readable(self, value, expected):
        """Test amounts that parse."""
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "n/a", math.nan, True])
    def test_unreadable(self, value):
        """Test amounts that do not parse."""
        assert parse_amount(value) is None


class TestParseFlag:
    """Test parse_flag."""

    @pytest.mark.parametrize("value", ["YES", "yes", "Y", "true", "TRUE", "1", 1, True])
    def test_true(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", ["NO", "n", "false", "0", 0, False, None, "", math.nan])
    def test_false(self, value):
        assert parse_flag(value) is False


class TestFormatCurrency:
    """Test format_currency."""

    def test_default_symbol(self):
        assert format_currency(1000) == "₹1,000.00"

    def test_custom_symbol(self):
        assert format_currency(1234.5, "$") == "$1,234.50"

    def test_negative(self):
        assert format_currency(-50, "$") == "-$50.00"

"""Unit tests for the value and date codec."""

import pytest

from meterdata.codec import format_date, parse_value


class TestParseValue:
    """Tests for parse_value function."""

    def test_value_with_flag(self) -> None:
        """Test that only the text before the comma is parsed."""
        assert parse_value(".739,+") == pytest.approx(0.739)

    def test_integer_value_with_flag(self) -> None:
        assert parse_value("12,A") == 12.0

    def test_value_without_flag(self) -> None:
        assert parse_value("1.25") == 1.25

    def test_empty_cell_is_zero(self) -> None:
        assert parse_value("") == 0.0

    def test_missing_cell_is_zero(self) -> None:
        assert parse_value(None) == 0.0

    def test_flag_only_is_zero(self) -> None:
        assert parse_value(",+") == 0.0

    def test_non_numeric_is_zero(self) -> None:
        """Test that non-numeric cells are coerced to zero, not NaN."""
        assert parse_value("abc,+") == 0.0

    def test_nan_literal_is_zero(self) -> None:
        assert parse_value("nan,+") == 0.0

    def test_surrounding_whitespace(self) -> None:
        assert parse_value(" .5 ,+") == 0.5


class TestFormatDate:
    """Tests for format_date function."""

    def test_reorders_day_month_year(self) -> None:
        assert format_date("01-10-2025") == "2025-10-01"

    def test_strips_whitespace(self) -> None:
        assert format_date(" 31-12-2024 ") == "2024-12-31"

    def test_no_calendar_validation(self) -> None:
        """Test that impossible dates are reordered without validation."""
        assert format_date("45-13-2025") == "2025-13-45"

    def test_malformed_literal_passes_through(self) -> None:
        assert format_date("2025/10/01") == "2025/10/01"
        assert format_date("01-10") == "01-10"

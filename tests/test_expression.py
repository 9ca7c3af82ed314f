"""Tests for quick-entry expression parsing."""

from decimal import Decimal

import pytest

from paytrack.parsing import is_valid_charset, parse_expression


class TestParseExpression:
    """Tests for parse_expression()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("10+15", Decimal("25")),
            ("10 + 15 + 20", Decimal("45")),
            ("10.5+15.5", Decimal("26")),
            ("100", Decimal("100")),
            ("abc+5", Decimal("5")),
        ],
    )
    def test_sums_plus_separated_numbers(self, text, expected):
        assert parse_expression(text) == expected

    def test_empty_input_is_zero(self):
        """Empty, whitespace-only and missing input all yield 0."""
        assert parse_expression("") == 0
        assert parse_expression("   \t ") == 0
        assert parse_expression(None) == 0

    def test_returns_decimal(self):
        """Amounts must not go through float."""
        result = parse_expression("0.1+0.2")
        assert isinstance(result, Decimal)
        assert result == Decimal("0.3")

    def test_whitespace_inside_numbers_is_ignored(self):
        assert parse_expression(" 1 0 +\t5 ") == Decimal("15")

    def test_plus_only_input_is_zero(self):
        assert parse_expression("+++") == 0

    def test_trailing_and_leading_plus(self):
        assert parse_expression("+5+") == Decimal("5")

    def test_bare_fractions(self):
        assert parse_expression(".5+.5") == Decimal("1")
        assert parse_expression("5.") == Decimal("5")

    def test_malformed_tokens_are_dropped_not_raised(self):
        """Signs, exponents, specials and double dots are not plain numbers."""
        assert parse_expression("-5+10") == Decimal("10")
        assert parse_expression("1e3+1") == Decimal("1")
        assert parse_expression("NaN+Infinity+2") == Decimal("2")
        assert parse_expression("1..2+3") == Decimal("3")

    def test_all_tokens_invalid_is_zero(self):
        assert parse_expression("abc+def") == 0


class TestCharsetGuard:
    """Tests for is_valid_charset()."""

    @pytest.mark.parametrize("text", ["", "10+15", "10.5 + 3", "+++", "  "])
    def test_accepts_digits_dots_plus_and_whitespace(self, text):
        assert is_valid_charset(text) is True

    @pytest.mark.parametrize("text", ["abc", "10-5", "2*3", "(1)", "1e3"])
    def test_rejects_other_characters(self, text):
        assert is_valid_charset(text) is False

    def test_guard_does_not_imply_meaningful_value(self):
        """Passing the guard says nothing about the parsed amount."""
        assert is_valid_charset("+++")
        assert parse_expression("+++") == 0
        assert is_valid_charset("1..2")
        assert parse_expression("1..2") == 0

"""
Tests for money formatting and amount parsing
"""
from decimal import Decimal

import pytest

from app.utils.money import format_money, format_percent
from app.utils.validation import parse_amount, validate_name


def test_format_money_ars():
    assert format_money(15000, "ARS") == "$ 15.000,00"


def test_format_money_other_currency():
    assert format_money(1200.5, "USD") == "1.200,50 USD"
    assert format_money(0, "EUR", 0) == "0 EUR"


def test_format_percent():
    assert format_percent(85.456) == "85,5%"


class TestParseAmount:
    def test_comma_decimal(self):
        assert parse_amount("100,50") == Decimal("100.50")

    def test_number_types(self):
        assert parse_amount(950) == Decimal("950")
        assert parse_amount(12.5) == Decimal("12.5")

    def test_too_many_decimals(self):
        with pytest.raises(ValueError):
            parse_amount("1.234")

    def test_garbage(self):
        with pytest.raises(ValueError, match="Некорректная сумма"):
            parse_amount("abc")


def test_validate_name():
    assert validate_name("  Luz  ", 10) == "Luz"
    with pytest.raises(ValueError, match="не может быть пустым"):
        validate_name("   ", 10)
    with pytest.raises(ValueError, match="длиннее"):
        validate_name("x" * 11, 10)

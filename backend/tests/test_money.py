from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain.money import format_amount, from_minor_units, to_decimal, to_minor_units


@pytest.mark.parametrize(
    ("amount", "cents"),
    [
        (Decimal("10.00"), 1000),
        (Decimal("0.005"), 1),
        (Decimal("0.015"), 2),
        (Decimal("-0.005"), -1),
        (Decimal("19.994"), 1999),
    ],
)
def test_to_minor_units_rounds_half_away_from_zero(amount, cents):
    assert to_minor_units(amount) == cents


def test_from_minor_units_accepts_strings_and_none():
    assert from_minor_units("2599") == Decimal("25.99")
    assert from_minor_units(None) == Decimal("0.00")


def test_to_decimal_avoids_float_noise():
    assert to_decimal(0.1 + 0.2) == Decimal("0.30")
    assert to_decimal("10") == Decimal("10.00")


def test_to_decimal_rejects_garbage():
    with pytest.raises(ValueError):
        to_decimal("ten")


def test_format_amount():
    assert format_amount(Decimal("1234.5")) == "$1,234.50"

"""Currency helpers; amounts are Decimals in display units, processor amounts are cents."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
_MINOR_UNITS_PER_UNIT = Decimal(100)


def quantize(value: Decimal) -> Decimal:
    # ROUND_HALF_UP on Decimal rounds ties away from zero for negatives too.
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return quantize(value)
    if isinstance(value, float):
        value = repr(value)
    try:
        return quantize(Decimal(str(value)))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid currency amount: {value!r}") from exc


def from_minor_units(value: Any) -> Decimal:
    if value is None:
        return ZERO
    try:
        cents = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid minor-unit amount: {value!r}") from exc
    return quantize(cents / _MINOR_UNITS_PER_UNIT)


def to_minor_units(amount: Decimal) -> int:
    scaled = (amount * _MINOR_UNITS_PER_UNIT).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(scaled)


def format_amount(amount: Decimal) -> str:
    return f"${quantize(amount):,.2f}"


__all__ = [
    "CENT",
    "ZERO",
    "format_amount",
    "from_minor_units",
    "quantize",
    "to_decimal",
    "to_minor_units",
]

"""Decimal money helpers. All amounts are kept to two fractional digits."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Sub-cent noise is treated as equality
TOLERANCE = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without going through binary float representation"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_money(value: Number) -> Decimal:
    """Round to cents, halves away from zero (2.345 -> 2.35, -2.345 -> -2.35)"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    """Human-readable amount: 1 234 567.89"""
    return f"{round_money(value):,.2f}".replace(",", " ")

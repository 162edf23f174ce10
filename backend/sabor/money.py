"""
Currency helpers.

Amounts are stored as integer cents and exposed as Decimal or as strings
with exactly two decimal places ("22.00"). Nothing in here goes through
float.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(CENT)


def format_cents(cents: Optional[int]) -> Optional[str]:
    if cents is None:
        return None
    return str(cents_to_decimal(cents))


def decimal_to_cents(amount: Decimal) -> int:
    """Round half-up to the cent and return the integer number of cents."""
    return int((amount.quantize(CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())


def average_cents(total_cents: int, count: int) -> Decimal:
    """Average of `count` amounts summing to `total_cents`, rounded half-up; 0.00 when count is 0."""
    if count <= 0:
        return Decimal("0.00")
    return (Decimal(int(total_cents)) / Decimal(count) / 100).quantize(CENT, rounding=ROUND_HALF_UP)

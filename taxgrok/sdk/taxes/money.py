"""Cent rounding for monetary values.

Every monetary figure the engine produces is rounded to cents at the point it
is produced, using round-half-up on the decimal representation. Floats are
converted through ``str()`` so 1339.075 rounds to 1339.08 rather than
falling victim to binary representation error.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")

Number = Union[int, float, Decimal]


def to_decimal(amount: Number) -> Decimal:
    """Convert a number to Decimal via its shortest string form."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def round_cents(amount: Number) -> float:
    """Round to 2 decimal places, half-up (1.005 -> 1.01, -1.005 -> -1.01)."""
    return float(to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP))


def multiply(amount: Number, rate: Number) -> float:
    """Multiply an amount by a rate and round the product to cents."""
    return round_cents(to_decimal(amount) * to_decimal(rate))


def sum_cents(*amounts: Number) -> float:
    """Sum amounts exactly and round the total to cents."""
    return round_cents(sum((to_decimal(a) for a in amounts), Decimal(0)))


def round_rate(rate: Number) -> float:
    """Round a ratio (e.g. effective tax rate) to 4 decimal places."""
    return float(to_decimal(rate).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP))

"""
Money helpers shared by all calculators.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def apply_rate(amount: Decimal, rate_percent: Decimal) -> Decimal:
    """amount * rate / 100, rounded."""
    return quantize_money(amount * rate_percent / Decimal("100"))

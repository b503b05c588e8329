"""Money rounding helpers"""

import math
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round_cents(value: float) -> float:
    """Round half-up to cents (avoids banker's rounding of round())"""
    return float(Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def ceil_cents(value: float) -> float:
    """Round up to the next cent, used when a payment must not undershoot"""
    return math.ceil(round(value * 100, 6)) / 100


def to_decimal(value: float) -> Decimal:
    """Exact decimal view of a float amount as the user would have typed it"""
    return Decimal(str(value))

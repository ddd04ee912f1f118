from __future__ import annotations

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

_CENTS = Decimal("0.01")


def round_currency(amount: float) -> float:
    """Round half-up to cents (2.005 -> 2.01, not banker's rounding)."""
    return float(Decimal(repr(float(amount))).quantize(_CENTS, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    return int(Decimal(repr(float(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def truncate_currency(amount: float) -> float:
    """Round toward zero to cents, so a capped rate never exceeds its cap."""
    return float(Decimal(repr(float(amount))).quantize(_CENTS, rounding=ROUND_DOWN))

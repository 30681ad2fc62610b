"""Decimal helpers for currency amounts and rates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

CENT: Decimal = Decimal("0.01")
ZERO: Decimal = Decimal("0")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Convert a numeric value to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() gives the shortest repr, so 0.1 becomes Decimal("0.1").
        return Decimal(str(value))
    return Decimal(value)


def quantize(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def total(values: Iterable[Decimal]) -> Decimal:
    # sum() starts from int 0, which would drop the exponent of an empty sum.
    return sum(values, ZERO)

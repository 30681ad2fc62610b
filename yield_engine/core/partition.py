"""Constrained random partition.

Splits an exact total into N quantized slots with bounded random variance
while guaranteeing that the slots sum to the total exactly:

1. draw one weight per slot from [1 - variance, 1 + variance]
2. normalize the weights to sum to 1 and scale by the total
3. quantize every slot except the last
4. assign the last slot the exact residual

Both the daily payout schedule and the trade stream close their totals
through ``close_residual``.
"""

from __future__ import annotations

import random
from decimal import Decimal
from typing import Sequence

from yield_engine.core.domain.errors import InvalidScheduleError
from yield_engine.core.domain.money import CENT, ZERO, quantize, total


def close_residual(head: Sequence[Decimal], target: Decimal) -> Decimal:
    """Return the amount that makes ``head`` plus it sum exactly to ``target``."""
    return target - total(head)


def absorb_deficit(slots: list[Decimal]) -> list[Decimal]:
    """Clamp a negative last slot to zero, taking the deficit from earlier slots.

    The deficit is redistributed backward starting at the second-to-last
    slot; no slot is taken below zero. The walk is deterministic, so the
    same input always produces the same output.
    """
    if not slots or slots[-1] >= 0:
        return slots

    result = list(slots)
    deficit = -result[-1]
    result[-1] = ZERO

    for index in range(len(result) - 2, -1, -1):
        if deficit == 0:
            break
        take = min(result[index], deficit)
        result[index] -= take
        deficit -= take

    if deficit != 0:
        # Only reachable when the total itself is negative.
        raise InvalidScheduleError("cannot partition a negative total into non-negative slots")

    return result


def draw_weights(count: int, variance: Decimal, rng: random.Random) -> list[Decimal]:
    low = float(1 - variance)
    high = float(1 + variance)
    return [Decimal(str(rng.uniform(low, high))) for _ in range(count)]


def constrained_random_partition(
    amount: Decimal,
    slots: int,
    *,
    variance: Decimal,
    rng: random.Random,
    quantum: Decimal = CENT,
) -> list[Decimal]:
    """Split ``amount`` into ``slots`` non-negative quantized shares summing to it exactly.

    ``amount`` is quantized first; the returned shares sum to the quantized
    amount. With zero slots the amount must be zero.
    """
    if slots < 0:
        raise InvalidScheduleError("slot count must be non-negative")

    target = quantize(amount, quantum)

    if target < 0:
        raise InvalidScheduleError("cannot partition a negative amount")

    if slots == 0:
        if target != 0:
            raise InvalidScheduleError(f"cannot distribute {target} over zero days")
        return []

    weights = draw_weights(slots, variance, rng)
    weight_sum = total(weights)

    head = [quantize(target * w / weight_sum, quantum) for w in weights[:-1]]
    shares = head + [close_residual(head, target)]

    return absorb_deficit(shares)

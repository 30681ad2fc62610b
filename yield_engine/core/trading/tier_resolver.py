"""Account-size to trade-density lookup."""

from __future__ import annotations

from bisect import bisect_right
from decimal import Decimal

from yield_engine.core.config.engine_config import ActivityTierTable
from yield_engine.core.domain.errors import InvalidInputError
from yield_engine.core.domain.money import to_decimal
from yield_engine.core.domain.types import ActivityTier


class ActivityTierResolver:
    """Returns the highest tier whose lower bound is <= the account size."""

    def __init__(self, table: ActivityTierTable) -> None:
        self._table = table
        self._bounds = [tier.lower_bound for tier in table.tiers]

    @property
    def version(self) -> str:
        return self._table.version

    def resolve(self, account_size: Decimal | float | int) -> ActivityTier:
        size = to_decimal(account_size)
        if not size.is_finite() or size < 0:
            raise InvalidInputError(f"account size must be a non-negative amount, got {size}")

        # The table starts at 0, so a non-negative size always lands on a tier.
        index = bisect_right(self._bounds, size) - 1
        return self._table.tiers[index]

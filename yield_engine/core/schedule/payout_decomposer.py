"""Daily payout decomposition of a month's interest."""

from __future__ import annotations

import logging
import random
from datetime import date
from decimal import Decimal
from typing import Sequence

from yield_engine.core.config.engine_config import PayoutConfig
from yield_engine.core.domain.errors import InvalidScheduleError
from yield_engine.core.domain.ids import PayoutKey, stable_payout_id
from yield_engine.core.domain.money import CENT, quantize
from yield_engine.core.domain.types import DailyPayout, MonthlyPlan
from yield_engine.core.partition import constrained_random_partition

LOGGER = logging.getLogger(__name__)


def validate_calendar_days(calendar_days: Sequence[date]) -> None:
    """Reject day lists that are not strictly ascending calendar dates."""
    for day in calendar_days:
        if not isinstance(day, date):
            raise InvalidScheduleError(f"calendar day must be a date, got {day!r}")
    for prev, nxt in zip(calendar_days, calendar_days[1:]):
        if nxt <= prev:
            raise InvalidScheduleError(
                f"calendar days must be strictly ascending ({prev} then {nxt})"
            )


class DailyPayoutDecomposer:
    """Splits one month's interest into per-calendar-day payouts.

    The calendar is 24/7: no weekend or holiday exclusion. Every slot is
    quantized except the last, which takes the exact residual, so the
    amounts always sum to the total.
    """

    def __init__(
        self,
        payout_cfg: PayoutConfig,
        *,
        quantum: Decimal = CENT,
        rng: random.Random | None = None,
    ) -> None:
        self._cfg = payout_cfg
        self._quantum = quantum
        self._rng = rng if rng is not None else random.Random()

    def decompose(
        self,
        starting_balance: Decimal,
        rate: Decimal,
        calendar_days: Sequence[date],
    ) -> list[Decimal]:
        """Return one amount per day, summing exactly to starting_balance * rate."""
        total_interest = quantize(starting_balance * rate, self._quantum)
        return self.distribute(total_interest, calendar_days)

    def distribute(self, amount: Decimal, calendar_days: Sequence[date]) -> list[Decimal]:
        """Return one amount per day, summing exactly to ``amount``."""
        validate_calendar_days(calendar_days)

        amounts = constrained_random_partition(
            amount,
            len(calendar_days),
            variance=self._cfg.weight_variance,
            rng=self._rng,
            quantum=self._quantum,
        )

        LOGGER.debug(
            "interest distributed",
            extra={"days": len(calendar_days), "amount": str(amount)},
        )
        return amounts

    def build_payouts(
        self,
        plan: MonthlyPlan,
        amounts: Sequence[Decimal],
        calendar_days: Sequence[date],
        *,
        namespace: str,
    ) -> list[DailyPayout]:
        """Wrap decomposed amounts into pending DailyPayout rows owned by ``plan``."""
        if len(amounts) != len(calendar_days):
            raise InvalidScheduleError("amounts and calendar days differ in length")

        return [
            DailyPayout(
                payout_id=stable_payout_id(
                    PayoutKey(
                        account_id=plan.account_id,
                        month_index=plan.month_index,
                        day=day,
                    ),
                    namespace,
                ),
                plan_id=plan.plan_id,
                day=day,
                amount=amount,
            )
            for day, amount in zip(calendar_days, amounts, strict=True)
        ]

"""Aggregate statistics over a batch of trade events."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from yield_engine.core.domain.money import ZERO, total
from yield_engine.core.domain.types import TradeEvent


@dataclass(frozen=True, slots=True)
class SessionStats:
    trade_count: int
    wins: int
    losses: int

    total_profit: Decimal
    largest_win: Decimal
    largest_loss: Decimal

    @property
    def win_rate(self) -> float:
        if self.trade_count == 0:
            return 0.0
        return self.wins / self.trade_count


def session_stats(events: Sequence[TradeEvent]) -> SessionStats:
    """Summarise ``events``; zero-profit ticks count as neither wins nor losses.

    largest_loss is reported as a non-positive amount.
    """
    profits = [e.profit for e in events]
    return SessionStats(
        trade_count=len(profits),
        wins=sum(1 for p in profits if p > 0),
        losses=sum(1 for p in profits if p < 0),
        total_profit=total(profits),
        largest_win=max((p for p in profits if p > 0), default=ZERO),
        largest_loss=min((p for p in profits if p < 0), default=ZERO),
    )

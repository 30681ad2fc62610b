"""Core shared data models.

This module defines the canonical Pydantic models used across the engine for
deposits, monthly plans, daily payouts, synthetic trade events, activity
tiers and simulation sessions, plus the two wire records handed to the
presentation layer. These types are treated as schema definitions and
intentionally prioritize structural clarity over minimal class size.
"""

# pylint: disable=line-too-long,missing-class-docstring,missing-function-docstring
from __future__ import annotations

import random
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from yield_engine.core.domain.ids import stable_trade_id
from yield_engine.core.domain.money import total

PlanStatus = Literal["scheduled", "active", "completed"]
PayoutStatus = Literal["pending", "paid"]
TradeSide = Literal["long", "short"]


# ---------------------------------------------------------------------------
# Capital models
# ---------------------------------------------------------------------------


class Deposit(BaseModel):
    """A recorded principal deposit. Immutable; each deposit is a distinct entity."""

    deposit_id: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    currency: str = Field("USD", min_length=1)
    created_at: datetime

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Schedule models (MonthlyPlan + DailyPayout)
# ---------------------------------------------------------------------------


class DailyPayout(BaseModel):
    """One calendar day's share of a month's projected interest.

    Notes:
    - status and paid_at are flipped in place by the clock as days elapse.
    - amount may only be superseded by recalculation while status is pending.
    """

    payout_id: str = Field(..., min_length=1)
    plan_id: str = Field(..., min_length=1)
    day: date
    amount: Decimal = Field(..., ge=0)
    status: PayoutStatus = "pending"
    paid_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_paid_at_for_status(self) -> DailyPayout:
        if self.status == "paid" and self.paid_at is None:
            raise ValueError("paid_at is required when status is 'paid'")
        if self.status == "pending" and self.paid_at is not None:
            raise ValueError("paid_at must be None when status is 'pending'")
        return self

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"


class MonthlyPlan(BaseModel):
    """A month of the yield schedule with its locked rate.

    Invariant: the amounts of all payouts sum exactly to projected_interest.
    locked_rate is frozen at construction and never changed by recalculation.
    """

    plan_id: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=1)
    month_index: int = Field(..., ge=1, description="1-based, relative to the first deposit.")

    period_start: date
    period_end: date

    locked_rate: Decimal = Field(..., ge=0, frozen=True)
    starting_balance: Decimal = Field(..., ge=0)
    projected_interest: Decimal = Field(..., ge=0)

    status: PlanStatus = "scheduled"
    # Bumped on every committed recalculation (compare-and-swap for persistence).
    version: int = Field(0, ge=0)

    payouts: list[DailyPayout] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_period(self) -> MonthlyPlan:
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self

    @property
    def calendar_days(self) -> list[date]:
        span = (self.period_end - self.period_start).days + 1
        return [self.period_start + timedelta(days=offset) for offset in range(span)]

    @property
    def ending_balance(self) -> Decimal:
        return self.starting_balance + self.projected_interest

    @property
    def paid_total(self) -> Decimal:
        return total(p.amount for p in self.payouts if p.is_paid)

    @property
    def payouts_total(self) -> Decimal:
        return total(p.amount for p in self.payouts)

    def contains(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end

    def payout_for(self, day: date) -> DailyPayout | None:
        for payout in self.payouts:
            if payout.day == day:
                return payout
        return None

    def is_balanced(self) -> bool:
        """Return True if the payouts sum exactly to the projected interest."""
        return self.payouts_total == self.projected_interest


# ---------------------------------------------------------------------------
# Trading models (ActivityTier, TradeEvent, SimulationSession)
# ---------------------------------------------------------------------------


class ActivityTier(BaseModel):
    """Account-size bracket controlling synthetic trade density."""

    lower_bound: Decimal = Field(..., ge=0)
    min_trades: int = Field(..., ge=1)
    max_trades: int = Field(..., ge=1)
    label: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_trade_range(self) -> ActivityTier:
        if self.min_trades > self.max_trades:
            raise ValueError("min_trades must be <= max_trades")
        return self

    def draw_trade_count(self, rng: random.Random) -> int:
        """Draw a trade count uniformly from [min_trades, max_trades]."""
        if self.min_trades == self.max_trades:
            return self.min_trades
        return rng.randint(self.min_trades, self.max_trades)


class TradeEvent(BaseModel):
    """A synthetic trade. Immutable; replayed in sequence order."""

    session_id: str = Field(..., min_length=1)
    sequence: int = Field(..., ge=1)
    symbol: str = Field(..., min_length=1)
    side: TradeSide
    notional: Decimal = Field(..., ge=0)
    profit: Decimal
    timestamp: datetime

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def is_win(self) -> bool:
        return self.profit > 0

    @property
    def trade_id(self) -> str:
        return stable_trade_id(self.session_id, self.sequence)


class SimulationSession(BaseModel):
    """One bounded run of the accelerated trade generator.

    The session owns its TradeEvent batch exclusively. revealed_count is a
    monotonically increasing pointer into that batch.
    """

    session_id: str = Field(..., min_length=1)
    account_id: str | None = None
    start_time: datetime
    duration: timedelta
    start_amount: Decimal = Field(..., ge=0)
    target_amount: Decimal = Field(..., ge=0)
    # Tier the batch was generated from; reused when a restart regenerates it.
    tier: ActivityTier | None = None
    revealed_count: int = Field(0, ge=0)
    # Incremented each time the batch is regenerated by a restart.
    generation: int = Field(0, ge=0)
    events: list[TradeEvent] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_pointer(self) -> SimulationSession:
        if self.revealed_count > len(self.events):
            raise ValueError("revealed_count cannot exceed the number of events")
        return self

    @property
    def target_gain(self) -> Decimal:
        return self.target_amount - self.start_amount

    @property
    def end_time(self) -> datetime:
        return self.start_time + self.duration

    @property
    def revealed_events(self) -> list[TradeEvent]:
        return self.events[: self.revealed_count]

    @property
    def current_balance(self) -> Decimal:
        return self.start_amount + total(e.profit for e in self.revealed_events)

    @property
    def is_complete(self) -> bool:
        return bool(self.events) and self.revealed_count == len(self.events)


# ---------------------------------------------------------------------------
# Wire records (presentation layer transport)
# ---------------------------------------------------------------------------


class DailyPayoutRecord(BaseModel):
    month_index: int = Field(..., ge=1)
    day: date
    amount: Decimal = Field(..., ge=0)
    status: PayoutStatus
    paid_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_paid_at_for_status(self) -> DailyPayoutRecord:
        if self.status == "paid" and self.paid_at is None:
            raise ValueError("paid_at is required when status is 'paid'")
        if self.status == "pending" and self.paid_at is not None:
            raise ValueError("paid_at must be None when status is 'pending'")
        return self

    @classmethod
    def from_payout(cls, plan: MonthlyPlan, payout: DailyPayout) -> DailyPayoutRecord:
        return cls(
            month_index=plan.month_index,
            day=payout.day,
            amount=payout.amount,
            status=payout.status,
            paid_at=payout.paid_at,
        )


class TradeEventRecord(BaseModel):
    session_id: str = Field(..., min_length=1)
    sequence: int = Field(..., ge=1)
    symbol: str = Field(..., min_length=1)
    side: TradeSide
    notional: Decimal = Field(..., ge=0)
    profit: Decimal
    timestamp: datetime

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_event(cls, event: TradeEvent) -> TradeEventRecord:
        return cls.model_validate(event.model_dump())

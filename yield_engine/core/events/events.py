"""
Domain event models.

These events represent immutable facts observed while building, settling,
recalculating and revealing schedules and trade sessions. They are consumed
by loggers, recorders, and monitoring pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


@dataclass(slots=True)
class PlanCreatedEvent:
    ts: datetime
    account_id: str
    plan_id: str
    month_index: int

    locked_rate: Decimal
    starting_balance: Decimal
    projected_interest: Decimal


@dataclass(slots=True)
class PlanStatusTransitionEvent:
    ts: datetime
    plan_id: str
    month_index: int
    prev_status: str | None
    next_status: str


@dataclass(slots=True)
class PayoutSettledEvent:
    ts: datetime
    plan_id: str
    month_index: int

    day: date
    amount: Decimal
    paid_at: datetime


@dataclass(slots=True)
class ScheduleRecalculatedEvent:
    as_of: date
    plan_id: str
    month_index: int

    principal_delta: Decimal
    starting_balance: Decimal
    projected_interest: Decimal
    remaining_interest: Decimal

    rewritten_days: int
    version: int


@dataclass(slots=True)
class SessionGeneratedEvent:
    ts: datetime
    session_id: str
    generation: int

    trade_count: int
    start_amount: Decimal
    target_amount: Decimal


@dataclass(slots=True)
class TradeRevealedEvent:
    ts: datetime
    session_id: str
    sequence: int

    symbol: str
    profit: Decimal
    cum_profit: Decimal


@dataclass(slots=True)
class SessionResetEvent:
    ts: datetime
    session_id: str

    discarded: int
    restarted: bool

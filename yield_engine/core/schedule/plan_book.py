"""Compounding yield plan for one account.

The book owns the horizon of MonthlyPlans created from the first deposit and
is the single entry point for principal changes and settlement:

- month 1 runs from the first deposit's date to the end of that calendar
  month; every later month is a full calendar month
- month k+1 starts with month k's ending balance (compounding)
- each month's rate is selected once and locked
- a principal change recalculates the unpaid remainder of the month that
  contains it and re-projects every later month, atomically
"""

# pylint: disable=too-many-instance-attributes
from __future__ import annotations

import calendar
import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from yield_engine.core.clock.simulation_clock import SimulationClock, as_utc, due_payouts, reveal_at
from yield_engine.core.domain.errors import InvalidInputError
from yield_engine.core.domain.ids import stable_plan_id
from yield_engine.core.domain.money import ZERO, quantize, to_decimal, total
from yield_engine.core.domain.types import DailyPayout, DailyPayoutRecord, Deposit, MonthlyPlan, SimulationSession
from yield_engine.core.events.events import PlanCreatedEvent
from yield_engine.core.schedule.payout_decomposer import DailyPayoutDecomposer
from yield_engine.core.schedule.rate_selector import RateSelector
from yield_engine.core.schedule.recalculator import PreparedRecalculation, PrincipalChange, ScheduleRecalculator
from yield_engine.core.trading.tier_resolver import ActivityTierResolver
from yield_engine.core.trading.trade_generator import TradeEventGenerator

if TYPE_CHECKING:
    from yield_engine.core.config.engine_config import EngineConfig
    from yield_engine.core.events.event_bus import EventBus

LOGGER = logging.getLogger(__name__)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def _seeded(seed: int | str | None, stream: str) -> random.Random:
    if seed is None:
        return random.Random()
    return random.Random(f"{seed}:{stream}")


@dataclass(frozen=True, slots=True)
class PlanSnapshot:
    """Presentation view of the book at one instant."""

    as_of: datetime
    current_month: int | None
    today: DailyPayoutRecord | None

    principal: Decimal
    paid_total: Decimal
    pending_total: Decimal
    balance: Decimal


class YieldPlanBook:
    """Holds and mutates the monthly plans of a single account."""

    def __init__(
        self,
        config: EngineConfig,
        event_bus: EventBus,
        *,
        seed: int | str | None = None,
        clock: SimulationClock | None = None,
    ) -> None:
        self._config = config
        self._event_bus = event_bus

        self._selector = RateSelector(config.rates, seed=seed, quantum=config.rate_quantum)
        self._decomposer = DailyPayoutDecomposer(
            config.payouts,
            quantum=config.amount_quantum,
            rng=_seeded(seed, "payouts"),
        )
        self._recalculator = ScheduleRecalculator(
            self._decomposer,
            event_bus,
            quantum=config.amount_quantum,
        )
        self._clock = clock if clock is not None else SimulationClock(
            event_bus, reveal_time=config.payouts.reveal_time
        )
        self._generator = TradeEventGenerator(
            config.trading,
            event_bus,
            quantum=config.amount_quantum,
            rng=_seeded(seed, "trades"),
        )
        self._daily_tiers = ActivityTierResolver(config.daily_tiers)

        self._account_id: str | None = None
        self._plans: list[MonthlyPlan] = []
        self._deposits: list[Deposit] = []
        self._principal: Decimal = ZERO

    # ---------------------------------------------------------------------
    # Read-only views
    # ---------------------------------------------------------------------

    @property
    def account_id(self) -> str | None:
        return self._account_id

    @property
    def plans(self) -> tuple[MonthlyPlan, ...]:
        return tuple(self._plans)

    @property
    def deposits(self) -> tuple[Deposit, ...]:
        return tuple(self._deposits)

    @property
    def principal(self) -> Decimal:
        return self._principal

    @property
    def clock(self) -> SimulationClock:
        return self._clock

    @property
    def recalculator(self) -> ScheduleRecalculator:
        return self._recalculator

    def plan_for(self, day: date) -> MonthlyPlan | None:
        for plan in self._plans:
            if plan.contains(day):
                return plan
        return None

    def payout_records(self) -> list[DailyPayoutRecord]:
        return [
            DailyPayoutRecord.from_payout(plan, payout)
            for plan in self._plans
            for payout in plan.payouts
        ]

    # ---------------------------------------------------------------------
    # Plan construction
    # ---------------------------------------------------------------------

    def open(self, first_deposit: Deposit) -> list[MonthlyPlan]:
        """Build the full compounding horizon from the account's first deposit."""
        if self._plans:
            raise InvalidInputError(f"plan book for {self._account_id} is already open")

        account_id = first_deposit.account_id
        namespace = self._config.id_namespace
        quantum = self._config.amount_quantum

        period_start = as_utc(first_deposit.created_at).date()
        balance = first_deposit.amount
        plans: list[MonthlyPlan] = []

        for month_index in range(1, self._config.payouts.horizon_months + 1):
            rate = self._selector.select_rate(month_index)
            plan = MonthlyPlan(
                plan_id=stable_plan_id(account_id, month_index, namespace),
                account_id=account_id,
                month_index=month_index,
                period_start=period_start,
                period_end=month_end(period_start),
                locked_rate=rate,
                starting_balance=balance,
                projected_interest=quantize(balance * rate, quantum),
            )
            days = plan.calendar_days
            amounts = self._decomposer.decompose(balance, rate, days)
            plan.payouts = self._decomposer.build_payouts(plan, amounts, days, namespace=namespace)
            plans.append(plan)

            balance = plan.ending_balance
            period_start = plan.period_end + timedelta(days=1)

        self._account_id = account_id
        self._plans = plans
        self._deposits.append(first_deposit)
        self._principal = first_deposit.amount

        for plan in plans:
            self._event_bus.emit(
                PlanCreatedEvent(
                    ts=first_deposit.created_at,
                    account_id=account_id,
                    plan_id=plan.plan_id,
                    month_index=plan.month_index,
                    locked_rate=plan.locked_rate,
                    starting_balance=plan.starting_balance,
                    projected_interest=plan.projected_interest,
                )
            )

        LOGGER.info(
            "plan book opened",
            extra={
                "account_id": account_id,
                "months": len(plans),
                "first_day": plans[0].period_start.isoformat(),
                "principal": str(first_deposit.amount),
            },
        )
        return list(plans)

    # ---------------------------------------------------------------------
    # Principal changes
    # ---------------------------------------------------------------------

    def apply_deposit(self, deposit: Deposit) -> list[PreparedRecalculation]:
        """Add a later deposit; raises the month containing its date and every month after."""
        if not self._plans:
            raise InvalidInputError("plan book is not open; the first deposit must open it")
        if deposit.account_id != self._account_id:
            raise InvalidInputError(
                f"deposit for {deposit.account_id} does not belong to {self._account_id}"
            )

        prepared = self._apply_principal(deposit.amount, as_utc(deposit.created_at).date())
        self._deposits.append(deposit)
        self._principal += deposit.amount
        return prepared

    def apply_withdrawal(self, amount: Decimal | float | int | str, as_of: date) -> list[PreparedRecalculation]:
        """Withdraw principal from ``as_of``; rejected if paid history exceeds the new entitlement."""
        value = to_decimal(amount)
        if value <= 0:
            raise InvalidInputError(f"withdrawal amount must be positive, got {value}")
        if value != quantize(value, self._config.amount_quantum):
            raise InvalidInputError(
                f"withdrawal amount {value} is finer than {self._config.amount_quantum}"
            )
        if not self._plans:
            raise InvalidInputError("plan book is not open")

        prepared = self._apply_principal(-value, as_of)
        self._principal -= value
        return prepared

    def _apply_principal(self, delta: Decimal, as_of: date) -> list[PreparedRecalculation]:
        plan = self.plan_for(as_of)
        if plan is None:
            raise InvalidInputError(
                f"{as_of} is outside the plan horizon "
                f"{self._plans[0].period_start}..{self._plans[-1].period_end}"
            )

        quantum = self._config.amount_quantum
        changes = [PrincipalChange(plan=plan, delta=delta, as_of=as_of)]

        # Carry the new ending balance down the compounding chain.
        balance = plan.starting_balance + delta
        ending = balance + quantize(balance * plan.locked_rate, quantum)
        for later in self._plans[plan.month_index :]:
            changes.append(
                PrincipalChange(
                    plan=later,
                    delta=ending - later.starting_balance,
                    as_of=later.period_start,
                )
            )
            ending = ending + quantize(ending * later.locked_rate, quantum)

        return self._recalculator.apply(changes)

    # ---------------------------------------------------------------------
    # Clock-driven views
    # ---------------------------------------------------------------------

    def settle(self, now: datetime) -> list[DailyPayout]:
        """Pay out every due day; idempotent for a given ``now``."""
        settled: list[DailyPayout] = []
        with self._recalculator.locked(self._plans):
            for plan in self._plans:
                settled.extend(self._clock.settle_plan(plan, now))

        if settled:
            LOGGER.info(
                "payouts settled",
                extra={
                    "account_id": self._account_id,
                    "count": len(settled),
                    "amount": str(total(p.amount for p in settled)),
                },
            )
        return settled

    def snapshot(self, now: datetime) -> PlanSnapshot:
        """What the presentation layer shows at ``now``. Pure; does not settle."""
        now = as_utc(now)
        reveal_time = self._clock.reveal_time

        due = [(plan, payout) for plan in self._plans for payout in due_payouts(plan, now, reveal_time)]
        paid_total = total(payout.amount for _, payout in due)
        scheduled_total = total(plan.payouts_total for plan in self._plans)

        today = now.date()
        current = self.plan_for(today)
        today_record = None
        if current is not None:
            payout = current.payout_for(today)
            if payout is not None and reveal_at(today, reveal_time) <= now:
                today_record = DailyPayoutRecord(
                    month_index=current.month_index,
                    day=payout.day,
                    amount=payout.amount,
                    status="paid",
                    paid_at=reveal_at(today, reveal_time),
                )

        return PlanSnapshot(
            as_of=now,
            current_month=current.month_index if current is not None else None,
            today=today_record,
            principal=self._principal,
            paid_total=paid_total,
            pending_total=scheduled_total - paid_total,
            balance=self._principal + paid_total,
        )

    def daily_trades(
        self,
        payout: DailyPayout,
        *,
        session_start: datetime | None = None,
    ) -> SimulationSession:
        """A one-day trade session whose profits sum exactly to ``payout.amount``."""
        plan = next((p for p in self._plans if p.plan_id == payout.plan_id), None)
        if plan is None:
            raise InvalidInputError(f"payout {payout.payout_id} does not belong to this book")

        start = plan.starting_balance
        return self._generator.new_session(
            start,
            start + payout.amount,
            timedelta(days=1),
            self._daily_tiers.resolve(start),
            session_start=session_start if session_start is not None else reveal_at(payout.day, self._clock.reveal_time),
            account_id=plan.account_id,
        )

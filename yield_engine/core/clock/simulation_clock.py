"""Reveal computation for daily payouts and trade events.

What is visible is a pure function of (state, now): a DailyPayout is due once
its reveal time (its day at the configured time of day, UTC) has passed and a
TradeEvent once its timestamp has passed. Re-running a reveal at the same time
is a no-op, so a restarted scheduler recovers without any special logic.
"""

from __future__ import annotations

import logging
import threading
from bisect import bisect_right
from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING

from yield_engine.core.domain.errors import InvalidSessionError
from yield_engine.core.domain.lifecycle import is_valid_payout_transition, is_valid_plan_transition
from yield_engine.core.domain.money import ZERO
from yield_engine.core.events.events import (
    PayoutSettledEvent,
    PlanStatusTransitionEvent,
    SessionResetEvent,
    TradeRevealedEvent,
)

if TYPE_CHECKING:
    from yield_engine.core.domain.types import DailyPayout, MonthlyPlan, SimulationSession, TradeEvent
    from yield_engine.core.events.event_bus import EventBus
    from yield_engine.core.ports.time_source import TimeSource
    from yield_engine.core.trading.trade_generator import TradeEventGenerator

LOGGER = logging.getLogger(__name__)


def as_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def reveal_at(day: date, reveal_time: time) -> datetime:
    return datetime.combine(day, reveal_time, tzinfo=timezone.utc)


def due_payouts(plan: MonthlyPlan, now: datetime, reveal_time: time) -> list[DailyPayout]:
    """Payouts of ``plan`` whose reveal time is at or before ``now``, paid or not."""
    now = as_utc(now)
    return [p for p in plan.payouts if reveal_at(p.day, reveal_time) <= now]


def visible_count(session: SimulationSession, now: datetime) -> int:
    """Number of leading events whose timestamp is at or before ``now``."""
    now = as_utc(now)
    return bisect_right([as_utc(e.timestamp) for e in session.events], now)


def visible_events(session: SimulationSession, now: datetime) -> list[TradeEvent]:
    return session.events[: visible_count(session, now)]


class SimulationClock:
    """Monotonic logical time driving payout settlement and trade reveal.

    The clock owns no business state beyond its current time; each session's
    position is the session's own ``revealed_count``.
    """

    def __init__(
        self,
        event_bus: EventBus,
        *,
        reveal_time: time = time(0, 1),
        time_source: TimeSource | None = None,
    ) -> None:
        self._event_bus = event_bus
        self._reveal_time = reveal_time
        self._time_source = time_source

        self._now: datetime | None = None

        self._session_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # ---------------------------------------------------------------------
    # Time
    # ---------------------------------------------------------------------

    @property
    def now(self) -> datetime | None:
        return self._now

    @property
    def reveal_time(self) -> time:
        return self._reveal_time

    def advance_to(self, ts: datetime) -> datetime:
        """Move logical time forward to ``ts``; earlier timestamps are ignored."""
        ts = as_utc(ts)
        # Using max() keeps the clock monotone under out-of-order callers.
        self._now = ts if self._now is None else max(self._now, ts)
        return self._now

    def advance(self, delta: timedelta) -> datetime:
        if self._now is None:
            raise RuntimeError("clock has no current time; call advance_to() first")
        if delta < timedelta(0):
            raise ValueError(f"delta must be non-negative, got {delta}")
        return self.advance_to(self._now + delta)

    def sync(self) -> datetime:
        """Advance to the time source's current time."""
        if self._time_source is None:
            raise RuntimeError("no time source configured")
        return self.advance_to(self._time_source.now())

    def _observe(self, now: datetime | None) -> datetime:
        if now is not None:
            return self.advance_to(now)
        if self._time_source is not None:
            return self.sync()
        if self._now is None:
            raise RuntimeError("clock has no current time")
        return self._now

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._session_locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._session_locks[session_id] = lock
            return lock

    # ---------------------------------------------------------------------
    # Trade sessions
    # ---------------------------------------------------------------------

    def visible(self, session: SimulationSession, now: datetime | None = None) -> list[TradeEvent]:
        """Events visible at ``now`` (or the clock's time). Does not mutate."""
        ts = as_utc(now) if now is not None else self._now
        if ts is None:
            return []
        return visible_events(session, ts)

    def tick_session(self, session: SimulationSession, now: datetime | None = None) -> list[TradeEvent]:
        """Reveal every event due by ``now``; returns only the newly revealed ones."""
        ts = self._observe(now)

        with self._lock_for(session.session_id):
            target = visible_count(session, ts)
            if target <= session.revealed_count:
                return []

            revealed = session.events[session.revealed_count : target]
            cum_profit = sum((e.profit for e in session.events[: session.revealed_count]), ZERO)
            session.revealed_count = target

        for event in revealed:
            cum_profit += event.profit
            self._event_bus.emit(
                TradeRevealedEvent(
                    ts=event.timestamp,
                    session_id=event.session_id,
                    sequence=event.sequence,
                    symbol=event.symbol,
                    profit=event.profit,
                    cum_profit=cum_profit,
                )
            )
        return revealed

    def reset(
        self,
        session: SimulationSession,
        *,
        now: datetime | None = None,
        generator: TradeEventGenerator | None = None,
    ) -> SimulationSession:
        """Zero the session pointer and discard its batch.

        With a ``generator`` the session is restarted: a fresh batch starting
        at ``now`` is built first and swapped in under the session lock, so
        observers never see a half-cleared session.
        """
        ts = self._observe(now)

        replacement: list[TradeEvent] = []
        if generator is not None:
            replacement = generator.regenerate(session, session_start=ts)
            if not replacement:
                raise InvalidSessionError("regenerated batch is empty")

        with self._lock_for(session.session_id):
            discarded = len(session.events)
            session.events = replacement
            session.revealed_count = 0
            if generator is not None:
                session.start_time = ts
                session.generation += 1

        LOGGER.info(
            "session reset",
            extra={
                "session_id": session.session_id,
                "discarded": discarded,
                "restarted": generator is not None,
            },
        )
        self._event_bus.emit(
            SessionResetEvent(
                ts=ts,
                session_id=session.session_id,
                discarded=discarded,
                restarted=generator is not None,
            )
        )
        return session

    # ---------------------------------------------------------------------
    # Payout settlement
    # ---------------------------------------------------------------------

    def settle_plan(self, plan: MonthlyPlan, now: datetime | None = None) -> list[DailyPayout]:
        """Mark every due pending payout paid; returns only the newly paid rows.

        paid_at is the payout's reveal time rather than the observation time,
        so settling the same instant twice, or late, yields identical rows.
        """
        ts = self._observe(now)

        settled: list[DailyPayout] = []
        for payout in due_payouts(plan, ts, self._reveal_time):
            if payout.is_paid:
                continue
            if not is_valid_payout_transition(payout.status, "paid"):
                LOGGER.warning(
                    "invalid payout transition",
                    extra={"payout_id": payout.payout_id, "status": payout.status},
                )
                continue

            payout.paid_at = reveal_at(payout.day, self._reveal_time)
            payout.status = "paid"
            settled.append(payout)

            self._event_bus.emit(
                PayoutSettledEvent(
                    ts=ts,
                    plan_id=plan.plan_id,
                    month_index=plan.month_index,
                    day=payout.day,
                    amount=payout.amount,
                    paid_at=payout.paid_at,
                )
            )

        self._update_plan_status(plan, ts)
        return settled

    def _update_plan_status(self, plan: MonthlyPlan, ts: datetime) -> None:
        if plan.payouts and all(p.is_paid for p in plan.payouts):
            next_status = "completed"
        elif reveal_at(plan.period_start, self._reveal_time) <= ts:
            next_status = "active"
        else:
            next_status = "scheduled"

        if next_status == plan.status:
            return
        if not is_valid_plan_transition(plan.status, next_status):
            LOGGER.warning(
                "invalid plan transition",
                extra={"plan_id": plan.plan_id, "prev": plan.status, "next": next_status},
            )
            return

        prev_status = plan.status
        plan.status = next_status
        self._event_bus.emit(
            PlanStatusTransitionEvent(
                ts=ts,
                plan_id=plan.plan_id,
                month_index=plan.month_index,
                prev_status=prev_status,
                next_status=next_status,
            )
        )

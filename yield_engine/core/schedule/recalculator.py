"""Recalculation of the unpaid remainder of a monthly schedule."""

# pylint: disable=too-many-arguments
from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Iterator, Sequence

from yield_engine.core.domain.errors import InvalidRecalculationError
from yield_engine.core.domain.money import CENT, quantize, total
from yield_engine.core.events.events import ScheduleRecalculatedEvent

if TYPE_CHECKING:
    from yield_engine.core.domain.types import DailyPayout, MonthlyPlan
    from yield_engine.core.events.event_bus import EventBus
    from yield_engine.core.schedule.payout_decomposer import DailyPayoutDecomposer

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PrincipalChange:
    """A principal delta to apply to one plan from ``as_of`` onward."""

    plan: MonthlyPlan
    delta: Decimal
    as_of: date
    expected_version: int | None = None


@dataclass(frozen=True, slots=True)
class PreparedRecalculation:
    """A fully computed, not yet committed recalculation of one plan."""

    change: PrincipalChange
    base_version: int

    starting_balance: Decimal
    projected_interest: Decimal
    remaining_interest: Decimal

    rewritten: tuple[DailyPayout, ...]
    amounts: tuple[Decimal, ...]


class ScheduleRecalculator:
    """Re-derives the pending remainder of a plan after a principal change.

    Guarantees:
    - paid payouts are never touched (amount and paid_at are frozen)
    - only pending payouts dated on or after ``as_of`` are rewritten
    - the locked rate is never changed
    - every change either fully applies or leaves the plan untouched

    Each plan has its own mutual-exclusion lock; the paid/pending partition
    is read and the rewrite committed while holding it. ``MonthlyPlan.version``
    is bumped on every commit so a persistence layer can compare-and-swap.
    """

    def __init__(
        self,
        decomposer: DailyPayoutDecomposer,
        event_bus: EventBus,
        *,
        quantum: Decimal = CENT,
    ) -> None:
        self._decomposer = decomposer
        self._event_bus = event_bus
        self._quantum = quantum

        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # ---------------------------------------------------------------------
    # Locking
    # ---------------------------------------------------------------------

    def lock_for(self, plan_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(plan_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[plan_id] = lock
            return lock

    @contextmanager
    def locked(self, plans: Sequence[MonthlyPlan]) -> Iterator[None]:
        """Hold the locks of all ``plans``, acquired in a stable order."""
        ordered = sorted({p.plan_id for p in plans})
        with ExitStack() as stack:
            for plan_id in ordered:
                stack.enter_context(self.lock_for(plan_id))
            yield

    # ---------------------------------------------------------------------
    # Operations
    # ---------------------------------------------------------------------

    def recalculate(
        self,
        plan: MonthlyPlan,
        new_principal_delta: Decimal,
        as_of_date: date,
        *,
        expected_version: int | None = None,
    ) -> list[DailyPayout]:
        """Apply a principal delta to ``plan`` and return its updated payouts."""
        change = PrincipalChange(
            plan=plan,
            delta=new_principal_delta,
            as_of=as_of_date,
            expected_version=expected_version,
        )
        self.apply([change])
        return list(plan.payouts)

    def apply(self, changes: Sequence[PrincipalChange]) -> list[PreparedRecalculation]:
        """Apply several changes atomically: all are prepared before any is committed."""
        with self.locked([c.plan for c in changes]):
            prepared = [self.prepare(change) for change in changes]
            for item in prepared:
                self._commit(item)
        return prepared

    def prepare(self, change: PrincipalChange) -> PreparedRecalculation:
        """Compute the rewrite for ``change`` without mutating the plan."""
        plan = change.plan

        if change.expected_version is not None and plan.version != change.expected_version:
            raise InvalidRecalculationError(
                f"plan {plan.plan_id} is at version {plan.version}, "
                f"expected {change.expected_version}"
            )

        new_starting_balance = plan.starting_balance + change.delta
        if new_starting_balance < 0:
            raise InvalidRecalculationError(
                f"principal change {change.delta} would make the starting balance negative"
            )

        new_total_interest = quantize(new_starting_balance * plan.locked_rate, self._quantum)
        paid = plan.paid_total
        remaining_interest = new_total_interest - paid
        if remaining_interest < 0:
            raise InvalidRecalculationError(
                f"paid history {paid} exceeds the new entitlement {new_total_interest}"
            )

        eligible = [p for p in plan.payouts if not p.is_paid and p.day >= change.as_of]
        # Pending rows before as_of keep their amounts; they are due but not yet settled.
        held = total(p.amount for p in plan.payouts if not p.is_paid and p.day < change.as_of)

        distributable = remaining_interest - held
        if distributable < 0:
            raise InvalidRecalculationError(
                f"due payouts {held} before {change.as_of} exceed the remaining interest "
                f"{remaining_interest}"
            )
        if not eligible and distributable != 0:
            raise InvalidRecalculationError(
                f"no pending days on or after {change.as_of} to carry {distributable}"
            )

        amounts = self._decomposer.distribute(distributable, [p.day for p in eligible])

        return PreparedRecalculation(
            change=change,
            base_version=plan.version,
            starting_balance=new_starting_balance,
            projected_interest=new_total_interest,
            remaining_interest=remaining_interest,
            rewritten=tuple(eligible),
            amounts=tuple(amounts),
        )

    def _commit(self, prepared: PreparedRecalculation) -> None:
        plan = prepared.change.plan

        for payout, amount in zip(prepared.rewritten, prepared.amounts, strict=True):
            payout.amount = amount

        plan.starting_balance = prepared.starting_balance
        plan.projected_interest = prepared.projected_interest
        plan.version = prepared.base_version + 1

        LOGGER.info(
            "schedule recalculated",
            extra={
                "plan_id": plan.plan_id,
                "month_index": plan.month_index,
                "delta": str(prepared.change.delta),
                "remaining_interest": str(prepared.remaining_interest),
                "rewritten_days": len(prepared.rewritten),
            },
        )

        self._event_bus.emit(
            ScheduleRecalculatedEvent(
                as_of=prepared.change.as_of,
                plan_id=plan.plan_id,
                month_index=plan.month_index,
                principal_delta=prepared.change.delta,
                starting_balance=plan.starting_balance,
                projected_interest=plan.projected_interest,
                remaining_interest=prepared.remaining_interest,
                rewritten_days=len(prepared.rewritten),
                version=plan.version,
            )
        )

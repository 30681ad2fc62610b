from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, List

from yield_engine.core.domain.money import total
from yield_engine.core.trading.session_stats import SessionStats, session_stats

if TYPE_CHECKING:
    from yield_engine.core.config.engine_config import RateBand
    from yield_engine.core.domain.types import SimulationSession, TradeEvent
    from yield_engine.core.schedule.plan_book import YieldPlanBook


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MonthSummary:
    month_index: int
    period_start: date
    period_end: date
    status: str
    locked_rate: Decimal
    starting_balance: Decimal
    projected_interest: Decimal
    day_count: int
    paid_days: int
    paid_total: Decimal


@dataclass(frozen=True, slots=True)
class PlanSummary:
    account_id: str
    month_count: int
    principal: Decimal
    projected_interest: Decimal
    paid_total: Decimal
    paid_days: int
    months: List[MonthSummary]
    warnings: List[str]


@dataclass(frozen=True, slots=True)
class SessionSummary:
    session_id: str
    start_amount: Decimal
    target_amount: Decimal
    duration: timedelta
    stats: SessionStats
    trades: List[TradeEvent]
    warnings: List[str]


# ---------------------------------------------------------------------------
# Summary builders
# ---------------------------------------------------------------------------

def summarize_plan(book: YieldPlanBook) -> PlanSummary:
    warnings: list[str] = []
    months: list[MonthSummary] = []

    if not book.plans:
        warnings.append("Plan book is not open (no months)")

    for plan in book.plans:
        if not plan.is_balanced():
            warnings.append(
                f"month {plan.month_index} payouts sum to {plan.payouts_total}, "
                f"expected {plan.projected_interest}"
            )
        if plan.projected_interest == 0:
            warnings.append(f"month {plan.month_index} projects no interest")

        paid = [p for p in plan.payouts if p.is_paid]
        months.append(
            MonthSummary(
                month_index=plan.month_index,
                period_start=plan.period_start,
                period_end=plan.period_end,
                status=plan.status,
                locked_rate=plan.locked_rate,
                starting_balance=plan.starting_balance,
                projected_interest=plan.projected_interest,
                day_count=len(plan.payouts),
                paid_days=len(paid),
                paid_total=total(p.amount for p in paid),
            )
        )

    return PlanSummary(
        account_id=book.account_id or "",
        month_count=len(months),
        principal=book.principal,
        projected_interest=total(m.projected_interest for m in months),
        paid_total=total(m.paid_total for m in months),
        paid_days=sum(m.paid_days for m in months),
        months=months,
        warnings=warnings,
    )


def summarize_session(session: SimulationSession, *, win_band: RateBand | None = None) -> SessionSummary:
    warnings: list[str] = []
    stats = session_stats(session.events)

    if stats.total_profit != session.target_gain:
        warnings.append(
            f"trade profits sum to {stats.total_profit}, expected {session.target_gain}"
        )

    # A single session is not expected to land in the band; flag it only.
    if win_band is not None and stats.trade_count:
        win_rate = Decimal(str(stats.win_rate))
        if not win_band.contains(win_rate):
            warnings.append(
                f"win rate {stats.win_rate:.0%} outside {win_band.lower:.0%}-{win_band.upper:.0%}"
            )

    return SessionSummary(
        session_id=session.session_id,
        start_amount=session.start_amount,
        target_amount=session.target_amount,
        duration=session.duration,
        stats=stats,
        trades=list(session.events),
        warnings=warnings,
    )


# ---------------------------------------------------------------------------
# Pretty printers
# ---------------------------------------------------------------------------

def print_plan_summary(summary: PlanSummary) -> None:
    print(f"Account: {summary.account_id}")
    print(f"Months: {summary.month_count}")
    print(f"Principal: {summary.principal}")
    print(f"Projected interest: {summary.projected_interest}")
    print(f"Paid: {summary.paid_total} over {summary.paid_days} days")
    print()

    if summary.warnings:
        print("Warnings:")
        for w in summary.warnings:
            print(f"  - {w}")
        print()

    print("Months:")
    for m in summary.months:
        print(
            f"  - M{m.month_index:02d} {m.period_start}..{m.period_end} | "
            f"rate {m.locked_rate:.2%} | "
            f"start {m.starting_balance} | "
            f"interest {m.projected_interest} | "
            f"{m.paid_days}/{m.day_count} days paid | "
            f"{m.status}"
        )


def print_session_summary(summary: SessionSummary) -> None:
    stats = summary.stats

    print(f"Session: {summary.session_id}")
    print(f"Start: {summary.start_amount} -> target {summary.target_amount}")
    print(f"Duration: {summary.duration}")
    print(
        f"Trades: {stats.trade_count} | "
        f"wins {stats.wins} | losses {stats.losses} | "
        f"win rate {stats.win_rate:.0%}"
    )
    print(f"Largest win: {stats.largest_win} | largest loss: {stats.largest_loss}")
    print(f"Total profit: {stats.total_profit}")
    print()

    if summary.warnings:
        print("Warnings:")
        for w in summary.warnings:
            print(f"  - {w}")
        print()

    print("Trades:")
    for t in summary.trades:
        print(
            f"  - #{t.sequence:03d} {t.timestamp.isoformat()} "
            f"{t.symbol:<10} {t.side:<5} "
            f"notional {t.notional} | profit {t.profit}"
        )

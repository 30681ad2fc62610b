from __future__ import annotations

import argparse
import logging
import random
import sys
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from yield_engine.core.config.engine_config import EngineConfig
from yield_engine.core.clock.simulation_clock import SimulationClock
from yield_engine.core.domain.errors import YieldEngineError
from yield_engine.core.domain.types import Deposit
from yield_engine.core.events.event_bus import EventBus
from yield_engine.core.events.event_sink import EventSink
from yield_engine.core.events.sinks.file_recorder import FileRecorderSink
from yield_engine.core.events.sinks.sink_logging import LoggingEventSink
from yield_engine.core.schedule.plan_book import YieldPlanBook
from yield_engine.core.trading.tier_resolver import ActivityTierResolver
from yield_engine.core.trading.trade_generator import TradeEventGenerator
from yield_engine.runtime.prometheus_metrics import PrometheusMetricsClient
from yield_engine.runtime.summary import (
    print_plan_summary,
    print_session_summary,
    summarize_plan,
    summarize_session,
)

LOGGER = logging.getLogger(__name__)

ACCOUNT_ID = "cli"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _amount(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError(f"not a decimal amount: {raw!r}") from exc


def _day(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {raw!r}") from exc


def _instant(raw: str) -> datetime:
    try:
        ts = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an ISO timestamp: {raw!r}") from exc
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def _top_up(raw: str) -> tuple[date, Decimal]:
    day, sep, amount = raw.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD=AMOUNT, got {raw!r}")
    return _day(day), _amount(amount)


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time(0), tzinfo=timezone.utc)


def _push_metrics(metrics: PrometheusMetricsClient, *, job: str) -> None:
    try:
        metrics.push_all(job=job)
    except OSError:
        LOGGER.warning("Prometheus push failed", exc_info=True, extra={"job": job})


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Synthetic yield schedule and trade stream engine"
    )

    parser.add_argument(
        "--plan",
        action="store_true",
        help="Build the compounding monthly plan and print it.",
    )

    parser.add_argument(
        "--demo",
        action="store_true",
        help="Generate and reveal an accelerated demo trade session.",
    )

    parser.add_argument(
        "--deposit",
        type=_amount,
        required=True,
        help="Deposit amount (plan: first deposit, demo: start amount).",
    )

    parser.add_argument(
        "--start-date",
        type=_day,
        default=None,
        help="Date of the first deposit (default: today, UTC).",
    )

    parser.add_argument(
        "--top-up",
        type=_top_up,
        action="append",
        default=[],
        metavar="YYYY-MM-DD=AMOUNT",
        help="Additional deposit applied on a later day (repeatable).",
    )

    parser.add_argument(
        "--as-of",
        type=_instant,
        default=None,
        help="Settle the plan up to this ISO timestamp before printing.",
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Demo session duration in seconds (default from config).",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to an engine JSON config.",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for reproducible rates, payouts and trades.",
    )

    parser.add_argument(
        "--record",
        type=Path,
        default=None,
        help="Append domain events as JSON lines to this file.",
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )

    return parser


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def run_plan(
    args: argparse.Namespace,
    config: EngineConfig,
    event_bus: EventBus,
    metrics: PrometheusMetricsClient,
) -> None:
    start_date: date = args.start_date or datetime.now(timezone.utc).date()

    book = YieldPlanBook(config, event_bus, seed=args.seed)
    book.open(
        Deposit(
            deposit_id="D-1",
            account_id=ACCOUNT_ID,
            amount=args.deposit,
            created_at=_midnight(start_date),
        )
    )

    for n, (day, amount) in enumerate(sorted(args.top_up), start=2):
        # Days before the top-up are paid first, so they keep their amounts.
        book.settle(_midnight(day))
        book.apply_deposit(
            Deposit(
                deposit_id=f"D-{n}",
                account_id=ACCOUNT_ID,
                amount=amount,
                created_at=_midnight(day),
            )
        )

    if args.as_of is not None:
        book.settle(args.as_of)

    summary = summarize_plan(book)
    print_plan_summary(summary)

    if args.as_of is not None:
        snap = book.snapshot(args.as_of)
        print()
        print(f"As of {snap.as_of.isoformat()}: balance {snap.balance} | paid {snap.paid_total} | pending {snap.pending_total}")
        if snap.today is not None:
            print(f"Today's payout: {snap.today.amount} (month {snap.today.month_index})")

    metrics.record_plan(summary)
    _push_metrics(metrics, job="yield-engine-plan")


def run_demo(
    args: argparse.Namespace,
    config: EngineConfig,
    event_bus: EventBus,
    metrics: PrometheusMetricsClient,
) -> None:
    rng = random.Random(args.seed) if args.seed is not None else random.Random()
    generator = TradeEventGenerator(
        config.trading,
        event_bus,
        quantum=config.amount_quantum,
        rng=rng,
    )

    start = datetime.now(timezone.utc)
    session = generator.demo_session(
        args.deposit,
        ActivityTierResolver(config.session_tiers),
        session_start=start,
        account_id=ACCOUNT_ID,
        duration=None if args.duration is None else timedelta(seconds=args.duration),
    )

    # Logical replay: reveal every tick without waiting on the wall clock.
    clock = SimulationClock(event_bus, reveal_time=config.payouts.reveal_time)
    clock.advance_to(start)
    for event in session.events:
        clock.tick_session(session, event.timestamp)

    summary = summarize_session(session, win_band=config.trading.win_rate)
    print_session_summary(summary)

    metrics.record_session(summary)
    _push_metrics(metrics, job="yield-engine-demo")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.plan == args.demo:
        print("Error: exactly one of --plan or --demo must be specified.", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        config = EngineConfig.from_json_file(args.config) if args.config else EngineConfig()
    except (FileNotFoundError, ValidationError) as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        return 2

    sinks: list[EventSink] = [LoggingEventSink(logging.getLogger("yield_engine.events"), level=logging.DEBUG)]
    if args.record is not None:
        sinks.append(FileRecorderSink(args.record))

    metrics = PrometheusMetricsClient()

    try:
        with EventBus(sinks) as event_bus:
            if args.plan:
                run_plan(args, config, event_bus, metrics)
            else:
                run_demo(args, config, event_bus, metrics)
    except (YieldEngineError, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())

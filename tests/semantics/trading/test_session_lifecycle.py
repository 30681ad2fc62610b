"""
Semantic test: sessions and statistics.

Invariant:
A new session starts unrevealed with its generated batch and tier; the demo
session applies the configured gain and duration to the start amount; the
statistics of a batch report its wins, losses, extremes and total.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from yield_engine.core.config.engine_config import DEFAULT_SESSION_TIERS, TradingConfig
from yield_engine.core.domain.types import TradeEvent
from yield_engine.core.events.event_bus import EventBus
from yield_engine.core.events.events import SessionGeneratedEvent
from yield_engine.core.trading.session_stats import session_stats
from yield_engine.core.trading.tier_resolver import ActivityTierResolver
from yield_engine.core.trading.trade_generator import TradeEventGenerator

SESSION_START = datetime(2026, 1, 1, tzinfo=timezone.utc)


class _CaptureSink:
    def __init__(self) -> None:
        self.events: list[object] = []

    def on_event(self, event: object) -> None:
        self.events.append(event)


def test_demo_session_uses_configured_gain_and_duration() -> None:
    sink = _CaptureSink()
    generator = TradeEventGenerator(TradingConfig(), EventBus([sink]), rng=random.Random(9))

    session = generator.demo_session(
        Decimal("5000"),
        ActivityTierResolver(DEFAULT_SESSION_TIERS),
        session_start=SESSION_START,
        account_id="A-1",
    )

    assert session.target_amount == Decimal("6250.00")
    assert session.duration == timedelta(seconds=240)
    assert session.end_time == SESSION_START + timedelta(seconds=240)
    assert 20 <= len(session.events) <= 30
    assert session.revealed_count == 0
    assert session.current_balance == Decimal("5000")
    assert session.tier is not None and session.tier.label == "starter"
    assert sum((e.profit for e in session.events), Decimal("0")) == session.target_gain

    generated = [e for e in sink.events if isinstance(e, SessionGeneratedEvent)]
    assert len(generated) == 1
    assert generated[0].session_id == session.session_id
    assert generated[0].trade_count == len(session.events)


def test_regenerate_keeps_identity_and_total() -> None:
    generator = TradeEventGenerator(TradingConfig(), EventBus(), rng=random.Random(10))
    session = generator.demo_session(
        Decimal("20000"),
        ActivityTierResolver(DEFAULT_SESSION_TIERS),
        session_start=SESSION_START,
    )

    later = SESSION_START + timedelta(minutes=10)
    fresh = generator.regenerate(session, session_start=later)

    assert all(e.session_id == session.session_id for e in fresh)
    assert 30 <= len(fresh) <= 60
    assert all(e.timestamp > later for e in fresh)
    assert sum((e.profit for e in fresh), Decimal("0")) == session.target_gain


def _event(sequence: int, profit: str) -> TradeEvent:
    return TradeEvent(
        session_id="S-1",
        sequence=sequence,
        symbol="BTC/USDT",
        side="long",
        notional=Decimal("500"),
        profit=Decimal(profit),
        timestamp=SESSION_START + timedelta(seconds=sequence),
    )


def test_session_stats_summarise_a_batch() -> None:
    stats = session_stats(
        [_event(1, "10.00"), _event(2, "-4.00"), _event(3, "0.00"), _event(4, "25.50"), _event(5, "-1.25")]
    )

    assert stats.trade_count == 5
    assert stats.wins == 2
    assert stats.losses == 2
    assert stats.win_rate == 0.4
    assert stats.total_profit == Decimal("30.25")
    assert stats.largest_win == Decimal("25.50")
    assert stats.largest_loss == Decimal("-4.00")


def test_session_stats_of_an_empty_batch() -> None:
    stats = session_stats([])

    assert stats.trade_count == 0
    assert stats.win_rate == 0.0
    assert stats.total_profit == Decimal("0")

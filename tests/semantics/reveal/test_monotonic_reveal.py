"""
Semantic test: monotonic, idempotent reveal.

Invariant:
The set of revealed rows at logical time T is a superset of the set
revealed at any T' < T, and re-running the reveal at the same T yields the
same set. The clock never moves backward.
"""

from __future__ import annotations

import random
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from yield_engine.core.clock.simulation_clock import SimulationClock, visible_count, visible_events
from yield_engine.core.config.engine_config import TradingConfig
from yield_engine.core.domain.types import ActivityTier
from yield_engine.core.events.event_bus import EventBus
from yield_engine.core.events.events import TradeRevealedEvent
from yield_engine.core.events.sinks.null_event_bus import NullEventBus
from yield_engine.core.trading.trade_generator import TradeEventGenerator

SESSION_START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class _CaptureSink:
    def __init__(self) -> None:
        self.events: list[object] = []

    def on_event(self, event: object) -> None:
        self.events.append(event)


class _FixedTimeSource:
    def __init__(self, now: datetime) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current


def _session():
    generator = TradeEventGenerator(TradingConfig(), NullEventBus(), rng=random.Random(8))
    return generator.new_session(
        Decimal("5000"),
        Decimal("6250"),
        timedelta(seconds=240),
        ActivityTier(lower_bound=Decimal("0"), min_trades=20, max_trades=20),
        session_start=SESSION_START,
    )


def test_visible_set_grows_with_time_and_is_stable_at_a_time() -> None:
    session = _session()

    previous: list = []
    for seconds in range(0, 300, 5):
        now = SESSION_START + timedelta(seconds=seconds)
        current = visible_events(session, now)

        assert current == visible_events(session, now)
        assert current[: len(previous)] == previous
        assert len(current) >= len(previous)
        assert len(current) == min(seconds // 12, 20)
        previous = current


def test_tick_reveals_each_event_once() -> None:
    sink = _CaptureSink()
    clock = SimulationClock(EventBus([sink]))
    session = _session()

    first = clock.tick_session(session, SESSION_START + timedelta(seconds=60))
    assert [e.sequence for e in first] == [1, 2, 3, 4, 5]
    assert session.revealed_count == 5

    assert clock.tick_session(session, SESSION_START + timedelta(seconds=60)) == []
    assert session.revealed_count == 5

    revealed = [e for e in sink.events if isinstance(e, TradeRevealedEvent)]
    assert [e.sequence for e in revealed] == [1, 2, 3, 4, 5]
    assert revealed[-1].cum_profit == sum((e.profit for e in first), Decimal("0"))


def test_earlier_tick_does_not_hide_revealed_events() -> None:
    clock = SimulationClock(NullEventBus())
    session = _session()

    clock.tick_session(session, SESSION_START + timedelta(seconds=120))
    clock.tick_session(session, SESSION_START + timedelta(seconds=30))

    assert session.revealed_count == 10
    assert clock.now == SESSION_START + timedelta(seconds=120)


def test_full_reveal_reaches_the_target() -> None:
    sink = _CaptureSink()
    clock = SimulationClock(EventBus([sink]))
    session = _session()

    for seconds in range(0, 241, 7):
        clock.tick_session(session, SESSION_START + timedelta(seconds=seconds))
    clock.tick_session(session, session.end_time)

    assert session.is_complete
    assert session.current_balance == Decimal("6250.00")
    revealed = [e for e in sink.events if isinstance(e, TradeRevealedEvent)]
    assert [e.sequence for e in revealed] == list(range(1, 21))
    assert revealed[-1].cum_profit == Decimal("1250.00")


def test_visible_does_not_mutate() -> None:
    clock = SimulationClock(NullEventBus())
    session = _session()

    assert clock.visible(session) == []
    assert len(clock.visible(session, SESSION_START + timedelta(seconds=36))) == 3
    assert session.revealed_count == 0
    assert visible_count(session, session.end_time) == 20


def test_clock_time_only_moves_forward() -> None:
    clock = SimulationClock(NullEventBus(), reveal_time=time(0, 1))

    with pytest.raises(RuntimeError):
        clock.advance(timedelta(seconds=1))

    clock.advance_to(SESSION_START)
    assert clock.advance_to(SESSION_START - timedelta(hours=1)) == SESSION_START
    assert clock.advance(timedelta(seconds=30)) == SESSION_START + timedelta(seconds=30)

    with pytest.raises(ValueError):
        clock.advance(timedelta(seconds=-1))


def test_naive_timestamps_are_read_as_utc() -> None:
    clock = SimulationClock(NullEventBus())

    assert clock.advance_to(datetime(2026, 1, 1, 12, 0)) == SESSION_START


def test_sync_reads_the_time_source() -> None:
    source = _FixedTimeSource(SESSION_START + timedelta(seconds=24))
    clock = SimulationClock(NullEventBus(), time_source=source)
    session = _session()

    assert len(clock.tick_session(session)) == 2

    source.current = SESSION_START + timedelta(seconds=48)
    assert clock.sync() == source.current
    assert len(clock.tick_session(session)) == 2

    with pytest.raises(RuntimeError):
        SimulationClock(NullEventBus()).sync()

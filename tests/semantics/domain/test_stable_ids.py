"""
Semantic test: stable record identifiers.

Invariant:
Plan and payout ids are pure functions of (account, month, day, namespace)
and trade ids of (session, sequence); all are non-negative 63-bit decimal
strings, distinct for distinct inputs.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from yield_engine.core.domain.ids import PayoutKey, stable_payout_id, stable_plan_id, stable_trade_id
from yield_engine.core.domain.types import TradeEvent


def test_plan_ids_are_stable_and_distinct() -> None:
    first = stable_plan_id("A-1", 1, "yield-v1")

    assert first == stable_plan_id("A-1", 1, "yield-v1")
    assert first != stable_plan_id("A-1", 2, "yield-v1")
    assert first != stable_plan_id("A-2", 1, "yield-v1")
    assert first != stable_plan_id("A-1", 1, "yield-v2")
    assert 0 <= int(first) < 2**63


def test_payout_ids_are_stable_and_distinct() -> None:
    key = PayoutKey(account_id="A-1", month_index=1, day=date(2026, 1, 15))
    next_day = PayoutKey(account_id="A-1", month_index=1, day=date(2026, 1, 16))

    assert stable_payout_id(key, "yield-v1") == stable_payout_id(key, "yield-v1")
    assert stable_payout_id(key, "yield-v1") != stable_payout_id(next_day, "yield-v1")
    assert stable_payout_id(key, "yield-v1") != stable_plan_id("A-1", 1, "yield-v1")
    assert 0 <= int(stable_payout_id(key, "yield-v1")) < 2**63


def test_invalid_inputs_rejected() -> None:
    with pytest.raises(ValueError):
        stable_plan_id("A-1", 1, "")

    with pytest.raises(ValueError):
        stable_plan_id("A-1", 0, "yield-v1")

    with pytest.raises(ValueError):
        stable_payout_id(PayoutKey(account_id="A-1", month_index=1, day=date(2026, 1, 1)), "")


def test_trade_ids_follow_session_and_sequence() -> None:
    def trade(session_id: str, sequence: int) -> TradeEvent:
        return TradeEvent(
            session_id=session_id,
            sequence=sequence,
            symbol="BTC/USDT",
            side="long",
            notional=Decimal("500.00"),
            profit=Decimal("12.34"),
            timestamp=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
        )

    assert trade("S-1", 1).trade_id == stable_trade_id("S-1", 1)
    assert trade("S-1", 1).trade_id != trade("S-1", 2).trade_id
    assert trade("S-1", 1).trade_id != trade("S-2", 1).trade_id
    assert 0 <= int(trade("S-1", 1).trade_id) < 2**63

    with pytest.raises(ValueError):
        stable_trade_id("S-1", 0)

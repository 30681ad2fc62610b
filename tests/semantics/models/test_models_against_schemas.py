"""Schema conformance tests for the wire records.

This test suite validates that the presentation-layer records both accept
valid inputs and reject invalid ones in strict alignment with their
corresponding JSON Schemas. The tests are intentionally verbose and
repetitive to ensure full coverage and explicit failure modes.
"""

# pylint: disable=line-too-long,missing-function-docstring
# pylint: disable=redefined-outer-name,global-statement
from __future__ import annotations

import json
import random
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from yield_engine.core.config.engine_config import EngineConfig
from yield_engine.core.domain.types import DailyPayoutRecord, Deposit, TradeEventRecord
from yield_engine.core.events.sinks.null_event_bus import NullEventBus
from yield_engine.core.schedule.plan_book import YieldPlanBook
from yield_engine.core.trading.tier_resolver import ActivityTierResolver
from yield_engine.core.trading.trade_generator import TradeEventGenerator

SCHEMA_REGISTRY = Registry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    """
    Load JSON schema from the package's schema directory.
    """
    global SCHEMA_REGISTRY

    root = Path(__file__).parent.parent.parent.parent
    name = "yield_engine/core/schemas/" + name
    schema_path = root / name

    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)

    schema_id = schema.get("$id")
    if isinstance(schema_id, str) and schema_id:
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        SCHEMA_REGISTRY = SCHEMA_REGISTRY.with_resource(schema_id, resource)

    return schema


def dump_for_jsonschema(model: Any) -> dict:
    """
    Dump a Pydantic model to a JSON-compatible dict for schema validation.
    Excludes None values so optional fields are omitted instead of null.
    """
    return model.model_dump(mode="json", exclude_none=True)


def pydantic_validate(model_type: Any, data: dict[str, Any]) -> Any:
    adapter = TypeAdapter(model_type)
    return adapter.validate_python(data)


def assert_pydantic_then_schema_ok(model_type: Any, data: dict[str, Any], schema: dict[str, Any]) -> dict:
    """
    Validate with Pydantic first, then validate the dumped instance with JSON Schema.
    Returns the dumped instance.
    """
    obj = pydantic_validate(model_type, data)
    instance = dump_for_jsonschema(obj)
    jsonschema_validate(instance=instance, schema=schema, registry=SCHEMA_REGISTRY)
    return instance


def assert_schema_invalid_but_pydantic_rejects(model_type: Any, data: dict[str, Any], schema: dict[str, Any]):
    """
    Ensures Pydantic is at least as strict as the JSON Schema for the given input.
    If schema rejects, Pydantic must reject too (otherwise model is too lax).
    """
    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)

    with pytest.raises(PydanticValidationError):
        pydantic_validate(model_type, data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module", autouse=True)
def _load_common_schema() -> None:
    load_schema("common.schema.json")


@pytest.fixture(scope="module")
def daily_payout_schema() -> dict:
    return load_schema("daily_payout.schema.json")


@pytest.fixture(scope="module")
def trade_event_schema() -> dict:
    return load_schema("trade_event.schema.json")


# ---------------------------------------------------------------------------
# DailyPayoutRecord
# ---------------------------------------------------------------------------

def make_payout(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "month_index": 1,
        "day": "2026-01-15",
        "amount": "70.10",
        "status": "pending",
    }
    data.update(overrides)
    return data


def test_daily_payout_pending_valid_minimal(daily_payout_schema):
    instance = assert_pydantic_then_schema_ok(DailyPayoutRecord, make_payout(), daily_payout_schema)
    assert instance["amount"] == "70.10"
    assert "paid_at" not in instance


def test_daily_payout_paid_valid(daily_payout_schema):
    data = make_payout(status="paid", paid_at="2026-01-15T00:01:00Z")
    assert_pydantic_then_schema_ok(DailyPayoutRecord, data, daily_payout_schema)


def test_daily_payout_paid_requires_paid_at(daily_payout_schema):
    bad = make_payout(status="paid")
    assert_schema_invalid_but_pydantic_rejects(DailyPayoutRecord, bad, daily_payout_schema)


def test_daily_payout_pending_forbids_paid_at(daily_payout_schema):
    bad = make_payout(paid_at="2026-01-15T00:01:00Z")
    assert_schema_invalid_but_pydantic_rejects(DailyPayoutRecord, bad, daily_payout_schema)


def test_daily_payout_minimum_constraints(daily_payout_schema):
    bad_month = make_payout(month_index=0)
    assert_schema_invalid_but_pydantic_rejects(DailyPayoutRecord, bad_month, daily_payout_schema)

    bad_amount = make_payout(amount="-1.00")
    assert_schema_invalid_but_pydantic_rejects(DailyPayoutRecord, bad_amount, daily_payout_schema)


def test_daily_payout_status_enum(daily_payout_schema):
    bad = make_payout(status="cancelled")
    assert_schema_invalid_but_pydantic_rejects(DailyPayoutRecord, bad, daily_payout_schema)


def test_daily_payout_rejects_additional_properties(daily_payout_schema):
    data = make_payout()
    data["unexpected"] = 1

    with pytest.raises(PydanticValidationError):
        pydantic_validate(DailyPayoutRecord, data)

    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=daily_payout_schema, registry=SCHEMA_REGISTRY)


def test_plan_book_records_conform(daily_payout_schema):
    book = YieldPlanBook(EngineConfig(), NullEventBus(), seed=7)
    book.open(
        Deposit(
            deposit_id="D-1",
            account_id="A-1",
            amount=Decimal("5000.00"),
            created_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
        )
    )
    book.settle(datetime(2026, 1, 20, 12, 0, tzinfo=timezone.utc))

    records = book.payout_records()

    assert {r.status for r in records} == {"paid", "pending"}
    for record in records:
        jsonschema_validate(instance=dump_for_jsonschema(record), schema=daily_payout_schema, registry=SCHEMA_REGISTRY)


# ---------------------------------------------------------------------------
# TradeEventRecord
# ---------------------------------------------------------------------------

def make_trade(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "session_id": "S-1",
        "sequence": 1,
        "symbol": "BTC/USDT",
        "side": "long",
        "notional": "500.00",
        "profit": "12.34",
        "timestamp": "2026-01-01T12:00:12Z",
    }
    data.update(overrides)
    return data


def test_trade_event_valid_minimal(trade_event_schema):
    assert_pydantic_then_schema_ok(TradeEventRecord, make_trade(), trade_event_schema)


def test_trade_event_negative_profit_valid(trade_event_schema):
    instance = assert_pydantic_then_schema_ok(TradeEventRecord, make_trade(profit="-3.21"), trade_event_schema)
    assert instance["profit"] == "-3.21"


def test_trade_event_side_enum(trade_event_schema):
    bad = make_trade(side="buy")
    assert_schema_invalid_but_pydantic_rejects(TradeEventRecord, bad, trade_event_schema)


def test_trade_event_min_length_and_minimum(trade_event_schema):
    bad_session = make_trade(session_id="")
    assert_schema_invalid_but_pydantic_rejects(TradeEventRecord, bad_session, trade_event_schema)

    bad_symbol = make_trade(symbol="")
    assert_schema_invalid_but_pydantic_rejects(TradeEventRecord, bad_symbol, trade_event_schema)

    bad_sequence = make_trade(sequence=0)
    assert_schema_invalid_but_pydantic_rejects(TradeEventRecord, bad_sequence, trade_event_schema)

    bad_notional = make_trade(notional="-1.00")
    assert_schema_invalid_but_pydantic_rejects(TradeEventRecord, bad_notional, trade_event_schema)


def test_trade_event_requires_every_field(trade_event_schema):
    for field in ("session_id", "sequence", "symbol", "side", "notional", "profit", "timestamp"):
        bad = make_trade()
        bad.pop(field)
        assert_schema_invalid_but_pydantic_rejects(TradeEventRecord, bad, trade_event_schema)


def test_trade_event_rejects_additional_properties(trade_event_schema):
    data = make_trade()
    data["unexpected"] = "x"

    with pytest.raises(PydanticValidationError):
        pydantic_validate(TradeEventRecord, data)

    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=trade_event_schema, registry=SCHEMA_REGISTRY)


def test_generated_trades_conform(trade_event_schema):
    cfg = EngineConfig()
    generator = TradeEventGenerator(cfg.trading, NullEventBus(), rng=random.Random(11))
    start = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    session = generator.demo_session(
        Decimal("5000"),
        ActivityTierResolver(cfg.session_tiers),
        session_start=start,
        duration=timedelta(seconds=240),
    )

    for event in session.events:
        record = TradeEventRecord.from_event(event)
        jsonschema_validate(instance=dump_for_jsonschema(record), schema=trade_event_schema, registry=SCHEMA_REGISTRY)
    assert session.events[0].timestamp.date() == date(2026, 1, 1)

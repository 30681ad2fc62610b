"""Engine configuration model.

This module defines the EngineConfig schema used to parse and normalize the
engine's bands and tables from JSON. Bands and tier tables are explicit,
versioned configuration passed into the selector, decomposer, resolver and
generator rather than constants embedded in them.
"""

# pylint: disable=missing-class-docstring
from __future__ import annotations

import json
from datetime import time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from yield_engine.core.domain.types import ActivityTier

# ---------------------------------------------------------------------------
# Bands
# ---------------------------------------------------------------------------


class RateBand(BaseModel):
    """Closed interval [lower, upper] used for uniform draws."""

    lower: Decimal = Field(..., ge=0)
    upper: Decimal = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_order(self) -> RateBand:
        if self.lower > self.upper:
            raise ValueError("lower must be <= upper")
        return self

    def contains(self, value: Decimal) -> bool:
        return self.lower <= value <= self.upper


class RateBandConfig(BaseModel):
    first_month: RateBand = RateBand(lower=Decimal("0.20"), upper=Decimal("0.22"))
    standard: RateBand = RateBand(lower=Decimal("0.15"), upper=Decimal("0.17"))

    model_config = ConfigDict(extra="forbid", frozen=True)

    def band_for(self, month_index: int) -> RateBand:
        return self.first_month if month_index == 1 else self.standard


# ---------------------------------------------------------------------------
# Activity tiers
# ---------------------------------------------------------------------------


class ActivityTierTable(BaseModel):
    """Ordered, versioned table of account-size brackets.

    The first bracket starts at 0 so that every non-negative account size
    resolves to a tier.
    """

    version: str = Field("1", min_length=1)
    tiers: list[ActivityTier] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def validate_ordering(self) -> ActivityTierTable:
        if self.tiers[0].lower_bound != 0:
            raise ValueError("the first tier must have lower_bound 0")
        for prev, nxt in zip(self.tiers, self.tiers[1:]):
            if nxt.lower_bound <= prev.lower_bound:
                raise ValueError("tier lower bounds must be strictly increasing")
        return self


def _tier(lower_bound: str, min_trades: int, max_trades: int, label: str) -> ActivityTier:
    return ActivityTier(
        lower_bound=Decimal(lower_bound),
        min_trades=min_trades,
        max_trades=max_trades,
        label=label,
    )


DEFAULT_SESSION_TIERS = ActivityTierTable(
    version="session-v1",
    tiers=[
        _tier("0", 20, 30, "starter"),
        _tier("15000", 30, 60, "growth"),
        _tier("50000", 60, 75, "professional"),
        _tier("100000", 75, 100, "institutional"),
    ],
)

DEFAULT_DAILY_TIERS = ActivityTierTable(
    version="daily-v1",
    tiers=[
        _tier("0", 20, 30, "starter"),
        _tier("15000", 30, 50, "growth"),
        _tier("50000", 50, 75, "professional"),
        _tier("100000", 75, 100, "institutional"),
    ],
)


# ---------------------------------------------------------------------------
# Payout and trading parameters
# ---------------------------------------------------------------------------


class PayoutConfig(BaseModel):
    # Each day's weight is drawn from [1 - weight_variance, 1 + weight_variance].
    weight_variance: Decimal = Field(Decimal("0.30"), ge=0, lt=1)
    # Time of day (UTC) at which a day's payout becomes due.
    reveal_time: time = time(0, 1)
    horizon_months: int = Field(12, ge=1)

    model_config = ConfigDict(extra="forbid", frozen=True)


class Instrument(BaseModel):
    symbol: str = Field(..., min_length=1)
    weight: float = Field(..., gt=0)

    model_config = ConfigDict(extra="forbid", frozen=True)


DEFAULT_INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument(symbol="BTC/USDT", weight=0.25),
    Instrument(symbol="ETH/USDT", weight=0.20),
    Instrument(symbol="SOL/USDT", weight=0.15),
    Instrument(symbol="ADA/USDT", weight=0.12),
    Instrument(symbol="DOT/USDT", weight=0.10),
    Instrument(symbol="LINK/USDT", weight=0.10),
    Instrument(symbol="UNI/USDT", weight=0.08),
)


class TradingConfig(BaseModel):
    # Winning ticks scale the per-tick base by a multiplier in [1 - variance, 1 + variance].
    variance: Decimal = Field(Decimal("0.15"), ge=0, lt=1)
    # A winning tick never drops below this fraction of the per-tick base.
    profit_floor: Decimal = Field(Decimal("0.10"), ge=0, le=1)
    # Per-session loss rate is drawn from this band.
    loss_rate: RateBand = RateBand(lower=Decimal("0.25"), upper=Decimal("0.35"))
    # Loss magnitude as a fraction of the per-tick base; capped at 1.
    loss_magnitude: RateBand = RateBand(lower=Decimal("0.25"), upper=Decimal("0.75"))
    # Expected fraction of winning trades over many sessions.
    win_rate: RateBand = RateBand(lower=Decimal("0.65"), upper=Decimal("0.75"))
    # Notional as a fraction of the session's start amount.
    notional_fraction: RateBand = RateBand(lower=Decimal("0.05"), upper=Decimal("0.15"))
    instruments: tuple[Instrument, ...] = Field(DEFAULT_INSTRUMENTS, min_length=1)

    demo_duration_seconds: float = Field(240.0, gt=0)
    demo_gain_fraction: Decimal = Field(Decimal("0.25"), ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("loss_rate", "loss_magnitude")
    @classmethod
    def _unit_band(cls, band: RateBand) -> RateBand:
        if band.upper > 1:
            raise ValueError("band upper bound must be <= 1")
        return band

    @property
    def demo_duration(self) -> timedelta:
        return timedelta(seconds=self.demo_duration_seconds)


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class EngineConfig(BaseModel):
    """Structured engine configuration."""

    version: str = Field("1", min_length=1)

    amount_quantum: Decimal = Field(Decimal("0.01"), gt=0)
    rate_quantum: Decimal = Field(Decimal("0.000001"), gt=0)

    rates: RateBandConfig = RateBandConfig()
    payouts: PayoutConfig = PayoutConfig()
    trading: TradingConfig = TradingConfig()

    session_tiers: ActivityTierTable = DEFAULT_SESSION_TIERS
    daily_tiers: ActivityTierTable = DEFAULT_DAILY_TIERS

    # Namespace for stable record identifiers.
    id_namespace: str = Field("yield-v1", min_length=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_json_obj(cls, cfg_obj: dict[str, Any]) -> EngineConfig:
        """Create an EngineConfig instance from a JSON-compatible object."""
        return cls.model_validate(cfg_obj)

    @classmethod
    def from_json_file(cls, path: str | Path) -> EngineConfig:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(path)
        return cls.from_json_obj(json.loads(path.read_text(encoding="utf-8")))

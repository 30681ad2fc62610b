"""
Semantic test: tiered monthly rate bands.

Invariant:
select_rate(1) always lies in [0.20, 0.22] and select_rate(k > 1) always
lies in [0.15, 0.17]. A selector returns the same rate for the same month.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from yield_engine.core.config.engine_config import RateBand, RateBandConfig
from yield_engine.core.domain.errors import InvalidInputError
from yield_engine.core.schedule.rate_selector import RateSelector


def test_first_month_rates_stay_in_band_across_10000_seeds() -> None:
    bands = RateBandConfig()

    for seed in range(10_000):
        rate = RateSelector(bands, seed=seed).select_rate(1)
        assert Decimal("0.20") <= rate <= Decimal("0.22")


def test_later_month_rates_stay_in_band_across_10000_seeds() -> None:
    bands = RateBandConfig()

    for seed in range(10_000):
        month_index = 2 + seed % 11
        rate = RateSelector(bands, seed=seed).select_rate(month_index)
        assert Decimal("0.15") <= rate <= Decimal("0.17")


def test_rate_is_stable_for_a_seed_and_month() -> None:
    selector = RateSelector(RateBandConfig(), seed="account-1")

    assert selector.select_rate(3) == selector.select_rate(3)
    assert RateSelector(RateBandConfig(), seed="account-1").select_rate(3) == selector.select_rate(3)


def test_rate_is_quantized() -> None:
    rate = RateSelector(RateBandConfig(), seed=5, quantum=Decimal("0.0001")).select_rate(1)

    assert rate == rate.quantize(Decimal("0.0001"))


def test_unseeded_selector_draws_its_own_seed() -> None:
    selector = RateSelector(RateBandConfig())

    assert selector.seed is not None
    assert selector.select_rate(1) == selector.select_rate(1)


def test_degenerate_band_returns_its_bound() -> None:
    bands = RateBandConfig(
        first_month=RateBand(lower=Decimal("0.21"), upper=Decimal("0.21")),
        standard=RateBand(lower=Decimal("0.16"), upper=Decimal("0.16")),
    )
    selector = RateSelector(bands, seed=1)

    assert selector.select_rate(1) == Decimal("0.21")
    assert selector.select_rate(2) == Decimal("0.16")


def test_month_index_below_one_rejected() -> None:
    with pytest.raises(InvalidInputError):
        RateSelector(RateBandConfig(), seed=1).select_rate(0)

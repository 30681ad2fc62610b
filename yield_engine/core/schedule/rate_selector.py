"""Locked monthly rate selection."""

from __future__ import annotations

import logging
import random
from decimal import Decimal

from yield_engine.core.config.engine_config import RateBandConfig
from yield_engine.core.domain.errors import InvalidInputError
from yield_engine.core.domain.money import quantize

LOGGER = logging.getLogger(__name__)


class RateSelector:
    """Draws a monthly rate from the tiered band for a month index.

    Month 1 draws from the first-month band, every later month from the
    standard band. The draw is a pure function of (seed, month_index): the
    same selector always returns the same rate for the same month. Callers
    must still check for an already locked rate before selecting and
    persist the result immediately; the selector holds no state.
    """

    def __init__(
        self,
        bands: RateBandConfig,
        *,
        seed: int | str | None = None,
        quantum: Decimal = Decimal("0.000001"),
    ) -> None:
        self._bands = bands
        self._quantum = quantum
        if seed is None:
            seed = random.SystemRandom().getrandbits(64)
        self._seed = seed

    @property
    def seed(self) -> int | str:
        return self._seed

    def select_rate(self, month_index: int) -> Decimal:
        """Return the rate for ``month_index`` (1-based) as a fraction of principal."""
        if month_index < 1:
            raise InvalidInputError(f"month_index must be >= 1, got {month_index}")

        band = self._bands.band_for(month_index)
        rng = random.Random(f"{self._seed}:{month_index}")

        drawn = Decimal(str(rng.uniform(float(band.lower), float(band.upper))))
        rate = quantize(drawn, self._quantum)
        # Quantizing may step just outside a band whose bounds are finer than the quantum.
        rate = min(max(rate, band.lower), band.upper)

        LOGGER.debug(
            "rate selected",
            extra={"month_index": month_index, "rate": str(rate)},
        )
        return rate

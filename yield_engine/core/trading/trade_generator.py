"""Synthetic trade stream generation.

A session walks from a start amount to a target amount over a fixed
wall-clock window in ``trade_count`` evenly spaced ticks. Each tick takes
its share of the gain still outstanding, perturbed by a bounded random
multiplier; a controlled fraction of ticks are sampled as losses whose
magnitude never exceeds the per-tick base, so later ticks can always absorb
them. The last tick takes the exact residual, so the profits of a session
sum to ``target_amount - start_amount`` exactly.
"""

# pylint: disable=too-many-arguments,too-many-locals
from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Iterator

from yield_engine.core.domain.errors import InvalidSessionError
from yield_engine.core.domain.money import CENT, ZERO, quantize, to_decimal
from yield_engine.core.domain.types import ActivityTier, SimulationSession, TradeEvent
from yield_engine.core.events.events import SessionGeneratedEvent
from yield_engine.core.partition import close_residual

if TYPE_CHECKING:
    from yield_engine.core.config.engine_config import RateBand, TradingConfig
    from yield_engine.core.events.event_bus import EventBus
    from yield_engine.core.trading.tier_resolver import ActivityTierResolver

LOGGER = logging.getLogger(__name__)

_SIDES: tuple[str, str] = ("long", "short")


def _uniform(rng: random.Random, band: RateBand) -> Decimal:
    return Decimal(str(rng.uniform(float(band.lower), float(band.upper))))


class TradeEventGenerator:
    """Produces ordered TradeEvent batches that sum exactly to a target gain."""

    def __init__(
        self,
        trading_cfg: TradingConfig,
        event_bus: EventBus,
        *,
        quantum: Decimal = CENT,
        rng: random.Random | None = None,
    ) -> None:
        self._cfg = trading_cfg
        self._event_bus = event_bus
        self._quantum = quantum
        self._rng = rng if rng is not None else random.Random()

        self._symbols = [i.symbol for i in trading_cfg.instruments]
        self._weights = [i.weight for i in trading_cfg.instruments]

    # ---------------------------------------------------------------------
    # Raw generation
    # ---------------------------------------------------------------------

    def generate(
        self,
        start_amount: Decimal,
        target_amount: Decimal,
        duration: timedelta,
        tier: ActivityTier,
        *,
        session_id: str | None = None,
        session_start: datetime | None = None,
        trade_count: int | None = None,
    ) -> list[TradeEvent]:
        """Return the full ordered batch for one session."""
        return list(
            self.iter_events(
                start_amount,
                target_amount,
                duration,
                tier,
                session_id=session_id,
                session_start=session_start,
                trade_count=trade_count,
            )
        )

    def iter_events(
        self,
        start_amount: Decimal,
        target_amount: Decimal,
        duration: timedelta,
        tier: ActivityTier,
        *,
        session_id: str | None = None,
        session_start: datetime | None = None,
        trade_count: int | None = None,
    ) -> Iterator[TradeEvent]:
        """Yield the session's events one tick at a time.

        Inputs are validated eagerly, before the first event is produced.
        """
        start = to_decimal(start_amount)
        target = to_decimal(target_amount)

        if duration <= timedelta(0):
            raise InvalidSessionError(f"duration must be positive, got {duration}")
        count = trade_count if trade_count is not None else tier.draw_trade_count(self._rng)
        if count <= 0:
            raise InvalidSessionError(f"trade count must be positive, got {count}")
        if start != quantize(start, self._quantum) or target != quantize(target, self._quantum):
            raise InvalidSessionError(
                f"start {start} and target {target} must be whole multiples of {self._quantum}"
            )
        if target < start:
            raise InvalidSessionError(
                f"target amount {target} is below start amount {start}"
            )

        if session_id is None:
            session_id = uuid.UUID(int=self._rng.getrandbits(128), version=4).hex
        if session_start is None:
            session_start = datetime.now(timezone.utc)

        return self._ticks(start, target, duration, count, session_id, session_start)

    def _ticks(
        self,
        start: Decimal,
        target: Decimal,
        duration: timedelta,
        count: int,
        session_id: str,
        session_start: datetime,
    ) -> Iterator[TradeEvent]:
        rng = self._rng
        cfg = self._cfg

        gain = quantize(target - start, self._quantum)
        loss_rate = _uniform(rng, cfg.loss_rate)

        profits: list[Decimal] = []
        cumulative = ZERO

        for k in range(1, count + 1):
            remaining_count = count - k + 1
            remaining_gain = gain - cumulative

            if remaining_count == 1:
                profit = close_residual(profits, gain)
            else:
                base = remaining_gain / remaining_count
                profit = ZERO
                if base > 0 and Decimal(str(rng.random())) < loss_rate:
                    # Capped at the base, so the outstanding gain only grows.
                    profit = -quantize(base * _uniform(rng, cfg.loss_magnitude), self._quantum)
                if profit >= 0:
                    multiplier = Decimal(str(rng.uniform(float(1 - cfg.variance), float(1 + cfg.variance))))
                    profit = quantize(max(base * multiplier, base * cfg.profit_floor), self._quantum)

            profits.append(profit)
            cumulative += profit

            yield TradeEvent(
                session_id=session_id,
                sequence=k,
                symbol=rng.choices(self._symbols, weights=self._weights)[0],
                side=rng.choice(_SIDES),
                notional=quantize(start * _uniform(rng, cfg.notional_fraction), self._quantum),
                profit=profit,
                timestamp=session_start + duration * k / count,
            )

    # ---------------------------------------------------------------------
    # Sessions
    # ---------------------------------------------------------------------

    def new_session(
        self,
        start_amount: Decimal,
        target_amount: Decimal,
        duration: timedelta,
        tier: ActivityTier,
        *,
        session_start: datetime,
        account_id: str | None = None,
        session_id: str | None = None,
        trade_count: int | None = None,
    ) -> SimulationSession:
        """Generate a batch and wrap it in a fresh, unrevealed session."""
        events = self.generate(
            start_amount,
            target_amount,
            duration,
            tier,
            session_id=session_id,
            session_start=session_start,
            trade_count=trade_count,
        )

        session = SimulationSession(
            session_id=events[0].session_id,
            account_id=account_id,
            start_time=session_start,
            duration=duration,
            start_amount=to_decimal(start_amount),
            target_amount=to_decimal(target_amount),
            tier=tier,
            events=events,
        )
        self._announce(session)
        return session

    def regenerate(self, session: SimulationSession, *, session_start: datetime) -> list[TradeEvent]:
        """Build a fresh batch with the session's parameters (does not attach it)."""
        tier = session.tier
        trade_count = None
        if tier is None:
            # Sessions created without a tier keep their original density.
            tier = ActivityTier(lower_bound=ZERO, min_trades=1, max_trades=1)
            trade_count = max(len(session.events), 1)

        return self.generate(
            session.start_amount,
            session.target_amount,
            session.duration,
            tier,
            session_id=session.session_id,
            session_start=session_start,
            trade_count=trade_count,
        )

    def demo_session(
        self,
        start_amount: Decimal,
        resolver: ActivityTierResolver,
        *,
        session_start: datetime,
        account_id: str | None = None,
        duration: timedelta | None = None,
    ) -> SimulationSession:
        """Accelerated demo: configured gain fraction over the configured duration."""
        start = to_decimal(start_amount)
        target = quantize(start * (1 + self._cfg.demo_gain_fraction), self._quantum)
        return self.new_session(
            start,
            target,
            duration if duration is not None else self._cfg.demo_duration,
            resolver.resolve(start),
            session_start=session_start,
            account_id=account_id,
        )

    def _announce(self, session: SimulationSession) -> None:
        LOGGER.info(
            "trade session generated",
            extra={
                "session_id": session.session_id,
                "trade_count": len(session.events),
                "target_gain": str(session.target_gain),
            },
        )
        self._event_bus.emit(
            SessionGeneratedEvent(
                ts=session.start_time,
                session_id=session.session_id,
                generation=session.generation,
                trade_count=len(session.events),
                start_amount=session.start_amount,
                target_amount=session.target_amount,
            )
        )

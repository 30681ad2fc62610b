"""Public API for the yield_engine package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Clock and config
# ----------------------------------------------------------------------
from yield_engine.core.clock.simulation_clock import SimulationClock
from yield_engine.core.config.engine_config import (
    ActivityTierTable,
    EngineConfig,
    PayoutConfig,
    RateBand,
    RateBandConfig,
    TradingConfig,
)

# ----------------------------------------------------------------------
# Domain types and errors
# ----------------------------------------------------------------------
from yield_engine.core.domain.errors import (
    InvalidInputError,
    InvalidRecalculationError,
    InvalidScheduleError,
    InvalidSessionError,
    YieldEngineError,
)
from yield_engine.core.domain.types import (
    ActivityTier,
    DailyPayout,
    DailyPayoutRecord,
    Deposit,
    MonthlyPlan,
    SimulationSession,
    TradeEvent,
    TradeEventRecord,
)

# ----------------------------------------------------------------------
# Events, ports and schedule
# ----------------------------------------------------------------------
from yield_engine.core.events.event_bus import EventBus
from yield_engine.core.events.sinks.null_event_bus import NullEventBus
from yield_engine.core.ports.time_source import SystemTimeSource, TimeSource
from yield_engine.core.schedule.payout_decomposer import DailyPayoutDecomposer
from yield_engine.core.schedule.plan_book import PlanSnapshot, YieldPlanBook
from yield_engine.core.schedule.rate_selector import RateSelector
from yield_engine.core.schedule.recalculator import ScheduleRecalculator

# ----------------------------------------------------------------------
# Trading API
# ----------------------------------------------------------------------
from yield_engine.core.trading.session_stats import SessionStats, session_stats
from yield_engine.core.trading.tier_resolver import ActivityTierResolver
from yield_engine.core.trading.trade_generator import TradeEventGenerator

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Schedule
    "RateSelector",
    "DailyPayoutDecomposer",
    "ScheduleRecalculator",
    "YieldPlanBook",
    "PlanSnapshot",
    "SimulationClock",

    # Trading
    "ActivityTierResolver",
    "TradeEventGenerator",
    "SessionStats",
    "session_stats",

    # Config
    "EngineConfig",
    "RateBand",
    "RateBandConfig",
    "PayoutConfig",
    "TradingConfig",
    "ActivityTierTable",

    # Domain
    "Deposit",
    "MonthlyPlan",
    "DailyPayout",
    "ActivityTier",
    "TradeEvent",
    "SimulationSession",
    "DailyPayoutRecord",
    "TradeEventRecord",

    # Errors
    "YieldEngineError",
    "InvalidScheduleError",
    "InvalidRecalculationError",
    "InvalidSessionError",
    "InvalidInputError",

    # Events and ports
    "EventBus",
    "NullEventBus",
    "TimeSource",
    "SystemTimeSource",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("synthetic-yield-engine")
except PackageNotFoundError:
    __version__ = "0.0.0"

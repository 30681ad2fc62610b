"""
Event sink interface.

Sinks consume the engine's domain events (see ``events.py``).
"""
from __future__ import annotations

from typing import Protocol, Union

from yield_engine.core.events.events import (
    PayoutSettledEvent,
    PlanCreatedEvent,
    PlanStatusTransitionEvent,
    ScheduleRecalculatedEvent,
    SessionGeneratedEvent,
    SessionResetEvent,
    TradeRevealedEvent,
)

DomainEvent = Union[
    PlanCreatedEvent,
    PlanStatusTransitionEvent,
    PayoutSettledEvent,
    ScheduleRecalculatedEvent,
    SessionGeneratedEvent,
    TradeRevealedEvent,
    SessionResetEvent,
]


class EventSink(Protocol):
    def on_event(self, event: DomainEvent) -> None:
        """Consume a domain event."""

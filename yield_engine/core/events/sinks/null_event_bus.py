from __future__ import annotations

from yield_engine.core.events.event_bus import EventBus
from yield_engine.core.events.event_sink import DomainEvent


class _NullSink:
    """Event sink that discards all events."""

    def on_event(self, event: DomainEvent) -> None:
        return


class NullEventBus(EventBus):
    """EventBus that discards all events (used for tests and dry runs)."""

    def __init__(self) -> None:
        super().__init__(sinks=[_NullSink()])

"""
Simple synchronous event bus.
"""
from __future__ import annotations

from typing import Iterable

from yield_engine.core.events.event_sink import DomainEvent, EventSink


class EventBus:
    """Dispatches domain events to registered sinks, in registration order."""

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._closed = False

    def register(self, sink: EventSink) -> None:
        """Register a new sink."""
        if self._closed:
            raise RuntimeError("cannot register a sink on a closed EventBus")
        self._sinks.append(sink)

    def emit(self, event: DomainEvent) -> None:
        """Emit an event to all sinks."""
        for sink in self._sinks:
            sink.on_event(event)

    def emit_all(self, events: Iterable[DomainEvent]) -> None:
        """Emit a batch of events, preserving order."""
        for event in events:
            self.emit(event)

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method. Idempotent.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True

    def __enter__(self) -> EventBus:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

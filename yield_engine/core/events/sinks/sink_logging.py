"""
Logging event sink.
"""
from __future__ import annotations

import logging

from yield_engine.core.events.event_sink import DomainEvent


class LoggingEventSink:
    """Logs domain events using the standard logging module.

    Each event is logged once as ``domain_event`` with the event object and
    its type name attached as ``extra`` fields for structured handlers.
    """

    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        self._logger = logger
        self._level = level

    def on_event(self, event: DomainEvent) -> None:
        self._logger.log(
            self._level,
            "domain_event",
            extra={"event": event, "event_type": type(event).__name__},
        )

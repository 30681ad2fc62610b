"""
Append-only JSON-lines recorder sink.
"""
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

from yield_engine.core.events.event_sink import DomainEvent


def event_record(event: DomainEvent) -> dict[str, Any]:
    """Flatten an event into a JSON-ready mapping tagged with its type."""
    record: dict[str, Any] = {"event_type": type(event).__name__}
    if is_dataclass(event) and not isinstance(event, type):
        record.update(asdict(event))
    else:
        record["event"] = str(event)
    return record


class FileRecorderSink:
    """Writes each event as a JSON line to a file.

    Decimals, dates and datetimes are written as strings so amounts keep
    their exact decimal representation.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self._path.open("a", encoding="utf-8")
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    def on_event(self, event: DomainEvent) -> None:
        if self._closed:
            raise RuntimeError(f"recorder for {self._path} is closed")
        self._fh.write(json.dumps(event_record(event), default=str) + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._fh.flush()
        self._fh.close()
        self._closed = True

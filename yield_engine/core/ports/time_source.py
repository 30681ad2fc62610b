from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class TimeSource(Protocol):
    """Supplies the current server time used for reveal computation.

    The hosting layer owns the clock; the engine never reads wall time
    directly outside of SystemTimeSource.
    """

    def now(self) -> datetime:
        """Timezone-aware current time."""


class SystemTimeSource:
    """TimeSource backed by the host's UTC wall clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

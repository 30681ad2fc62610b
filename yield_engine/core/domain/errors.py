"""Error kinds raised by the yield and trade engine.

Every error is a local validation failure raised before any state is
mutated. None of them are retried internally; the calling layer decides
whether to surface them or to reject the triggering action.
"""

from __future__ import annotations


class YieldEngineError(ValueError):
    """Base class for all engine validation failures."""


class InvalidScheduleError(YieldEngineError):
    """Malformed day list, or non-zero interest spread over zero days."""


class InvalidRecalculationError(YieldEngineError):
    """A principal change would make paid history exceed the new entitlement."""


class InvalidSessionError(YieldEngineError):
    """Non-positive duration or trade count, or a target below the start amount."""


class InvalidInputError(YieldEngineError):
    """Input outside the domain of an operation (e.g. a negative account size)."""

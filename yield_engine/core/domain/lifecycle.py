"""
Monthly plan and daily payout lifecycle definitions.

This module defines the canonical statuses and the allowed transitions
between them. It is intentionally passive and validation-only: callers
decide what to do with a transition that is not listed here.
"""

from __future__ import annotations

# Terminal plan status: every payout of the month has been paid.
PLAN_TERMINAL_STATUSES: frozenset[str] = frozenset({"completed"})

# Allowed monthly plan transitions.
#
# Key   : previous status (or None if the plan was not previously observed)
# Value : set of allowed next statuses
#
# Notes:
# - A plan whose first day is already due when it is created may start
#   directly as active.
# - A plan that is settled in one pass from scheduled to fully paid skips
#   active.
PLAN_ALLOWED_TRANSITIONS: dict[str | None, frozenset[str]] = {
    None: frozenset({"scheduled", "active"}),

    "scheduled": frozenset(
        {
            "active",
            "completed",
        }
    ),

    "active": frozenset(
        {
            "active",
            "completed",
        }
    ),
}


# Allowed daily payout transitions. Paid is final; amounts of paid rows are frozen.
PAYOUT_ALLOWED_TRANSITIONS: dict[str | None, frozenset[str]] = {
    None: frozenset({"pending"}),
    "pending": frozenset({"pending", "paid"}),
}


def is_terminal_plan_status(status: str) -> bool:
    """Return True if the given plan status is terminal."""
    return status in PLAN_TERMINAL_STATUSES


def is_valid_plan_transition(prev_status: str | None, next_status: str) -> bool:
    """Return True if the transition prev_status -> next_status is allowed."""
    allowed = PLAN_ALLOWED_TRANSITIONS.get(prev_status)
    if allowed is None:
        return False
    return next_status in allowed


def is_valid_payout_transition(prev_status: str | None, next_status: str) -> bool:
    """Return True if the payout transition prev_status -> next_status is allowed."""
    allowed = PAYOUT_ALLOWED_TRANSITIONS.get(prev_status)
    if allowed is None:
        return False
    return next_status in allowed

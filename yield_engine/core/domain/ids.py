"""Utilities for deterministic record identifiers."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class PayoutKey:
    """Deterministic identifier parts for a daily payout.

    The payout is defined by (account_id, month_index, day).
    """

    account_id: str
    month_index: int
    day: date


def _digest(payload: str) -> str:
    digest = hashlib.blake2b(payload.encode("utf-8"), digest_size=8).digest()
    return str(int.from_bytes(digest, "big") & ((1 << 63) - 1))


def stable_plan_id(account_id: str, month_index: int, namespace: str) -> str:
    """Return a stable numeric string for a monthly plan.

    The returned value is a decimal string representing a non-negative
    63-bit integer. Re-deriving it for the same inputs always yields the
    same id, so records delivered twice are recognised as the same record.

    The namespace makes the mapping explicit and versionable.
    """
    if not namespace:
        raise ValueError("namespace must be non-empty")
    if month_index < 1:
        raise ValueError("month_index must be >= 1")

    return _digest(f"plan:{account_id}:{month_index}:{namespace}")


def stable_payout_id(key: PayoutKey, namespace: str) -> str:
    """Return a stable numeric string for a daily payout."""
    if not namespace:
        raise ValueError("namespace must be non-empty")

    return _digest(
        f"payout:{key.account_id}:{key.month_index}:{key.day.isoformat()}:{namespace}"
    )


def stable_trade_id(session_id: str, sequence: int, namespace: str = "trade-v1") -> str:
    """Return a stable numeric string for a trade event.

    A trade is identified by its session and its sequence number within
    that session; regenerated batches reuse the session id, so a restarted
    session's k-th trade keeps the id of the one it replaced.
    """
    if not namespace:
        raise ValueError("namespace must be non-empty")
    if sequence < 1:
        raise ValueError("sequence must be >= 1")

    return _digest(f"trade:{session_id}:{sequence}:{namespace}")

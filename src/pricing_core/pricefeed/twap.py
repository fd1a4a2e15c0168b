"""Time-weighted average price over a snapshot history — pure functions, no store.

Each snapshot is weighted by how long it stayed current: from its own
timestamp until the next snapshot, or until ``now`` for the latest one,
clipped to the lookback window. All arithmetic is fixed-point.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from decimal import Decimal, localcontext
from typing import TypeVar

from pricing_core import fixedpoint
from pricing_core.context import unix_micros
from pricing_core.errors import InsufficientHistory

T = TypeVar("T")


def _is_expired(snapshot, now: datetime) -> bool:
    expiry = getattr(snapshot, "expiry", None)
    return expiry is not None and expiry <= now


def time_weighted_average(
    snapshots: Sequence[T],
    now: datetime,
    value: Callable[[T], Decimal],
    lookback: timedelta | None = None,
    key: str = "history",
) -> Decimal:
    """Generic TWAP of ``value(snapshot)`` over *snapshots* (oldest first).

    Walks backward from ``now`` and stops at the lookback boundary or at the
    first snapshot whose ``expiry`` has passed, whichever comes first.
    Raises InsufficientHistory when no snapshot is in scope.
    """
    window_start = now - lookback if lookback is not None else None

    weighted_sum = Decimal(0)
    total_weight = 0
    latest_in_scope: T | None = None
    next_start = now

    with localcontext(fixedpoint.CONTEXT):
        for snapshot in reversed(snapshots):
            if snapshot.timestamp > now:
                # Future snapshots are not visible yet
                continue
            if _is_expired(snapshot, now):
                break
            if latest_in_scope is None:
                latest_in_scope = snapshot

            start = snapshot.timestamp
            if window_start is not None and start < window_start:
                start = window_start
            weight = unix_micros(next_start) - unix_micros(start)
            if weight > 0:
                weighted_sum += value(snapshot) * weight
                total_weight += weight

            if window_start is not None and snapshot.timestamp <= window_start:
                break
            next_start = snapshot.timestamp

    if latest_in_scope is None:
        raise InsufficientHistory(key)
    if total_weight == 0:
        # Only a snapshot taken at `now` is in scope
        return fixedpoint.to_dec(value(latest_in_scope))
    return fixedpoint.quo(weighted_sum, total_weight)


def compute_twap(
    snapshots: Sequence,
    now: datetime,
    lookback: timedelta | None = None,
    key: str = "history",
) -> Decimal:
    """TWAP of snapshot ``price`` fields."""
    return time_weighted_average(snapshots, now, lambda s: s.price, lookback, key)


def prune_snapshots(
    snapshots: Sequence[T],
    latest_time: datetime,
    lookback: timedelta,
) -> tuple[list[T], list[T]]:
    """Split *snapshots* (oldest first) into (kept, dropped).

    Snapshot i is dropped when snapshot i+1 already starts at or before the
    earliest window start any future query can have, or when its evidence
    has expired. The most recent snapshot is always kept.
    """
    if not snapshots:
        return [], []
    boundary = latest_time - lookback
    kept: list[T] = []
    dropped: list[T] = []
    last = len(snapshots) - 1
    for i, snapshot in enumerate(snapshots):
        if i == last:
            kept.append(snapshot)
            continue
        rolled_out = snapshots[i + 1].timestamp <= boundary
        if rolled_out or _is_expired(snapshot, latest_time):
            dropped.append(snapshot)
        else:
            kept.append(snapshot)
    return kept, dropped

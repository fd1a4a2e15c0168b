"""Execution context handed to every keeper call."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from pricing_core.events import EventManager
from pricing_core.store import CacheStore, KVStore

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def unix_micros(ts: datetime) -> int:
    """Exact integer microseconds since the epoch (no float round trip)."""
    return (ts - EPOCH) // _MICROSECOND


def from_unix_micros(value: int) -> datetime:
    return EPOCH + timedelta(microseconds=value)


@dataclass
class Context:
    """Block height, block time, state store and event sink for one call.

    Block time is supplied by the caller and must be timezone-aware UTC.
    """

    block_height: int
    block_time: datetime
    store: KVStore
    events: EventManager = field(default_factory=EventManager)

    def __post_init__(self) -> None:
        if self.block_time.tzinfo is None:
            raise ValueError("block_time must be timezone-aware")

    def with_block(self, height: int, block_time: datetime) -> Context:
        """Same store and event sink at another block."""
        return replace(self, block_height=height, block_time=block_time)

    @contextmanager
    def atomic(self) -> Iterator[Context]:
        """Branch the store and events; commit both only if the body succeeds."""
        cache = CacheStore(self.store)
        branch = replace(self, store=cache, events=EventManager())
        yield branch
        cache.write()
        self.events.extend(branch.events.events)

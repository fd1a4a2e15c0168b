"""Ordered key-value state store.

Keepers only ever talk to the :class:`KVStore` protocol. ``MemoryStore`` and
``SqlStore`` are roots; ``CacheStore`` branches any store so a call's writes
can be committed or dropped as a unit.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from pricing_core.db.tables.state import KVEntryRow

# Sorts after every printable key character
_PREFIX_END = "\U0010ffff"

# (key, value); a None value deletes the key
WriteOp = tuple[str, str | None]


class KVStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def has(self, key: str) -> bool: ...

    def iterate(self, prefix: str = "", reverse: bool = False) -> Iterator[tuple[str, str]]: ...

    def write_batch(self, ops: Iterable[WriteOp]) -> None: ...


def int_key(value: int, width: int = 20) -> str:
    """Zero-padded integer so lexical key order matches numeric order."""
    if value < 0:
        raise ValueError("key integers must be non-negative")
    return str(value).zfill(width)


class MemoryStore:
    """Dict-backed store; iteration sorts keys on demand."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def has(self, key: str) -> bool:
        return key in self._data

    def iterate(self, prefix: str = "", reverse: bool = False) -> Iterator[tuple[str, str]]:
        items = sorted(
            ((k, v) for k, v in self._data.items() if k.startswith(prefix)),
            reverse=reverse,
        )
        yield from items

    def write_batch(self, ops: Iterable[WriteOp]) -> None:
        for key, value in ops:
            if value is None:
                self.delete(key)
            else:
                self.set(key, value)


class SqlStore:
    """Store persisted in the ``kv_entries`` table.

    Single writes commit immediately; ``write_batch`` commits once so a
    flushed ``CacheStore`` lands in one database transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> str | None:
        row = self.session.get(KVEntryRow, key)
        return None if row is None else row.value

    def set(self, key: str, value: str) -> None:
        self.write_batch([(key, value)])

    def delete(self, key: str) -> None:
        self.write_batch([(key, None)])

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def iterate(self, prefix: str = "", reverse: bool = False) -> Iterator[tuple[str, str]]:
        order = KVEntryRow.key.desc() if reverse else KVEntryRow.key.asc()
        stmt = (
            select(KVEntryRow.key, KVEntryRow.value)
            .where(KVEntryRow.key >= prefix, KVEntryRow.key < prefix + _PREFIX_END)
            .order_by(order)
        )
        # Materialise so callers may write while iterating
        rows = self.session.execute(stmt).all()
        for key, value in rows:
            yield key, value

    def write_batch(self, ops: Iterable[WriteOp]) -> None:
        try:
            for key, value in ops:
                if value is None:
                    self.session.execute(delete(KVEntryRow).where(KVEntryRow.key == key))
                else:
                    self.session.merge(KVEntryRow(key=key, value=value))
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


class CacheStore:
    """Write-buffering branch of a parent store.

    Reads fall through to the parent for keys not touched in this branch.
    ``write()`` flushes the buffer to the parent; dropping the branch
    discards it.
    """

    def __init__(self, parent: KVStore) -> None:
        self.parent = parent
        self._writes: dict[str, str | None] = {}

    def get(self, key: str) -> str | None:
        if key in self._writes:
            return self._writes[key]
        return self.parent.get(key)

    def set(self, key: str, value: str) -> None:
        self._writes[key] = value

    def delete(self, key: str) -> None:
        self._writes[key] = None

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def iterate(self, prefix: str = "", reverse: bool = False) -> Iterator[tuple[str, str]]:
        merged = dict(self.parent.iterate(prefix))
        for key, value in self._writes.items():
            if not key.startswith(prefix):
                continue
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        for key in sorted(merged, reverse=reverse):
            yield key, merged[key]

    def write_batch(self, ops: Iterable[WriteOp]) -> None:
        for key, value in ops:
            self._writes[key] = value

    def write(self) -> None:
        """Flush buffered writes to the parent in key order."""
        ops = sorted(self._writes.items())
        self._writes = {}
        self.parent.write_batch(ops)

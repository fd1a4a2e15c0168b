"""Tests for the key-value stores and atomic contexts."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pricing_core.context import Context, from_unix_micros, unix_micros
from pricing_core.store import CacheStore, MemoryStore, SqlStore, int_key

NOW = datetime(2022, 6, 1, 12, 0, tzinfo=timezone.utc)


def _fill(store):
    store.set("a/2", "two")
    store.set("a/1", "one")
    store.set("b/1", "other")


# ── Stores ────────────────────────────────────────────────────


class TestMemoryStore:
    def test_get_set_delete(self):
        store = MemoryStore()
        assert store.get("k") is None
        store.set("k", "v")
        assert store.get("k") == "v"
        assert store.has("k")
        store.delete("k")
        assert not store.has("k")

    def test_iterate_prefix_in_key_order(self):
        store = MemoryStore()
        _fill(store)
        assert list(store.iterate("a/")) == [("a/1", "one"), ("a/2", "two")]
        assert [k for k, _ in store.iterate("a/", reverse=True)] == ["a/2", "a/1"]

    def test_int_key_sorts_numerically(self):
        keys = sorted(int_key(n) for n in (10, 9, 100))
        assert keys == [int_key(9), int_key(10), int_key(100)]

    def test_int_key_rejects_negative(self):
        with pytest.raises(ValueError):
            int_key(-1)


class TestSqlStore:
    def test_roundtrip_and_iterate(self, db_session):
        store = SqlStore(db_session)
        _fill(store)
        assert store.get("a/1") == "one"
        assert list(store.iterate("a/")) == [("a/1", "one"), ("a/2", "two")]
        assert [k for k, _ in store.iterate("", reverse=True)] == ["b/1", "a/2", "a/1"]

    def test_overwrite_and_delete(self, db_session):
        store = SqlStore(db_session)
        store.set("k", "v1")
        store.set("k", "v2")
        assert store.get("k") == "v2"
        store.delete("k")
        assert store.get("k") is None
        assert not store.has("k")

    def test_write_batch_applies_in_one_commit(self, db_session):
        store = SqlStore(db_session)
        store.set("gone", "x")
        store.write_batch([("gone", None), ("new", "y")])
        assert store.get("gone") is None
        assert store.get("new") == "y"


class TestCacheStore:
    def test_reads_fall_through_to_parent(self):
        parent = MemoryStore()
        parent.set("k", "v")
        cache = CacheStore(parent)
        assert cache.get("k") == "v"

    def test_writes_buffered_until_write(self):
        parent = MemoryStore()
        cache = CacheStore(parent)
        cache.set("k", "v")
        assert parent.get("k") is None
        cache.write()
        assert parent.get("k") == "v"

    def test_iterate_merges_buffer_and_deletes(self):
        parent = MemoryStore()
        _fill(parent)
        cache = CacheStore(parent)
        cache.delete("a/1")
        cache.set("a/3", "three")
        assert list(cache.iterate("a/")) == [("a/2", "two"), ("a/3", "three")]
        assert parent.has("a/1")


# ── Context ───────────────────────────────────────────────────


class TestContext:
    def test_requires_timezone_aware_time(self):
        with pytest.raises(ValueError):
            Context(block_height=1, block_time=datetime(2022, 1, 1), store=MemoryStore())

    def test_unix_micros_roundtrip_is_exact(self):
        ts = datetime(2022, 6, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert from_unix_micros(unix_micros(ts)) == ts

    def test_atomic_commits_on_success(self):
        ctx = Context(block_height=1, block_time=NOW, store=MemoryStore())
        with ctx.atomic() as tx:
            tx.store.set("k", "v")
            tx.events.emit("thing_happened", n=1)
        assert ctx.store.get("k") == "v"
        assert [e.type for e in ctx.events.events] == ["thing_happened"]

    def test_atomic_discards_on_error(self):
        ctx = Context(block_height=1, block_time=NOW, store=MemoryStore())
        with pytest.raises(RuntimeError):
            with ctx.atomic() as tx:
                tx.store.set("k", "v")
                tx.events.emit("thing_happened")
                raise RuntimeError("boom")
        assert ctx.store.get("k") is None
        assert ctx.events.events == []

    def test_nested_atomic_inner_failure_keeps_outer(self):
        ctx = Context(block_height=1, block_time=NOW, store=MemoryStore())
        with ctx.atomic() as outer:
            outer.store.set("outer", "1")
            with pytest.raises(RuntimeError):
                with outer.atomic() as inner:
                    inner.store.set("inner", "1")
                    raise RuntimeError("boom")
        assert ctx.store.get("outer") == "1"
        assert ctx.store.get("inner") is None

    def test_with_block_shares_store(self):
        ctx = Context(block_height=1, block_time=NOW, store=MemoryStore())
        later = ctx.with_block(2, NOW.replace(hour=13))
        later.store.set("k", "v")
        assert ctx.store.get("k") == "v"
        assert later.block_height == 2

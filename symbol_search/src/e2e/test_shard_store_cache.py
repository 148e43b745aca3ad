import json
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

import pytest

from searchindex.DB.memory_store import MemorySource
from searchindex.errors import LoadFailure
from searchindex.store import ShardStore


class CountingSource(MemorySource):
    """Counts fetches per bucket; fetches block until `gate` is set."""
    def __init__(self, shards, gate=None):
        super().__init__(shards)
        self.gate = gate or threading.Event()
        if gate is None:
            self.gate.set()
        self.calls = Counter()
        self._calls_lock = threading.Lock()

    def fetch(self, bucket_id):
        with self._calls_lock:
            self.calls[bucket_id] += 1
        assert self.gate.wait(5), "gate never opened"
        return super().fetch(bucket_id)


class FlakySource(MemorySource):
    """Fails the first `failures` fetches, then serves normally."""
    def __init__(self, shards, failures=1, exc=None):
        super().__init__(shards)
        self.failures = failures
        self.exc = exc

    def fetch(self, bucket_id):
        if self.failures > 0:
            self.failures -= 1
            raise self.exc or LoadFailure(bucket_id, "connection reset")
        return super().fetch(bucket_id)


def test_repeated_get_returns_cached_instance(functions_4):
    src = CountingSource({"functions_4": functions_4})
    store = ShardStore(src)
    try:
        first = store.get("functions_4")
        assert store.get("functions_4") is first
        assert src.calls["functions_4"] == 1
        assert store.is_loaded("functions_4")
        assert store.loaded() == ["functions_4"]
    finally:
        store.close()


def test_concurrent_requests_coalesce_into_one_load(functions_4):
    gate = threading.Event()
    src = CountingSource({"functions_4": functions_4}, gate)
    store = ShardStore(src, max_workers=4)
    try:
        futures = [store.fetch("functions_4") for _ in range(10)]
        assert all(f is futures[0] for f in futures)

        with ThreadPoolExecutor(max_workers=8) as pool:
            pending = [pool.submit(store.get, "functions_4") for _ in range(16)]
            gate.set()
            shards = [p.result(timeout=5) for p in pending]

        assert all(s is shards[0] for s in shards)
        assert src.calls["functions_4"] == 1
    finally:
        store.close()


def test_unknown_bucket_is_an_empty_shard():
    store = ShardStore(MemorySource({}))
    try:
        shard = store.get("functions_7")
        assert shard.entries == ()
        assert store.get("functions_7") is shard
    finally:
        store.close()


def test_load_failure_is_raised_and_not_cached(functions_4):
    src = FlakySource({"functions_4": functions_4}, failures=1)
    store = ShardStore(src)
    try:
        with pytest.raises(LoadFailure) as info:
            store.get("functions_4")
        assert info.value.bucket_id == "functions_4"
        assert not store.is_loaded("functions_4")
        assert len(store.get("functions_4")) == 65
    finally:
        store.close()


def test_unexpected_source_errors_become_load_failures(functions_4):
    src = FlakySource({"functions_4": functions_4}, failures=1, exc=OSError("disk gone"))
    store = ShardStore(src)
    try:
        with pytest.raises(LoadFailure, match="disk gone"):
            store.get("functions_4")
    finally:
        store.close()


def test_malformed_records_reported_once_per_shard():
    doc = json.dumps([["decode", ["join::Base64", "a.html#1"]], ["broken"]])
    seen = []
    store = ShardStore(MemorySource({"functions_4": doc}), on_diagnostic=seen.append)
    try:
        for _ in range(3):
            assert [e.display_name for e in store.get("functions_4").entries] == ["decode"]
        assert len(seen) == 1
        assert seen[0].bucket_id == "functions_4"
        assert seen[0].record_index == 1
    finally:
        store.close()


def test_unreadable_shard_is_cached_empty_with_one_diagnostic():
    seen = []
    src = CountingSource({"functions_4": "var searchData=[[["})
    store = ShardStore(src, on_diagnostic=seen.append)
    try:
        assert store.get("functions_4").entries == ()
        assert store.get("functions_4").entries == ()
        assert src.calls["functions_4"] == 1
        assert len(seen) == 1 and seen[0].record_index is None
    finally:
        store.close()

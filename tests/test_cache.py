"""Tests for the single-slot snapshot cache."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from ipl_snapshot.cache import CacheStatus, SnapshotCache
from ipl_snapshot.errors import CacheUnavailable
from ipl_snapshot.orchestrator import OrchestrationResult
from ipl_snapshot.reference_data import REFERENCE_SNAPSHOT, REFERENCE_SOURCE
from ipl_snapshot.sources import ALL_SECTIONS


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingLoader:
    def __init__(self, provenance_source: str = "iplt20", gate: threading.Event = None):
        self.calls = 0
        self._lock = threading.Lock()
        self._source = provenance_source
        self._gate = gate

    def __call__(self) -> OrchestrationResult:
        with self._lock:
            self.calls += 1
        if self._gate is not None:
            self._gate.wait(timeout=5)
        return OrchestrationResult(
            snapshot=REFERENCE_SNAPSHOT,
            provenance={s.value: self._source for s in ALL_SECTIONS},
        )


class TestTtl:
    """Tests for hit/miss behaviour across the TTL window."""

    def test_hit_within_ttl(self):
        clock = FakeClock()
        loader = CountingLoader()
        cache = SnapshotCache(loader, ttl_seconds=300, clock=clock)

        first = cache.get()
        clock.now += 299
        second = cache.get()

        assert first.status == CacheStatus.MISS
        assert second.status == CacheStatus.HIT
        assert second.entry is first.entry
        assert second.snapshot is first.snapshot
        assert loader.calls == 1

    def test_refresh_after_ttl(self):
        clock = FakeClock()
        loader = CountingLoader()
        cache = SnapshotCache(loader, ttl_seconds=300, clock=clock)

        cache.get()
        clock.now += 300
        refreshed = cache.get()
        clock.now += 1
        again = cache.get()

        assert refreshed.status == CacheStatus.MISS
        assert again.status == CacheStatus.HIT
        assert loader.calls == 2

    def test_age(self):
        clock = FakeClock()
        cache = SnapshotCache(CountingLoader(), ttl_seconds=300, clock=clock)
        cache.get()
        clock.now += 42
        assert cache.get().age_seconds == pytest.approx(42)

    def test_fallback_status(self):
        cache = SnapshotCache(CountingLoader(REFERENCE_SOURCE), ttl_seconds=300, clock=FakeClock())
        assert cache.get().status == CacheStatus.FALLBACK
        assert cache.get().status == CacheStatus.FALLBACK

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            SnapshotCache(CountingLoader(), ttl_seconds=0)


class TestPeek:
    """Tests for peek."""

    def test_empty(self):
        cache = SnapshotCache(CountingLoader(), ttl_seconds=300)
        assert cache.peek() is None

    def test_does_not_load(self):
        loader = CountingLoader()
        cache = SnapshotCache(loader, ttl_seconds=300)
        cache.get()
        assert cache.peek().status == CacheStatus.HIT
        assert loader.calls == 1


class TestConcurrency:
    """Tests for single-flight refresh."""

    def test_concurrent_misses_share_one_load(self):
        gate = threading.Event()
        loader = CountingLoader(gate=gate)
        cache = SnapshotCache(loader, ttl_seconds=300)

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(cache.get) for _ in range(8)]
            # Let every caller reach the cache before the load finishes
            threading.Event().wait(0.2)
            gate.set()
            lookups = [f.result(timeout=5) for f in futures]

        assert loader.calls == 1
        assert len({id(lk.entry) for lk in lookups}) == 1
        assert all(lk.snapshot is REFERENCE_SNAPSHOT for lk in lookups)

    def test_loader_error_reaches_waiters_and_clears(self):
        calls = {"n": 0}

        def failing():
            calls["n"] += 1
            raise RuntimeError("boom")

        cache = SnapshotCache(failing, ttl_seconds=300)
        with pytest.raises(RuntimeError):
            cache.get()
        with pytest.raises(RuntimeError):
            cache.get()
        assert calls["n"] == 2

    def test_lock_timeout_raises_cache_unavailable(self):
        cache = SnapshotCache(CountingLoader(), ttl_seconds=300, lock_timeout=0.05)
        cache._lock.acquire()
        try:
            with pytest.raises(CacheUnavailable):
                cache.get()
        finally:
            cache._lock.release()

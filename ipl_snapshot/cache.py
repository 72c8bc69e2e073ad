# ipl_snapshot/cache.py
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ipl_snapshot.config import SNAPSHOT_CACHE_TTL_SECONDS
from ipl_snapshot.errors import CacheUnavailable
from ipl_snapshot.logging import logger
from ipl_snapshot.models import TournamentSnapshot
from ipl_snapshot.orchestrator import OrchestrationResult


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"
    FALLBACK = "FALLBACK"


@dataclass(frozen=True)
class CacheEntry:
    result: OrchestrationResult
    fetched_at: float


@dataclass(frozen=True)
class CacheLookup:
    entry: CacheEntry
    status: CacheStatus
    age_seconds: float

    @property
    def snapshot(self) -> TournamentSnapshot:
        return self.entry.result.snapshot


class _Refresh:
    """One in-flight loader call that late arrivals wait on."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.entry: Optional[CacheEntry] = None
        self.error: Optional[BaseException] = None


class SnapshotCache:
    """
    Single-slot TTL cache in front of the orchestrator.

    The lock only guards the slot and the in-flight marker, never the loader
    call itself. Concurrent misses share one loader call.
    """

    def __init__(
        self,
        loader: Callable[[], OrchestrationResult],
        ttl_seconds: float = SNAPSHOT_CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        lock_timeout: float = 5.0,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._loader = loader
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry] = None
        self._refresh: Optional[_Refresh] = None

    def _acquire(self) -> None:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise CacheUnavailable("Timed out waiting for the snapshot cache lock")

    def _lookup(self, entry: CacheEntry, status: CacheStatus) -> CacheLookup:
        if entry.result.fully_fallback:
            status = CacheStatus.FALLBACK
        return CacheLookup(entry=entry, status=status, age_seconds=max(0.0, self._clock() - entry.fetched_at))

    def _fresh(self, entry: Optional[CacheEntry], now: float) -> bool:
        return entry is not None and now - entry.fetched_at < self.ttl_seconds

    def peek(self) -> Optional[CacheLookup]:
        """Current slot without triggering a refresh (None when empty)."""
        self._acquire()
        try:
            entry = self._entry
        finally:
            self._lock.release()
        if entry is None:
            return None
        return self._lookup(entry, CacheStatus.HIT)

    def get(self) -> CacheLookup:
        self._acquire()
        try:
            entry = self._entry
            if self._fresh(entry, self._clock()):
                return self._lookup(entry, CacheStatus.HIT)

            refresh = self._refresh
            owner = refresh is None
            if owner:
                refresh = self._refresh = _Refresh()
        finally:
            self._lock.release()

        if not owner:
            logger.debug("snapshot_cache_wait")
            refresh.done.wait()
            if refresh.error is not None:
                raise refresh.error
            return self._lookup(refresh.entry, CacheStatus.MISS)

        logger.info("snapshot_cache_miss", ttl_seconds=self.ttl_seconds)
        try:
            result = self._loader()
        except BaseException as e:
            with self._lock:
                self._refresh = None
            refresh.error = e
            refresh.done.set()
            raise

        new_entry = CacheEntry(result=result, fetched_at=self._clock())
        with self._lock:
            self._entry = new_entry
            self._refresh = None
        refresh.entry = new_entry
        refresh.done.set()

        return self._lookup(new_entry, CacheStatus.MISS)

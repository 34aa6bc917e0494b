"""Thread-safe TTL cache with single-flight loading per key."""

import time
from collections.abc import Callable
from dataclasses import dataclass
from threading import Event, Lock
from typing import Generic, TypeVar


V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


@dataclass
class _Inflight:
    done: Event
    generation: int = 0
    value: object = None
    error: BaseException | None = None


@dataclass(frozen=True)
class CacheStats:
    """Counters for cache behaviour."""

    hits: int
    misses: int
    loads: int
    coalesced: int
    evictions: int
    size: int

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "loads": self.loads,
            "coalesced": self.coalesced,
            "evictions": self.evictions,
            "size": self.size,
        }


class SingleFlightCache(Generic[V]):
    """In-memory TTL cache that runs at most one loader per key at a time.

    Concurrent callers asking for the same missing key wait for the first
    caller's load instead of starting their own. The loader returns the
    value plus an optional TTL override; a TTL of zero or less hands the
    value to every waiter without storing it.

    The clock is injectable so tests can advance time deterministically.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_entries: int | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Default entry lifetime.
            clock: Monotonic clock returning seconds.
            max_entries: Optional size bound; the entry closest to expiry
                is evicted first.
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._max_entries = max_entries
        self._lock = Lock()
        self._entries: dict[str, _Entry[V]] = {}
        self._inflight: dict[str, _Inflight] = {}
        # Bumped by invalidate; a load started under an older value is not stored
        self._generations: dict[str, int] = {}
        self._hits = 0
        self._misses = 0
        self._loads = 0
        self._coalesced = 0
        self._evictions = 0

    @property
    def ttl_seconds(self) -> float:
        """Default entry lifetime."""
        return self._ttl

    def get(self, key: str) -> V | None:
        """Return a live cached value without loading."""
        with self._lock:
            entry = self._live_entry(key)
            return entry.value if entry else None

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], tuple[V, float | None]],
    ) -> V:
        """Return the cached value for key, loading it once if missing.

        Args:
            key: Cache key.
            loader: Callable returning (value, ttl_override). None keeps the
                default TTL.

        Returns:
            The cached or freshly loaded value.

        Raises:
            Exception: Whatever the loader raised, re-raised in the leader
                and in every waiter of that load.
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                self._hits += 1
                return entry.value

            inflight = self._inflight.get(key)
            if inflight is None:
                self._misses += 1
                self._loads += 1
                inflight = _Inflight(
                    done=Event(), generation=self._generations.get(key, 0)
                )
                self._inflight[key] = inflight
                leader = True
            else:
                self._coalesced += 1
                leader = False

        if leader:
            return self._load(key, loader, inflight)

        inflight.done.wait()
        if inflight.error is not None:
            raise inflight.error
        return inflight.value  # type: ignore[return-value]

    def _load(
        self,
        key: str,
        loader: Callable[[], tuple[V, float | None]],
        inflight: _Inflight,
    ) -> V:
        try:
            value, ttl_override = loader()
        except BaseException as e:
            with self._lock:
                inflight.error = e
                self._release(key, inflight)
            inflight.done.set()
            raise

        ttl = self._ttl if ttl_override is None else ttl_override
        with self._lock:
            current = inflight.generation == self._generations.get(key, 0)
            if ttl > 0 and current:
                self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)
                self._enforce_size()
            # Waiters read the result even when it was not stored.
            inflight.value = value
            self._release(key, inflight)
        inflight.done.set()
        return value

    def invalidate(self, key: str) -> None:
        """Drop one key.

        A load already running for the key still answers its own callers
        but does not store its result, and later callers start a new load.
        """
        with self._lock:
            self._entries.pop(key, None)
            self._generations[key] = self._generations.get(key, 0) + 1
            self._inflight.pop(key, None)

    def clear(self) -> None:
        """Drop every entry and detach running loads."""
        with self._lock:
            self._entries.clear()
            for key in self._inflight:
                self._generations[key] = self._generations.get(key, 0) + 1
            self._inflight.clear()

    def purge_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.expires_at <= now]
            for key in expired:
                del self._entries[key]
            self._evictions += len(expired)
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        """Get a snapshot of cache counters."""
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                loads=self._loads,
                coalesced=self._coalesced,
                evictions=self._evictions,
                size=len(self._entries),
            )

    def _live_entry(self, key: str) -> _Entry[V] | None:
        # Caller holds the lock.
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            self._evictions += 1
            return None
        return entry

    def _release(self, key: str, inflight: _Inflight) -> None:
        # Caller holds the lock. An invalidated load may have been replaced.
        if self._inflight.get(key) is inflight:
            del self._inflight[key]

    def _enforce_size(self) -> None:
        # Caller holds the lock.
        if self._max_entries is None:
            return
        while len(self._entries) > self._max_entries:
            oldest = min(self._entries, key=lambda k: self._entries[k].expires_at)
            del self._entries[oldest]
            self._evictions += 1

"""
In-memory snapshot cache.

Entries live in an OrderedDict kept in recency order (most recently touched
last), so LRU eviction pops from the front. Expiry is lazy: an entry is
dropped when a lookup finds it past its deadline, or by cleanup_expired().

remember(key, ttl, producer) is the only path the snapshot service uses. It
is single-flight: while one caller runs the producer for a key, every other
caller for that key blocks and shares the outcome, value or exception.
Failures are never stored.
"""

import fnmatch
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


def build_cache_key(namespace: str, **parts: Any) -> str:
    """
    Build a deterministic cache key from a namespace and keyword parts.

    Parts are sorted by name so argument order never changes the key:
        build_cache_key("headhunter:dashboard", workspace=3, lookbackDays=30)
        -> "headhunter:dashboard:lookbackDays=30:workspace=3"
    """
    segments = [f"{name}={parts[name]}" for name in sorted(parts)]
    return ":".join([namespace, *segments])


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    waits: int = 0
    evictions: int = 0
    size: int = 0
    in_flight: int = 0
    hit_rate: float = 0.0
    oldest_entry_age: float | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class _Entry:
    value: Any
    expires_at: float
    touched_at: float


class _Flight:
    """One producer run; followers wait on `done`."""

    __slots__ = ("done", "value", "error")

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: Any = None
        self.error: BaseException | None = None

    def outcome(self) -> Any:
        self.done.wait()
        if self.error is not None:
            raise self.error
        return self.value


class CacheManager:
    """Thread-safe TTL + LRU cache with glob invalidation and single-flight remember()."""

    def __init__(
        self,
        max_size: int = 10000,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            max_size: Entries kept before the least recently used is evicted.
            default_ttl: Seconds an entry lives when set() gets no TTL.
            clock: Monotonic seconds source; tests pass a fake one.
        """
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._flights: dict[str, _Flight] = {}
        self._lock = threading.RLock()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock
        self._stats = CacheStats()

    # ------------------------------------------------------------------
    # Internals (caller holds the lock)
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        now = self._clock()
        if now >= entry.expires_at:
            del self._entries[key]
            return _MISSING
        entry.touched_at = now
        self._entries.move_to_end(key)
        return entry.value

    def _store(self, key: str, value: Any, ttl_seconds: float | None) -> None:
        ttl = self._default_ttl if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self._entries[key] = _Entry(value, now + ttl, now)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            self._stats.evictions += 1
            logger.debug("Evicted LRU key: %s", evicted)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        """Live value for key, or None when absent or expired."""
        with self._lock:
            value = self._lookup(key)
            if value is _MISSING:
                self._stats.misses += 1
                return None
            self._stats.hits += 1
            return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        with self._lock:
            self._store(key, value, ttl_seconds)

    def remember(self, key: str, ttl_seconds: float | None, producer: Callable[[], T]) -> T:
        """
        Cached value for key, running producer on a miss.

        The first caller on a miss leads: it runs producer outside the lock
        and stores the result. Callers arriving meanwhile follow: they block
        until the leader finishes and get its value, or its exception
        re-raised. Nothing is stored on failure, so the next call retries.
        """
        with self._lock:
            value = self._lookup(key)
            if value is not _MISSING:
                self._stats.hits += 1
                logger.debug("Cache hit for %s", key)
                return value

            flight = self._flights.get(key)
            if flight is not None:
                self._stats.waits += 1
                follower = True
            else:
                flight = self._flights[key] = _Flight()
                self._stats.misses += 1
                follower = False

        if follower:
            logger.debug("Waiting on in-flight computation for %s", key)
            return flight.outcome()

        logger.debug("Cache miss for %s", key)
        try:
            flight.value = producer()
        except BaseException as exc:
            flight.error = exc
            logger.warning("Producer for %s failed, nothing cached: %s", key, exc)
            raise
        finally:
            with self._lock:
                if flight.error is None:
                    self._store(key, flight.value, ttl_seconds)
                del self._flights[key]
            flight.done.set()
        return flight.value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> int:
        """
        Drop every key matching a glob pattern; returns how many went.

            "headhunter:dashboard:*"             every dashboard snapshot
            "headhunter:dashboard:*:workspace=3" one workspace, any lookback
        """
        with self._lock:
            doomed = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d keys matching %s", len(doomed), pattern)
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        """Remove every expired entry now; returns the count removed."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            lookups = self._stats.hits + self._stats.misses
            oldest = None
            if self._entries:
                # front of the OrderedDict is the least recently touched
                first = next(iter(self._entries.values()))
                oldest = self._clock() - first.touched_at
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                waits=self._stats.waits,
                evictions=self._stats.evictions,
                size=len(self._entries),
                in_flight=len(self._flights),
                hit_rate=self._stats.hits / lookups if lookups else 0.0,
                oldest_entry_age=oldest,
            )

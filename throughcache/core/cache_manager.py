"""Cache Manager: read-through / write-through cache in front of a BackingSource.

Composes an EntryStore, an EvictionPolicy and a BackingSource. All in-memory
bookkeeping (store, policy, in-flight markers) is mutated under a single
asyncio.Lock; backing source calls are always made with that lock released.

Concurrent misses on the same key are coalesced into one fetch (single-flight).
Writes and deletes of the same key are serialized with a per-key lock, and a
write or invalidation detaches any fetch already in flight for that key so the
fetch cannot commit a value older than the write.

Values are deep-copied on the way in and on the way out, so callers that mutate
what they wrote or read cannot change what the cache holds.
"""

import asyncio
import contextlib
import copy
import dataclasses
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

# Domain Layer Imports
from throughcache.domain.events.cache_events import (
    BackingFailure, CacheHit, CacheMiss, DomainEvent, EntryEvicted,
    EntryExpired, EntryInvalidated, EntryLoaded, EntryWritten, FetchCoalesced,
)
from throughcache.domain.exceptions import CapacityError, ConfigurationError, NotFoundError, StoreError
from throughcache.domain.interfaces.backing_source import BackingSource
from throughcache.domain.interfaces.eviction_policy import EvictionPolicy
from throughcache.domain.models.cache import CacheEntry
from throughcache.domain.models.common import CacheKey, CacheManagerStats, CacheValue

# Infrastructure Layer Imports
from throughcache.infrastructure.cache.entry_store import EntryStore
from throughcache.infrastructure.cache.eviction import create_eviction_policy
from throughcache.infrastructure.monitoring.stats_recorder import CacheStatsRecorder

logger = logging.getLogger(__name__)

EventListener = Callable[[DomainEvent], None]


class _InFlightFetch:
    """Marker for a fetch in progress. ``detached`` fetches must not commit."""

    __slots__ = ("task", "detached")

    def __init__(self):
        self.task: Optional["asyncio.Task[Any]"] = None
        self.detached = False


class _KeyLockRegistry:
    """Hands out one asyncio.Lock per key and forgets it once unused."""

    def __init__(self):
        self._slots: Dict[CacheKey, List[Any]] = {}

    @contextlib.asynccontextmanager
    async def hold(self, key: CacheKey):
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = [asyncio.Lock(), 0]
        slot[1] += 1
        try:
            async with slot[0]:
                yield
        finally:
            slot[1] -= 1
            if slot[1] == 0:
                del self._slots[key]

    def __len__(self) -> int:
        return len(self._slots)


def _consume_task_result(task: "asyncio.Task[Any]") -> None:
    # Keeps asyncio from warning when every waiter was cancelled
    if not task.cancelled():
        task.exception()


class CacheManager:
    """Bounded read-through / write-through cache."""

    def __init__(
        self,
        source: BackingSource,
        capacity: int,
        eviction_policy: Union[str, EvictionPolicy] = "lru",
        ttl: Optional[float] = None,
        listeners: Optional[Iterable[EventListener]] = None,
        clock: Callable[[], float] = time.monotonic,
        store: Optional[EntryStore] = None,
    ):
        """Initializes the cache manager.

        Args:
            source: The system of record behind the cache.
            capacity: Maximum number of entries held in memory (positive).
            eviction_policy: Policy instance or name ('lru', 'lfu').
            ttl: Optional age in seconds after which an entry reads as a miss.
            listeners: Callables receiving every domain event.
            clock: Monotonic time source used for timestamps and TTL.
            store: Entry store to use (a fresh one by default).

        Raises:
            CapacityError: If capacity is not a positive integer.
            ConfigurationError: If ttl or the policy name is invalid.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise CapacityError(f"Cache capacity must be a positive integer, got {capacity!r}")
        if ttl is not None and (isinstance(ttl, bool) or not isinstance(ttl, (int, float)) or ttl <= 0):
            raise ConfigurationError(f"TTL must be a positive number of seconds, got {ttl!r}")

        self._source = source
        self._capacity = capacity
        self._policy = (
            eviction_policy if isinstance(eviction_policy, EvictionPolicy)
            else create_eviction_policy(eviction_policy)
        )
        self._ttl = ttl
        self._clock = clock
        self._store = store if store is not None else EntryStore()

        self._lock = asyncio.Lock()
        self._inflight: Dict[CacheKey, _InFlightFetch] = {}
        self._key_locks = _KeyLockRegistry()

        self._stats = CacheStatsRecorder()
        self._listeners: List[EventListener] = [self._stats]
        self._listeners.extend(listeners or [])

        logger.info(
            f"CacheManager initialized: capacity={capacity}, policy={self._policy.name}, "
            f"ttl={ttl if ttl is not None else 'none'}, source={source.__class__.__name__}"
        )

    # --- Properties ---

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def ttl(self) -> Optional[float]:
        return self._ttl

    @property
    def policy(self) -> EvictionPolicy:
        return self._policy

    @property
    def size(self) -> int:
        return self._store.size()

    def keys(self) -> Set[CacheKey]:
        return self._store.keys()

    def add_listener(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    # --- Public API ---

    async def read(self, key: CacheKey) -> CacheValue:
        """Returns the value for ``key``, loading it from the source on a miss.

        Raises:
            NotFoundError: If the backing source does not know the key.
            StoreError: If the backing source fetch failed.
        """
        async with self._lock:
            entry = self._lookup_locked(key)
            if entry is not None:
                logger.debug(f"Cache hit for key: {key!r}")
                self._emit(CacheHit(key=key))
                return copy.deepcopy(entry.value)

            flight = self._inflight.get(key)
            if flight is None:
                logger.debug(f"Cache miss for key: {key!r}. Fetching from backing source.")
                flight = _InFlightFetch()
                flight.task = asyncio.get_running_loop().create_task(self._load(key, flight))
                flight.task.add_done_callback(_consume_task_result)
                self._inflight[key] = flight
                self._emit(CacheMiss(key=key))
            else:
                logger.debug(f"Joining in-flight fetch for key: {key!r}")
                self._emit(FetchCoalesced(key=key))

        # Cancelling this caller must not cancel the fetch other callers share
        value = await asyncio.shield(flight.task)
        return copy.deepcopy(value)

    async def write(self, key: CacheKey, value: CacheValue) -> None:
        """Persists ``value`` and, only if that succeeds, caches it.

        Raises:
            StoreError: If persisting failed. The cached entry is unchanged.
        """
        async with self._key_locks.hold(key):
            await self._call_source("persist", key, self._source.persist(key, value))
            async with self._lock:
                self._detach_flight_locked(key)
                self._insert_locked(key, value)
            logger.debug(f"Write-through committed for key: {key!r}")
            self._emit(EntryWritten(key=key))

    async def delete(self, key: CacheKey) -> None:
        """Erases ``key`` from the backing source, then drops it from the cache.

        Deleting an absent key is not an error.

        Raises:
            StoreError: If erasing failed. The cached entry is unchanged.
        """
        async with self._key_locks.hold(key):
            try:
                await self._call_source("erase", key, self._source.erase(key))
            except NotFoundError:
                logger.debug(f"Backing source had no key {key!r} to erase.")
            await self.invalidate(key)

    async def invalidate(self, key: CacheKey) -> bool:
        """Drops ``key`` from the cache only. Idempotent.

        Returns:
            True if an entry was removed.
        """
        async with self._lock:
            self._detach_flight_locked(key)
            removed = self._remove_locked(key)
        if removed:
            logger.debug(f"Invalidated cache entry for key: {key!r}")
            self._emit(EntryInvalidated(key=key))
        return removed

    async def clear(self) -> int:
        """Drops every cached entry. Returns the number removed."""
        async with self._lock:
            for key in list(self._inflight):
                self._detach_flight_locked(key)
            keys = self._store.keys()
            self._store.clear()
            self._policy.clear()
        for key in keys:
            self._emit(EntryInvalidated(key=key))
        logger.info(f"Cleared {len(keys)} cache entries.")
        return len(keys)

    async def purge_expired(self) -> int:
        """Removes every entry older than the TTL. Returns the number removed."""
        if self._ttl is None:
            return 0
        async with self._lock:
            now = self._clock()
            expired = [entry for entry in self._store if entry.is_expired(now, self._ttl)]
            for entry in expired:
                self._expire_locked(entry, now)
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries.")
        return len(expired)

    def contains(self, key: CacheKey) -> bool:
        """Checks for a valid, unexpired entry without counting an access."""
        entry = self._store.get(key)
        if entry is None or not entry.is_valid:
            return False
        return not entry.is_expired(self._clock(), self._ttl)

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        """Returns a snapshot of the live entry for ``key`` (or None) without bookkeeping."""
        if not self.contains(key):
            return None
        entry = self._store.get(key)
        return dataclasses.replace(entry, value=copy.deepcopy(entry.value))

    def stats(self) -> CacheManagerStats:
        snapshot = self._stats.snapshot()
        return CacheManagerStats(size=self._store.size(), capacity=self._capacity, **snapshot)

    # --- Internals (callers hold self._lock) ---

    def _lookup_locked(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._store.get(key)
        if entry is None or not entry.is_valid:
            return None
        now = self._clock()
        if entry.is_expired(now, self._ttl):
            self._expire_locked(entry, now)
            return None
        entry.touch(now)
        self._policy.record_access(key)
        return entry

    def _insert_locked(self, key: CacheKey, value: CacheValue) -> None:
        if key not in self._store:
            while self._store.size() >= self._capacity:
                self._evict_one_locked()
        self._store.put(key, CacheEntry.create(key, copy.deepcopy(value), self._clock()))
        self._policy.record_insert(key)

    def _evict_one_locked(self) -> None:
        victim = self._policy.select_victim()
        if victim is None:
            raise CapacityError(
                f"No eviction candidate available (size={self._store.size()}, capacity={self._capacity})"
            )
        self._store.remove(victim)
        self._policy.remove(victim)
        logger.debug(f"Evicted key {victim!r} using {self._policy.name} policy.")
        self._emit(EntryEvicted(key=victim, policy=self._policy.name))

    def _expire_locked(self, entry: CacheEntry, now: float) -> None:
        self._store.remove(entry.key)
        self._policy.remove(entry.key)
        age = now - entry.inserted_at
        logger.debug(f"Entry for key {entry.key!r} expired after {age:.2f}s.")
        self._emit(EntryExpired(key=entry.key, age_seconds=age))

    def _remove_locked(self, key: CacheKey) -> bool:
        removed = self._store.remove(key)
        self._policy.remove(key)
        return removed

    def _detach_flight_locked(self, key: CacheKey) -> None:
        flight = self._inflight.pop(key, None)
        if flight is not None:
            flight.detached = True

    # --- Backing source interaction (lock NOT held) ---

    async def _load(self, key: CacheKey, flight: _InFlightFetch) -> CacheValue:
        started = time.perf_counter()
        try:
            value = await self._call_source("fetch", key, self._source.fetch(key))
        except BaseException:
            # No await between the check and the pop, so this is atomic on the loop
            if self._inflight.get(key) is flight:
                del self._inflight[key]
            raise

        async with self._lock:
            if self._inflight.get(key) is flight:
                del self._inflight[key]
            if flight.detached:
                logger.debug(f"Discarding fetched value for key {key!r}: superseded while in flight.")
                return value
            self._insert_locked(key, value)

        latency_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"Loaded key {key!r} from backing source in {latency_ms:.1f}ms.")
        self._emit(EntryLoaded(key=key, latency_ms=latency_ms))
        return value

    async def _call_source(self, operation: str, key: CacheKey, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except NotFoundError:
            raise
        except StoreError as e:
            logger.warning(f"Backing source {operation} failed for key {key!r}: {e}")
            self._emit(BackingFailure(key=key, operation=operation, error_message=str(e)))
            raise
        except Exception as e:
            logger.error(f"Unexpected error during backing source {operation} for key {key!r}: {e}", exc_info=True)
            self._emit(BackingFailure(key=key, operation=operation, error_message=str(e)))
            raise StoreError(key, operation, e) from e

    def _emit(self, event: DomainEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Cache event listener {listener!r} failed on {type(event).__name__}: {e}", exc_info=True)

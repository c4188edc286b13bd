"""Counts cache domain events into hit/miss/eviction statistics."""

import logging
from collections import Counter

from throughcache.domain.events.cache_events import (
    BackingFailure, CacheHit, CacheMiss, DomainEvent, EntryEvicted,
    EntryExpired, EntryInvalidated, EntryLoaded, EntryWritten, FetchCoalesced,
)
from throughcache.domain.models.common import CacheStats

logger = logging.getLogger(__name__)

_COUNTER_FOR_EVENT = {
    CacheHit: "hits",
    CacheMiss: "misses",
    FetchCoalesced: "coalesced",
    EntryLoaded: "loads",
    EntryWritten: "writes",
    EntryEvicted: "evictions",
    EntryExpired: "expirations",
    EntryInvalidated: "invalidations",
    BackingFailure: "failures",
}

class CacheStatsRecorder:
    """Event listener that keeps running counters.

    Instances are callable so they can be registered directly as a cache
    manager listener.
    """

    def __init__(self):
        self._counts: Counter = Counter()

    def __call__(self, event: DomainEvent) -> None:
        counter_name = _COUNTER_FOR_EVENT.get(type(event))
        if counter_name is None:
            logger.debug(f"Ignoring unknown event type: {type(event).__name__}")
            return
        self._counts[counter_name] += 1

    def snapshot(self) -> CacheStats:
        """Returns a copy of the counters plus the derived hit ratio.

        Coalesced reads count as misses that did not reach the backing source,
        so they are part of the ratio's denominator.
        """
        hits = self._counts["hits"]
        lookups = hits + self._counts["misses"] + self._counts["coalesced"]
        return CacheStats(
            hits=hits,
            misses=self._counts["misses"],
            coalesced=self._counts["coalesced"],
            loads=self._counts["loads"],
            writes=self._counts["writes"],
            evictions=self._counts["evictions"],
            expirations=self._counts["expirations"],
            invalidations=self._counts["invalidations"],
            failures=self._counts["failures"],
            hit_ratio=(hits / lookups) if lookups else 0.0,
        )

    def reset(self) -> None:
        self._counts.clear()

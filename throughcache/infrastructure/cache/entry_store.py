"""In-memory table of cached entries.

The store is a plain mapping: it does not enforce capacity, record access
or lock anything. The cache manager owns those concerns.
"""

import logging
from typing import Dict, Iterator, Optional, Set

from throughcache.domain.models.cache import CacheEntry
from throughcache.domain.models.common import CacheKey

logger = logging.getLogger(__name__)

class EntryStore:
    """Dictionary-backed table of ``CacheEntry`` objects keyed by cache key."""

    def __init__(self):
        self._entries: Dict[CacheKey, CacheEntry] = {}

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Returns the entry for ``key`` without touching its bookkeeping."""
        return self._entries.get(key)

    def put(self, key: CacheKey, entry: CacheEntry) -> None:
        """Inserts or replaces the entry stored under ``key``."""
        self._entries[key] = entry

    def remove(self, key: CacheKey) -> bool:
        """Removes ``key``. Returns True if an entry existed."""
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        entry.invalidate()
        return True

    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> Set[CacheKey]:
        """Returns a snapshot of the stored keys."""
        return set(self._entries)

    def clear(self) -> int:
        """Drops every entry and returns how many were removed."""
        count = len(self._entries)
        for entry in self._entries.values():
            entry.invalidate()
        self._entries.clear()
        return count

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CacheEntry]:
        # Iterate over a copy so callers may remove while scanning
        return iter(list(self._entries.values()))

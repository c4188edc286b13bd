"""Eviction policy implementations (LRU and LFU).

Both policies keep their own metadata keyed by cache key and order events
with a logical clock, so ties are broken by insertion order rather than by
wall-clock resolution.
"""

import itertools
import logging
from collections import OrderedDict
from typing import Dict, Optional, Tuple

from throughcache.domain.exceptions import ConfigurationError
from throughcache.domain.interfaces.eviction_policy import EvictionPolicy
from throughcache.domain.models.common import CacheKey, POLICY_LFU, POLICY_LRU, SUPPORTED_POLICIES

logger = logging.getLogger(__name__)


class LRUPolicy(EvictionPolicy):
    """Least-recently-used victim selection.

    The OrderedDict is kept sorted by last access, oldest first. A fresh
    insert counts as an access, so among keys never read after insertion the
    oldest insert is chosen first.
    """

    name = POLICY_LRU

    def __init__(self):
        self._order: "OrderedDict[CacheKey, None]" = OrderedDict()

    def record_insert(self, key: CacheKey) -> None:
        self._order[key] = None
        self._order.move_to_end(key)

    def record_access(self, key: CacheKey) -> None:
        if key in self._order:
            self._order.move_to_end(key)
        else:
            logger.debug(f"LRU access recorded for untracked key {key!r}; ignoring.")

    def select_victim(self) -> Optional[CacheKey]:
        return next(iter(self._order), None)

    def remove(self, key: CacheKey) -> None:
        self._order.pop(key, None)

    def clear(self) -> None:
        self._order.clear()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, key: object) -> bool:
        return key in self._order


class LFUPolicy(EvictionPolicy):
    """Least-frequently-used victim selection.

    Each key carries ``(access_count, insert_tick)``; the victim is the
    minimum of that tuple, i.e. the fewest reads with the oldest insert
    winning ties. Re-inserting a key (write-through) resets its count.
    """

    name = POLICY_LFU

    def __init__(self):
        self._clock = itertools.count()
        self._meta: Dict[CacheKey, Tuple[int, int]] = {}

    def record_insert(self, key: CacheKey) -> None:
        self._meta[key] = (0, next(self._clock))

    def record_access(self, key: CacheKey) -> None:
        meta = self._meta.get(key)
        if meta is None:
            logger.debug(f"LFU access recorded for untracked key {key!r}; ignoring.")
            return
        count, inserted = meta
        self._meta[key] = (count + 1, inserted)

    def select_victim(self) -> Optional[CacheKey]:
        if not self._meta:
            return None
        return min(self._meta, key=self._meta.__getitem__)

    def access_count(self, key: CacheKey) -> int:
        meta = self._meta.get(key)
        return meta[0] if meta else 0

    def remove(self, key: CacheKey) -> None:
        self._meta.pop(key, None)

    def clear(self) -> None:
        self._meta.clear()

    def __len__(self) -> int:
        return len(self._meta)

    def __contains__(self, key: object) -> bool:
        return key in self._meta


_POLICIES = {
    POLICY_LRU: LRUPolicy,
    POLICY_LFU: LFUPolicy,
}

def create_eviction_policy(name: str) -> EvictionPolicy:
    """Builds an eviction policy from its configured name.

    Args:
        name: 'lru' or 'lfu' (case-insensitive).

    Raises:
        ConfigurationError: If the name is not recognized.
    """
    normalized = str(name).strip().lower()
    policy_cls = _POLICIES.get(normalized)
    if policy_cls is None:
        raise ConfigurationError(
            f"Unknown eviction policy '{name}'. Choose one of: {', '.join(SUPPORTED_POLICIES)}."
        )
    return policy_cls()

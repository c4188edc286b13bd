"""Cache entry model and its lifecycle state."""

import enum
from dataclasses import dataclass
from typing import Optional

from throughcache.domain.models.common import CacheKey, CacheValue


class EntryState(str, enum.Enum):
    """Lifecycle state of a cached entry."""
    VALID = "valid"
    INVALIDATED = "invalidated"


@dataclass
class CacheEntry:
    """A value held in the entry store together with its bookkeeping.

    Timestamps come from the manager's clock (monotonic seconds by default).
    ``inserted_at`` is reset on every write-through so that TTL measures the
    age of the current value, not of the key.
    """
    key: CacheKey
    value: CacheValue
    inserted_at: float
    last_accessed_at: float
    access_count: int = 0
    state: EntryState = EntryState.VALID

    @classmethod
    def create(cls, key: CacheKey, value: CacheValue, now: float) -> "CacheEntry":
        """Builds a fresh VALID entry stamped with ``now``."""
        return cls(key=key, value=value, inserted_at=now, last_accessed_at=now)

    @property
    def is_valid(self) -> bool:
        return self.state is EntryState.VALID

    def touch(self, now: float) -> None:
        """Records a read hit on this entry."""
        self.last_accessed_at = now
        self.access_count += 1

    def invalidate(self) -> None:
        self.state = EntryState.INVALIDATED

    def is_expired(self, now: float, ttl: Optional[float]) -> bool:
        """Checks whether the entry is older than ``ttl`` seconds."""
        if ttl is None:
            return False
        return now - self.inserted_at >= ttl

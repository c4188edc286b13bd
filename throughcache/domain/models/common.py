"""Defines common Value Objects used across the caching layer.

These objects represent simple values or concepts like cache keys,
policy names and statistics snapshots, ensuring consistency and type safety.
"""

from typing import Any, Hashable, NewType, Optional, TypedDict

# === Caching Context ===
CacheKey = Hashable                              # Opaque, hashable identifier (entity id, str, tuple...)
CacheValue = Any                                 # Whatever the backing source returns
PolicyName = NewType("PolicyName", str)          # 'lru' or 'lfu'
RecordId = NewType("RecordId", str)              # Normalized id used by the record service

# Recognized eviction policy names
POLICY_LRU = PolicyName("lru")
POLICY_LFU = PolicyName("lfu")
SUPPORTED_POLICIES = (POLICY_LRU, POLICY_LFU)

# --- Structured Data ---
class CacheStats(TypedDict):
    """Point-in-time counters describing cache behaviour."""
    hits: int
    misses: int
    coalesced: int
    loads: int
    writes: int
    evictions: int
    expirations: int
    invalidations: int
    failures: int
    hit_ratio: float

class CacheManagerStats(CacheStats):
    """Statistics plus occupancy as reported by the cache manager."""
    size: int
    capacity: int

class RetryPolicy(TypedDict):
    """Value Object representing retry backoff configuration."""
    max_retries: int
    initial_backoff_s: float
    backoff_factor: float

class LoggingSettings(TypedDict):
    level: str
    format: str
    file: Optional[str]

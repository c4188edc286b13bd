"""Domain Events emitted by the cache manager.

Listeners registered on the manager receive these as plain objects; the
statistics recorder is the built-in consumer.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Read path ---

@dataclass
class CacheHit(DomainEvent):
    """A read was served from the entry store."""
    key: Any
    timestamp: float = field(default_factory=time.time)

@dataclass
class CacheMiss(DomainEvent):
    """A read had to go to the backing source (absent or expired entry)."""
    key: Any
    timestamp: float = field(default_factory=time.time)

@dataclass
class FetchCoalesced(DomainEvent):
    """A read joined a fetch already in flight for the same key."""
    key: Any
    timestamp: float = field(default_factory=time.time)

@dataclass
class EntryLoaded(DomainEvent):
    """A fetched value was committed to the entry store."""
    key: Any
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

# --- Write / removal path ---

@dataclass
class EntryWritten(DomainEvent):
    """A write-through persisted a value and updated the entry store."""
    key: Any
    timestamp: float = field(default_factory=time.time)

@dataclass
class EntryEvicted(DomainEvent):
    """An entry was removed to make room for another key."""
    key: Any
    policy: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class EntryExpired(DomainEvent):
    """An entry outlived the configured TTL."""
    key: Any
    age_seconds: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class EntryInvalidated(DomainEvent):
    """An entry was explicitly removed (invalidate, delete or clear)."""
    key: Any
    timestamp: float = field(default_factory=time.time)

@dataclass
class BackingFailure(DomainEvent):
    """A backing source call failed with a StoreError."""
    key: Any
    operation: str
    error_message: str
    request_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

"""Interface for eviction policies.

A policy tracks only the keys it is told about and picks the victim when
the entry store is full. It never touches the store itself; the cache
manager keeps both in step under its lock.
"""

import abc
from typing import Optional

from throughcache.domain.models.common import CacheKey

class EvictionPolicy(abc.ABC):
    """Abstract Base Class for victim selection."""

    name: str = "abstract"

    @abc.abstractmethod
    def record_insert(self, key: CacheKey) -> None:
        """Registers a key that was just inserted (or re-inserted).

        Args:
            key: The inserted key.
        """
        pass

    @abc.abstractmethod
    def record_access(self, key: CacheKey) -> None:
        """Registers a read hit on a tracked key.

        Args:
            key: The accessed key.
        """
        pass

    @abc.abstractmethod
    def select_victim(self) -> Optional[CacheKey]:
        """Chooses the key that should be evicted next.

        Returns:
            The victim key, or None if no key is tracked.
        """
        pass

    @abc.abstractmethod
    def remove(self, key: CacheKey) -> None:
        """Stops tracking a key. Removing an unknown key is a no-op.

        Args:
            key: The key to forget.
        """
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Forgets every tracked key."""
        pass

    @abc.abstractmethod
    def __len__(self) -> int:
        pass

    @abc.abstractmethod
    def __contains__(self, key: object) -> bool:
        pass

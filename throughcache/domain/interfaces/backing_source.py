"""Interface for the system of record sitting behind the cache.

Defines the contract the cache manager depends on for loading, persisting
and erasing values. Implementations may wrap a relational database, a
document store, a remote service or a local file.
"""

import abc

from throughcache.domain.models.common import CacheKey, CacheValue

class BackingSource(abc.ABC):
    """Abstract Base Class for backing source operations."""

    @abc.abstractmethod
    async def fetch(self, key: CacheKey) -> CacheValue:
        """Loads the current value for a key asynchronously.

        Args:
            key: The key to load.

        Returns:
            The stored value.

        Raises:
            NotFoundError: If the key does not exist in the source.
            StoreError: If the source could not be queried.
        """
        pass

    @abc.abstractmethod
    async def persist(self, key: CacheKey, value: CacheValue) -> None:
        """Inserts or replaces the value for a key asynchronously.

        Args:
            key: The key to store the value under.
            value: The value to store.

        Raises:
            StoreError: If the value could not be stored.
        """
        pass

    @abc.abstractmethod
    async def erase(self, key: CacheKey) -> None:
        """Removes a key from the source asynchronously.

        Erasing a key that does not exist is not an error.

        Args:
            key: The key to remove.

        Raises:
            StoreError: If the source could not be updated.
        """
        pass

"""Record Service: single-entity CRUD on top of the cache manager.

Each operation is an explicit call against the injected CacheManager:
reads go through `read`, saves through `write` and deletes through `delete`.
"""

import logging
from typing import Any

from throughcache.core.cache_manager import CacheManager
from throughcache.domain.models.common import CacheManagerStats, RecordId

logger = logging.getLogger(__name__)

class RecordService:
    """CRUD use cases for records identified by string ids."""

    def __init__(self, cache: CacheManager):
        self.cache = cache

    @staticmethod
    def normalize_id(record_id: Any) -> RecordId:
        """Turns user input into a record id.

        Raises:
            ValueError: If the id is empty after stripping whitespace.
        """
        normalized = str(record_id).strip() if record_id is not None else ""
        if not normalized:
            raise ValueError("Record id must be a non-empty string.")
        return RecordId(normalized)

    async def get_record(self, record_id: Any) -> Any:
        """Returns the record, loading it into the cache if needed.

        Raises:
            NotFoundError: If no such record exists.
        """
        rid = self.normalize_id(record_id)
        logger.debug(f"Fetching record {rid}")
        return await self.cache.read(rid)

    async def save_record(self, record_id: Any, data: Any) -> Any:
        """Creates or replaces a record and returns the saved data."""
        rid = self.normalize_id(record_id)
        await self.cache.write(rid, data)
        logger.info(f"Saved record {rid}")
        return data

    async def delete_record(self, record_id: Any) -> None:
        """Deletes a record from the store and the cache. Idempotent."""
        rid = self.normalize_id(record_id)
        await self.cache.delete(rid)
        logger.info(f"Deleted record {rid}")

    async def evict_record(self, record_id: Any) -> bool:
        """Drops a record from the cache only; the store keeps it."""
        return await self.cache.invalidate(self.normalize_id(record_id))

    async def clear_cache(self) -> int:
        return await self.cache.clear()

    def cache_stats(self) -> CacheManagerStats:
        return self.cache.stats()

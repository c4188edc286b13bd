"""Dictionary-backed BackingSource.

Useful as a stand-in system of record in tests and demos: it can simulate
latency and failures and counts how often each operation was called.
"""

import asyncio
import copy
import logging
from collections import Counter
from typing import Any, Dict, Optional

from throughcache.domain.exceptions import NotFoundError, StoreError
from throughcache.domain.interfaces.backing_source import BackingSource
from throughcache.domain.models.common import CacheKey, CacheValue

logger = logging.getLogger(__name__)

class InMemoryBackingSource(BackingSource):
    """BackingSource holding its records in a plain dict."""

    def __init__(self, initial: Optional[Dict[CacheKey, Any]] = None, latency: float = 0.0):
        """Initializes the source.

        Args:
            initial: Records to start with (copied).
            latency: Seconds every call sleeps before answering.
        """
        self._records: Dict[CacheKey, Any] = dict(initial or {})
        self.latency = latency
        self.calls: Counter = Counter()
        self._failures: Dict[str, Exception] = {}
        logger.info(f"InMemoryBackingSource initialized with {len(self._records)} records (latency={latency}s).")

    def fail_next(self, operation: str, error: Optional[Exception] = None) -> None:
        """Makes the next call of ``operation`` raise ``error`` (a StoreError by default)."""
        self._failures[operation] = error or StoreError(None, operation, RuntimeError("simulated failure"))

    def snapshot(self) -> Dict[CacheKey, Any]:
        return copy.deepcopy(self._records)

    async def _enter(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.latency:
            await asyncio.sleep(self.latency)
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    async def fetch(self, key: CacheKey) -> CacheValue:
        await self._enter("fetch")
        if key not in self._records:
            raise NotFoundError(key)
        return copy.deepcopy(self._records[key])

    async def persist(self, key: CacheKey, value: CacheValue) -> None:
        await self._enter("persist")
        self._records[key] = copy.deepcopy(value)

    async def erase(self, key: CacheKey) -> None:
        await self._enter("erase")
        self._records.pop(key, None)

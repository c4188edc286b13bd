"""BackingSource wrapper that retries failed calls.

Implements exponential backoff for transient StoreErrors. NotFoundError is
an answer, not a failure, and is never retried.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from throughcache.domain.exceptions import NotFoundError, StoreError
from throughcache.domain.interfaces.backing_source import BackingSource
from throughcache.domain.models.common import CacheKey, CacheValue, RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF_S = 0.1
DEFAULT_BACKOFF_FACTOR = 2.0

class RetryingBackingSource(BackingSource):
    """Decorates another BackingSource with retries and backoff."""

    def __init__(
        self,
        inner: BackingSource,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_S,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initializes the retrying wrapper.

        Args:
            inner: The source whose calls are retried.
            max_retries: Maximum number of retry attempts after the first call.
            initial_backoff_s: Initial delay in seconds for the first retry.
            backoff_factor: Multiplier for the backoff delay (e.g., 2 for exponential).
            sleep: Awaitable sleep function (injectable for tests).
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.inner = inner
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self._sleep = sleep
        logger.info(
            f"RetryingBackingSource initialized around {inner.__class__.__name__}: "
            f"max_retries={max_retries}, initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    @classmethod
    def from_policy(cls, inner: BackingSource, policy: RetryPolicy) -> "RetryingBackingSource":
        return cls(
            inner,
            max_retries=policy['max_retries'],
            initial_backoff_s=policy['initial_backoff_s'],
            backoff_factor=policy['backoff_factor'],
        )

    async def _execute_with_retry(
        self, operation: str, key: CacheKey, func: Callable[..., Awaitable[Any]], *args: Any
    ) -> Any:
        retries = 0
        current_backoff = self.initial_backoff_s

        while True:
            try:
                return await func(*args)
            except NotFoundError:
                raise
            except StoreError as e:
                if retries >= self.max_retries:
                    logger.error(f"Max retries ({self.max_retries}) reached for {operation} on key {key!r}. Last error: {e}")
                    raise
                retries += 1
                logger.warning(
                    f"{operation} failed for key {key!r} on attempt {retries}/{self.max_retries + 1}: {e}. "
                    f"Waiting {current_backoff:.2f}s..."
                )
                await self._sleep(current_backoff)
                current_backoff *= self.backoff_factor

    async def fetch(self, key: CacheKey) -> CacheValue:
        return await self._execute_with_retry("fetch", key, self.inner.fetch, key)

    async def persist(self, key: CacheKey, value: CacheValue) -> None:
        await self._execute_with_retry("persist", key, self.inner.persist, key, value)

    async def erase(self, key: CacheKey) -> None:
        await self._execute_with_retry("erase", key, self.inner.erase, key)

"""Exception hierarchy for the caching layer.

Callers can catch ``CacheError`` to handle every failure raised by the
library, or the specific subclasses to react to a particular kind.
"""

from typing import Any, Optional


class CacheError(Exception):
    """Base class for all caching layer errors."""


class NotFoundError(CacheError):
    """Raised when a key is absent from both the cache and the backing source."""
    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Key not found: {key!r}")


class StoreError(CacheError):
    """Raised when a backing source operation fails.

    The cache state for the key is left as it was before the call.
    """
    def __init__(self, key: Any, operation: str, cause: Optional[BaseException] = None):
        self.key = key
        self.operation = operation
        self.cause = cause
        message = f"Backing source {operation} failed for key {key!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class CapacityError(CacheError):
    """Raised for an unusable capacity or when no eviction victim exists."""


class ConfigurationError(CacheError):
    """Raised when configuration values are missing or invalid."""

"""BackingSource storing every record in one JSON document on disk.

Uses `aiofiles` for async I/O and writes through a temp file followed by
`os.replace`, so a crash never leaves a half-written document behind.
Keys are stored as strings, the only key type JSON objects allow.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

import aiofiles

from throughcache.domain.exceptions import NotFoundError, StoreError
from throughcache.domain.interfaces.backing_source import BackingSource
from throughcache.domain.models.common import CacheKey, CacheValue

logger = logging.getLogger(__name__)

class JsonFileBackingSource(BackingSource):
    """Implementation of BackingSource for a local JSON file."""

    def __init__(self, path: Union[str, Path]):
        """Initializes the adapter. The file is created lazily on first write."""
        self.path = Path(path).expanduser()
        self._lock = asyncio.Lock()
        logger.info(f"JsonFileBackingSource initialized at: {self.path}")

    async def _read_all(self, key: CacheKey, operation: str) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            async with aiofiles.open(self.path, mode='r', encoding='utf-8') as f:
                content = await f.read()
        except OSError as e:
            logger.error(f"Error reading store file {self.path}: {e}")
            raise StoreError(key, operation, e) from e
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error(f"Store file {self.path} is not valid JSON: {e}")
            raise StoreError(key, operation, e) from e
        if not isinstance(data, dict):
            raise StoreError(key, operation, ValueError(f"{self.path} does not contain a JSON object"))
        return data

    async def _write_all(self, key: CacheKey, operation: str, data: Dict[str, Any]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, mode='w', encoding='utf-8') as f:
                await f.write(json.dumps(data, indent=2, sort_keys=True))
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            # TypeError/ValueError: value is not JSON serializable
            logger.error(f"Failed to write store file {self.path}: {e}")
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise StoreError(key, operation, e) from e

    async def fetch(self, key: CacheKey) -> CacheValue:
        async with self._lock:
            data = await self._read_all(key, "fetch")
        if str(key) not in data:
            raise NotFoundError(key)
        return data[str(key)]

    async def persist(self, key: CacheKey, value: CacheValue) -> None:
        async with self._lock:
            data = await self._read_all(key, "persist")
            data[str(key)] = value
            await self._write_all(key, "persist", data)
        logger.debug(f"Persisted key {key!r} to {self.path}")

    async def erase(self, key: CacheKey) -> None:
        async with self._lock:
            data = await self._read_all(key, "erase")
            if str(key) not in data:
                return
            del data[str(key)]
            await self._write_all(key, "erase", data)
        logger.debug(f"Erased key {key!r} from {self.path}")

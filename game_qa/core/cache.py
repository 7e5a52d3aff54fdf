"""Persistent cache backends."""

import json
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from game_qa.core.exceptions import CacheError

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Abstract base class for persistent cache storage."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Retrieve value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        """Store value in cache.

        Args:
            key: Cache key
            value: Value to store (must be JSON serializable)
            ttl: Time to live in seconds
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete value from cache.

        Args:
            key: Cache key
        """
        pass


class FileCacheBackend(CacheBackend):
    """One JSON file per key: ``{"timestamp": ..., "ttl": ..., "value": {...}}``."""

    def __init__(self, cache_dir: str | Path, clock: Callable[[], float] = time.time) -> None:
        self.cache_dir = Path(cache_dir)
        self._clock = clock

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CacheError(f"Unreadable cache entry {path.name}: {e}", context={"key": key})

        if self._clock() - entry.get("timestamp", 0) >= entry.get("ttl", 0):
            logger.debug(f"Cache entry {key} expired")
            await self.delete(key)
            return None
        return entry.get("value")

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        entry = {"timestamp": self._clock(), "ttl": ttl, "value": value}
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._path(key).write_text(json.dumps(entry, indent=2), encoding="utf-8")
        except OSError as e:
            raise CacheError(f"Failed to write cache entry {key}: {e}", context={"key": key})

    async def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.debug(f"Failed to delete cache entry {key}: {e}")

"""Result cache for external evaluations."""

import hashlib
import json
import logging
from collections.abc import Sequence
from typing import Any, Optional

from cachetools import TTLCache

from game_qa.core.cache import CacheBackend
from game_qa.core.models import ActionResult, ExternalScore
from game_qa.core.steps import ActionStep

logger = logging.getLogger(__name__)

DEFAULT_TTL = 86400  # 24 hours


def _digest(payload: Any) -> str:
    if not isinstance(payload, str):
        payload = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(payload.encode()).hexdigest()[:16]


def generate_cache_key(
    url: str,
    steps: Sequence[ActionStep],
    metadata: dict[str, Any] | None,
    results: Sequence[ActionResult],
) -> str:
    """``<url16>-<config16>-<results16>``.

    The config part covers the step sequence and run metadata; the results
    part covers only the ordered ``(success, index)`` pairs so timing noise
    does not bust the cache.
    """
    config_payload = {
        "sequence": [step.model_dump(mode="json", exclude_none=True) for step in steps],
        "metadata": metadata or {},
    }
    results_payload = [[r.success, r.index] for r in results]
    return f"{_digest(url)}-{_digest(config_payload)}-{_digest(results_payload)}"


class EvaluationCache:
    """In-memory L1 cache in front of an optional persistent backend.

    Stores the raw external result, never the blended score. Backend errors
    are logged and ignored.
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        ttl: int = DEFAULT_TTL,
        maxsize: int = 256,
    ) -> None:
        self.backend = backend
        self.ttl = ttl
        self._memory_cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> ExternalScore | None:
        cached = self._memory_cache.get(key)
        if cached is None and self.backend is not None:
            try:
                cached = await self.backend.get(key)
            except Exception as e:
                logger.debug(f"Cache read failed for {key}: {e}")
                cached = None
            if cached is not None:
                # Warm L1 cache
                self._memory_cache[key] = cached

        if cached is None:
            self._misses += 1
            return None

        try:
            result = ExternalScore.model_validate(cached)
        except ValueError as e:
            logger.debug(f"Discarding malformed cache entry {key}: {e}")
            self._memory_cache.pop(key, None)
            self._misses += 1
            return None

        self._hits += 1
        logger.debug(f"Cache hit for evaluation: {key}")
        return result

    async def set(self, key: str, value: ExternalScore) -> None:
        payload = value.model_dump(mode="json")
        self._memory_cache[key] = payload
        if self.backend is None:
            return
        try:
            await self.backend.set(key=key, value=payload, ttl=self.ttl)
            logger.debug(f"Cached evaluation: {key}")
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    def get_cache_stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "cache_hits": self._hits,
            "cache_misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
            "l1_size": len(self._memory_cache),
        }

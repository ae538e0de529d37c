"""
Read-through cache for reference data and current-membership lookups.

Entries are keyed by (resource, id), expire after a fixed TTL and are
explicitly invalidated by every use case that mutates the resource.
Derived access state is never stored here.
"""

import logging
import time
from typing import Any, Awaitable, Callable, Hashable, Optional, Tuple

from cachetools import TTLCache

logger = logging.getLogger(__name__)

TIER = "tier"
TIER_LIST = "tier_list"
CURRENT_MEMBERSHIP = "current_membership"

_MISSING = object()


class ReadThroughCache:
    def __init__(self, maxsize: int = 1024, ttl: float = 60, timer: Callable[[], float] = time.monotonic):
        self._cache: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    @staticmethod
    def _key(resource: str, key: Hashable) -> Tuple[str, Hashable]:
        return (resource, key)

    def get(self, resource: str, key: Hashable) -> Optional[Any]:
        return self._cache.get(self._key(resource, key))

    def set(self, resource: str, key: Hashable, value: Any) -> None:
        self._cache[self._key(resource, key)] = value

    async def get_or_load(
        self,
        resource: str,
        key: Hashable,
        loader: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Return the cached value or load, store and return it. None is not cached."""
        cached = self._cache.get(self._key(resource, key), _MISSING)
        if cached is not _MISSING:
            return cached

        value = await loader()
        if value is not None:
            self.set(resource, key, value)
        return value

    def invalidate(self, resource: str, key: Hashable) -> None:
        if self._cache.pop(self._key(resource, key), None) is not None:
            logger.debug(f"Cache invalidated: {resource}:{key}")

    def clear(self) -> None:
        self._cache.clear()

"""Shared store of generated form templates."""

import asyncio
from collections.abc import Awaitable, Callable, Hashable, MutableMapping
from typing import Any

from cachetools import LRUCache

from core.logging_config import get_logger
from core.settings import settings

logger = get_logger(__name__)


class TemplateCache:
    """Get-or-create store for schema-only templates.

    The backing mapping is injectable so the host decides on eviction; by
    default an LRU cache sized by ``HAL_FORMS_TEMPLATE_CACHE_SIZE`` is used.
    Concurrent misses for one key compute the value once, unrelated keys never
    wait on each other.
    """

    def __init__(self, cache: MutableMapping | None = None, maxsize: int | None = None):
        if cache is None:
            cache = LRUCache(maxsize=maxsize or settings.HAL_FORMS_TEMPLATE_CACHE_SIZE)
        self._cache = cache
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    def get(self, key: Hashable) -> Any | None:
        return self._cache.get(key)

    async def get_or_create(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                cached = self._cache.get(key)
                if cached is not None:
                    return cached
                logger.debug_ctx("Template cache miss", key=repr(key))
                # Only completed values are stored; failures and cancellations leave no entry
                value = await factory()
                self._cache[key] = value
                return value
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                del self._locks[key]

    def clear(self):
        self._cache.clear()

    def __contains__(self, key: Hashable) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)


_template_cache: TemplateCache | None = None


def get_template_cache() -> TemplateCache:
    """Process wide template cache shared by request scoped factories."""
    global _template_cache

    if _template_cache is None:
        _template_cache = TemplateCache()

    return _template_cache


def reset_template_cache():
    """Drop the shared cache (useful for testing)."""
    global _template_cache
    _template_cache = None

"""Memory adapter - in-process cache without external dependencies."""

from __future__ import annotations

import copy
import time
from typing import Any

import structlog

log = structlog.get_logger(__name__)


class MemoryCacheAdapter:
    """Async-compatible dict cache with lazy TTL expiry.

    - Expired entries are dropped when read (or swept on write when full).
    - Values are deep-copied on the way in and out, so callers never share
      mutable state with the cache (same semantics as the pickling adapters).
    - Oldest entries are evicted once ``max_entries`` is exceeded.
    - Lost on process restart.

    Args:
        ttl_seconds: Default TTL for `set()` without explicit value.
        max_entries: Upper bound on stored keys.
    """

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 10_000) -> None:
        self.default_ttl = ttl_seconds
        self.max_entries = max_entries
        self._store: dict[str, tuple[Any, float | None]] = {}

        log.info(
            "memory_cache_adapter_init",
            default_ttl=ttl_seconds,
            max_entries=max_entries,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._store.clear()
        log.info("memory_cache_closed")

    # --- CachePort implementation ---
    def _live(self, key: str) -> tuple[Any, float | None] | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            self._store.pop(key, None)
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        entry = self._live(key)
        log.debug("cache_get", key=key, hit=entry is not None)
        if entry is None:
            return None
        return copy.deepcopy(entry[0])

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expire_time = ttl if ttl is not None else self.default_ttl
        expires_at = time.monotonic() + expire_time if expire_time > 0 else None

        # Re-insert so the key moves to the end (newest) of the eviction order.
        self._store.pop(key, None)
        self._store[key] = (copy.deepcopy(value), expires_at)

        if len(self._store) > self.max_entries:
            self._evict()

        log.debug("cache_set", key=key, ttl=expire_time)

    def _evict(self) -> None:
        now = time.monotonic()
        expired = [
            k for k, (_, exp) in self._store.items() if exp is not None and now >= exp
        ]
        for k in expired:
            del self._store[k]

        overflow = len(self._store) - self.max_entries
        if overflow > 0:
            for k in list(self._store)[:overflow]:
                del self._store[k]
        log.debug("memory_cache_evicted", expired=len(expired), overflow=max(0, overflow))

    async def delete(self, key: str) -> bool:
        deleted = self._store.pop(key, None) is not None
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

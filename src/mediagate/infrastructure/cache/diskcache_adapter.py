"""Diskcache adapter - SQLite-based cache without daemon process."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Any, Optional

import structlog
from diskcache import Cache as DiskCache

from mediagate.domain.providers.exceptions import CacheBackendError

log = structlog.get_logger(__name__)


class DiskcacheAdapter:
    """Async wrapper for diskcache.Cache (sync-only library).

    - Uses `asyncio.to_thread` for I/O (no blocking of the event loop).
    - Semaphore prevents too many parallel disk writes (SQLite lock contention).
    - SQLite/OS errors surface as ``CacheBackendError``.

    Args:
        directory: SQLite DB path (default: `./cache`).
        ttl_seconds: Default TTL for `set()` without explicit value.
        max_concurrent: Max parallel disk ops (default: 10, tunable).
    """

    def __init__(
        self,
        directory: str | Path = "./cache",
        ttl_seconds: int = 3600,
        max_concurrent: int = 10,
    ) -> None:
        self.directory = Path(directory)
        self.default_ttl = ttl_seconds
        self._cache: DiskCache | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "diskcache_adapter_init",
            directory=str(self.directory),
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> DiskcacheAdapter:
        """Open SQLite cache."""
        if self._cache is None:
            try:
                self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            except (OSError, sqlite3.Error) as e:
                raise CacheBackendError(f"Cannot open diskcache: {e}") from e
            log.info("diskcache_opened", path=str(self.directory))
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("diskcache_closed", directory=str(self.directory))

    def _require_cache(self) -> DiskCache:
        if self._cache is None:
            raise CacheBackendError(
                "Cache not initialized. Use 'async with cache:' or await cache.__aenter__()"
            )
        return self._cache

    # --- CachePort implementation ---
    async def get(self, key: str) -> Optional[Any]:
        """Read from cache (sync disk I/O -> to_thread)."""
        cache = self._require_cache()

        async with self._semaphore:
            try:
                value = await asyncio.to_thread(cache.get, key, default=None)
            except (OSError, sqlite3.Error) as e:
                log.error("diskcache_get_error", key=key, error=str(e))
                raise CacheBackendError(str(e)) from e
        log.debug("cache_get", key=key, hit=value is not None)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Write to cache with TTL (default: self.default_ttl, 0 = no expiry)."""
        cache = self._require_cache()
        expire_time = ttl if ttl is not None else self.default_ttl

        async with self._semaphore:
            try:
                await asyncio.to_thread(
                    cache.set,
                    key,
                    value,
                    expire=expire_time if expire_time > 0 else None,
                )
            except (OSError, sqlite3.Error) as e:
                log.error("diskcache_set_error", key=key, error=str(e))
                raise CacheBackendError(str(e)) from e
        log.debug("cache_set", key=key, ttl=expire_time)

    async def delete(self, key: str) -> bool:
        """Delete key. True = successfully deleted."""
        cache = self._require_cache()

        async with self._semaphore:
            deleted = await asyncio.to_thread(cache.delete, key)
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        """Check if key exists."""
        cache = self._require_cache()

        async with self._semaphore:
            # diskcache.Cache.__contains__ checks existence + expiry
            return await asyncio.to_thread(cache.__contains__, key)

"""Cache factory - builds the adapter selected by configuration."""

from __future__ import annotations

from typing import Literal

import structlog

from mediagate.domain.ports.cache import CachePort
from mediagate.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from mediagate.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from mediagate.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["memory", "redis", "diskcache"]


def create_cache(
    backend: CacheBackend = "memory",
    *,
    # Redis
    redis_host: str = "localhost",
    redis_port: int = 6379,
    redis_password: str | None = None,
    redis_db: int = 0,
    # Diskcache
    directory: str = "./cache",
    # Shared
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
    max_entries: int = 10_000,
) -> CachePort:
    """Create the cache adapter for ``backend``.

    Args:
        backend: "memory", "redis" or "diskcache".
        redis_host / redis_port / redis_password / redis_db: Redis connection.
        directory: Diskcache path.
        ttl_seconds: Default TTL for all backends.
        max_concurrent: Semaphore limit (diskcache only; Redis uses 50).
        max_entries: Size bound of the in-memory backend.

    Raises:
        ValueError: If `backend` is unknown.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)

    if backend == "memory":
        return MemoryCacheAdapter(ttl_seconds=ttl_seconds, max_entries=max_entries)
    if backend == "redis":
        return RedisAdapter(
            host=redis_host,
            port=redis_port,
            password=redis_password,
            db=redis_db,
            ttl_seconds=ttl_seconds,
            max_concurrent=50,
        )
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'memory', 'redis' or 'diskcache'."
    )

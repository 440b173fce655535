"""Redis adapter - async Redis via redis.asyncio."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from mediagate.domain.providers.exceptions import CacheBackendError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache with connection pooling via semaphore.

    - Uses `redis.asyncio.Redis` (async-native, no to_thread needed).
    - Semaphore limits parallel Redis ops (prevents connection exhaustion).
    - Serialization via pickle (consistent with the Diskcache adapter).
    - Backend errors surface as ``CacheBackendError``.

    Args:
        host / port / password / db: Connection parameters.
        ttl_seconds: Default TTL.
        max_concurrent: Max parallel Redis ops (default: 50, tunable).
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        password: str | None = None,
        db: int = 0,
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
    ) -> None:
        self.host = host
        self.port = port
        self.db = db
        self._password = password
        self.default_ttl = ttl_seconds
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info(
            "redis_adapter_init",
            host=host,
            port=port,
            db=db,
            default_ttl=ttl_seconds,
            max_concurrent=max_concurrent,
        )

    # --- Context Manager ---
    async def __aenter__(self) -> RedisAdapter:
        """Initialize Redis client (connection pool)."""
        if self._client is None:
            self._client = Redis(
                host=self.host,
                port=self.port,
                password=self._password,
                db=self.db,
                decode_responses=False,  # we serialize binary
            )
            try:
                await self._client.ping()
                log.info("redis_connected", host=self.host, port=self.port)
            except RedisError as e:
                log.error(
                    "redis_connection_failed",
                    host=self.host,
                    port=self.port,
                    error=str(e),
                )
                await self.aclose()
                raise CacheBackendError(f"Redis unreachable: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cleanup: close Redis connection pool."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _require_client(self) -> Redis:
        if self._client is None:
            raise CacheBackendError("Redis not initialized. Use 'async with cache:'")
        return self._client

    # --- CachePort implementation ---
    async def get(self, key: str) -> Any | None:
        """GET with pickle deserialization."""
        client = self._require_client()

        async with self._semaphore:
            try:
                raw = await client.get(key)
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                raise CacheBackendError(str(e)) from e

        if raw is None:
            log.debug("cache_miss", key=key)
            return None
        try:
            value = pickle.loads(raw)
        except (pickle.PickleError, EOFError, AttributeError) as e:
            # Unreadable payload counts as a miss.
            log.error("pickle_deserialize_error", key=key, error=str(e))
            return None
        log.debug("cache_hit", key=key)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """SET with pickle serialization + TTL (0 = no expiry)."""
        client = self._require_client()
        expire_time = ttl if ttl is not None else self.default_ttl

        try:
            packed = pickle.dumps(value)
        except (pickle.PickleError, TypeError) as e:
            log.error("pickle_serialize_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                if expire_time > 0:
                    await client.setex(key, expire_time, packed)
                else:
                    await client.set(key, packed)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                raise CacheBackendError(str(e)) from e

        log.debug("cache_set", key=key, ttl=expire_time, size_bytes=len(packed))

    async def delete(self, key: str) -> bool:
        """DEL key."""
        client = self._require_client()

        async with self._semaphore:
            try:
                deleted = await client.delete(key)
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                raise CacheBackendError(str(e)) from e
        log.debug("cache_delete", key=key, deleted=deleted > 0)
        return deleted > 0

    async def exists(self, key: str) -> bool:
        """EXISTS check."""
        client = self._require_client()

        async with self._semaphore:
            try:
                return await client.exists(key) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                raise CacheBackendError(str(e)) from e

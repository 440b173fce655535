"""Key-value store used for resolution results and TMDB metadata."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Async key-value store with per-entry expiry.

    Backends: ``memory`` (per process), ``diskcache`` (SQLite file, survives
    restarts) and ``redis`` (shared between gateway instances). Stored
    values must be picklable. Unreachable backends raise
    ``CacheBackendError``; callers treat that as a miss.

    Open with ``async with`` before the first call and close on shutdown.
    """

    async def get(self, key: str) -> Any:
        """Return the stored value, or None when absent or expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store *value*; ``ttl=None`` uses the backend default, 0 never expires."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def exists(self, key: str) -> bool: ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...

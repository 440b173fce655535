"""Port for cached resolution results."""

from __future__ import annotations

from typing import Protocol

from mediagate.domain.entities import ProviderResult


class SourceCacheRepository(Protocol):
    """Stores merged provider results keyed by request fingerprint."""

    async def get(self, fingerprint: str) -> ProviderResult | None: ...

    async def save(
        self, fingerprint: str, result: ProviderResult, *, ttl: int
    ) -> None: ...

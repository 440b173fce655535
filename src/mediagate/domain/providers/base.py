"""Provider capability contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mediagate.domain.entities import ContentType, MediaRequest, ProviderResult


@runtime_checkable
class ProviderProtocol(Protocol):
    """Protocol every provider implementation satisfies.

    A provider module exports one or more classes matching this protocol;
    discovery instantiates them and registers the instances.

    ``enabled`` is the provider's initial state; the registry owns the
    runtime flag afterwards.
    """

    id: str
    name: str
    enabled: bool
    capabilities: frozenset[ContentType]
    priority: int

    async def get_movie_sources(self, media: MediaRequest) -> ProviderResult: ...

    async def get_tv_sources(self, media: MediaRequest) -> ProviderResult: ...

    async def health_check(self) -> bool: ...

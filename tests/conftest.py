"""Shared test fixtures for Mediagate test suite."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from mediagate.domain.entities import (
    MediaRequest,
    ProviderAttribution,
    ProviderResult,
    Source,
    Subtitle,
)
from mediagate.infrastructure.cache import MemoryCacheAdapter
from mediagate.infrastructure.persistence import CacheSourceRepository
from mediagate.infrastructure.providers import ProviderRegistry
from mediagate.infrastructure.proxy import ProxyService

PUBLIC_BASE_URL = "http://testserver"
PROXY_SECRET = "test-secret"


# ---------------------------------------------------------------------------
# Fake provider
# ---------------------------------------------------------------------------


class FakeProvider:
    """In-memory provider with scripted behaviour.

    - ``result``: returned from both source methods.
    - ``error``: raised instead of returning.
    - ``delay``: seconds to sleep before answering.
    - ``healthy``: value returned by ``health_check``.
    """

    def __init__(
        self,
        provider_id: str,
        *,
        name: str | None = None,
        priority: int = 0,
        enabled: bool = True,
        capabilities: frozenset[str] = frozenset({"movie", "tv"}),
        result: ProviderResult | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        healthy: bool = True,
        base_url: str = "",
    ) -> None:
        self.id = provider_id
        self.name = name or provider_id.title()
        self.priority = priority
        self.enabled = enabled
        self.capabilities = capabilities
        self.base_url = base_url
        self.result = result if result is not None else ProviderResult()
        self.error = error
        self.delay = delay
        self.healthy = healthy
        self.calls: list[MediaRequest] = []
        self.health_calls = 0

    @property
    def attribution(self) -> ProviderAttribution:
        return ProviderAttribution(id=self.id, name=self.name)

    def source(self, url: str, *, quality: str = "1080p", type: str = "hls") -> Source:
        return Source(url=url, type=type, quality=quality, provider=self.attribution)

    def subtitle(self, url: str, *, language: str = "en") -> Subtitle:
        return Subtitle(
            url=url, language=language, format="vtt", provider=self.attribution
        )

    async def _answer(self, media: MediaRequest) -> Any:
        self.calls.append(media)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result

    async def get_movie_sources(self, media: MediaRequest) -> ProviderResult:
        return await self._answer(media)

    async def get_tv_sources(self, media: MediaRequest) -> ProviderResult:
        return await self._answer(media)

    async def health_check(self) -> bool:
        self.health_calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.healthy


@pytest.fixture()
def fake_provider() -> type[FakeProvider]:
    """Factory for scripted providers: ``fake_provider("a", priority=1)``."""
    return FakeProvider


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def movie_request() -> MediaRequest:
    """Movie request for TMDB id 550."""
    return MediaRequest(content_type="movie", external_id="550")


@pytest.fixture()
def episode_request() -> MediaRequest:
    """Episode request for TMDB id 1399, S01E02."""
    return MediaRequest(content_type="tv", external_id="1399", season=1, episode=2)


# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def proxy_service() -> ProxyService:
    """ProxyService with a fixed secret and public base URL."""
    return ProxyService(public_base_url=PUBLIC_BASE_URL, secret=PROXY_SECRET)


@pytest.fixture()
async def memory_cache() -> MemoryCacheAdapter:
    """Fresh in-memory cache."""
    async with MemoryCacheAdapter(ttl_seconds=3600) as cache:
        yield cache


@pytest.fixture()
def source_repo(memory_cache: MemoryCacheAdapter) -> CacheSourceRepository:
    return CacheSourceRepository(memory_cache)


@pytest.fixture()
def registry() -> ProviderRegistry:
    """Empty registry without provider context (discovery calls ``cls()``)."""
    return ProviderRegistry()

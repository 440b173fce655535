"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
import secrets
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from mediagate.application.use_cases import HealthCheckUseCase, SourceResolutionUseCase
from mediagate.domain.providers import ProviderNotFoundError
from mediagate.infrastructure.cache import create_cache
from mediagate.infrastructure.config.schema import AppConfig
from mediagate.infrastructure.persistence import CacheSourceRepository
from mediagate.infrastructure.providers import ProviderContext, ProviderRegistry
from mediagate.infrastructure.proxy import ProxyService
from mediagate.infrastructure.tmdb import HttpxTmdbClient
from mediagate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _resolve_proxy_secret(config: AppConfig) -> str:
    """Configured proxy secret, or a random per-process one."""
    if config.proxy_secret:
        return config.proxy_secret
    log.warning(
        "proxy_secret_ephemeral",
        hint="set MEDIAGATE_PROXY_SECRET so proxy URLs survive restarts",
    )
    return secrets.token_urlsafe(32)


def _apply_provider_overrides(registry: ProviderRegistry, config: AppConfig) -> None:
    """Apply per-provider YAML overrides (enabled, priority)."""
    for provider_id, override in config.provider_overrides.items():
        try:
            if override.enabled is True:
                registry.enable(provider_id)
            elif override.enabled is False:
                registry.disable(provider_id)
            if override.priority is not None:
                registry.set_priority(provider_id, override.priority)
            log.info(
                "provider_override_applied",
                provider=provider_id,
                override=override.model_dump(exclude_none=True),
            )
        except ProviderNotFoundError:
            log.warning("provider_override_unknown", provider=provider_id)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (required by repository and TMDB client)
        2. HTTP Client (shared by providers, proxy endpoint, TMDB)
        3. Proxy Service
        4. Provider Registry + discovery + overrides
        5. Source repository, metadata lookup
        6. Use cases (+ optional health monitor)
    """
    state = cast(AppState, app.state)
    config = state.config

    # ========== 1) Cache (MUST be first - other components depend on it) ==========
    cache = create_cache(
        backend=config.cache.backend,
        redis_host=config.cache.redis_host,
        redis_port=config.cache.redis_port,
        redis_password=config.cache.redis_password,
        redis_db=config.cache.redis_db,
        directory=str(config.cache.directory),
        ttl_seconds=config.cache.sources_ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
        max_entries=config.cache.max_entries,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # ========== 2) HTTP Client (shared resource) ==========
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized")

    # ========== 3) Proxy Service ==========
    state.proxy = ProxyService(
        public_base_url=config.public_base_url or "",
        secret=_resolve_proxy_secret(config),
        token_ttl_seconds=config.proxy_token_ttl_seconds,
    )
    log.info("proxy_initialized", endpoint=state.proxy.endpoint)

    # ========== 4) Provider Registry ==========
    state.registry = ProviderRegistry(
        ProviderContext(
            proxy=state.proxy,
            http_client=state.http_client,
            user_agent=config.http_user_agent,
            health_timeout=config.health_timeout_seconds,
        )
    )
    state.discovery_diagnostics = state.registry.discover_providers(
        config.provider_dir
    )
    _apply_provider_overrides(state.registry, config)
    log.info(
        "providers_ready",
        count=len(state.registry.list_providers()),
        discovery_errors=len(state.discovery_diagnostics),
    )

    # ========== 5) Repository + metadata lookup ==========
    state.source_repo = CacheSourceRepository(cache=state.cache)

    state.metadata = None
    if config.tmdb_api_key:
        state.metadata = HttpxTmdbClient(
            api_key=config.tmdb_api_key,
            http_client=state.http_client,
            cache=state.cache,
            ttl_seconds=config.tmdb_cache_ttl_seconds,
        )
        log.info("tmdb_client_initialized")

    # ========== 6) Use cases ==========
    state.resolve_uc = SourceResolutionUseCase(
        registry=state.registry,
        cache=state.source_repo,
        proxy=state.proxy,
        metadata=state.metadata,
        provider_timeout=config.provider_timeout_seconds,
        sources_ttl=config.cache.sources_ttl_seconds,
        subtitles_ttl=config.cache.subtitles_ttl_seconds,
    )
    state.health_uc = HealthCheckUseCase(
        registry=state.registry,
        timeout=config.health_timeout_seconds,
    )

    state._health_task = None
    if config.health_interval_seconds > 0:
        state._health_task = asyncio.create_task(
            state.health_uc.run_forever(config.health_interval_seconds)
        )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        # ========== Cleanup (reverse order) ==========
        if state._health_task is not None:
            state._health_task.cancel()
            with suppress(asyncio.CancelledError):
                await state._health_task

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")

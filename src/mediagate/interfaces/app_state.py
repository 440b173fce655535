"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from mediagate.infrastructure.config import AppConfig

if TYPE_CHECKING:
    import asyncio

    from mediagate.application.use_cases import (
        HealthCheckUseCase,
        SourceResolutionUseCase,
    )
    from mediagate.domain.entities import Diagnostic
    from mediagate.domain.ports import (
        CachePort,
        MetadataLookupPort,
        SourceCacheRepository,
    )
    from mediagate.infrastructure.providers import ProviderRegistry
    from mediagate.infrastructure.proxy import ProxyService


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    proxy: ProxyService

    # Providers
    registry: ProviderRegistry
    discovery_diagnostics: list[Diagnostic]

    # Domain Ports
    source_repo: SourceCacheRepository
    metadata: MetadataLookupPort | None

    # Application Services
    resolve_uc: SourceResolutionUseCase
    health_uc: HealthCheckUseCase

    # Background health monitor (optional, health.interval_seconds > 0)
    _health_task: asyncio.Task | None

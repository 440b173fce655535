"""Source resolution use case.

Media request -> cache lookup -> (optional metadata enrichment)
-> parallel provider fan-out -> merge -> cache -> SourceResponse.
"""

from __future__ import annotations

import asyncio
import hashlib
import time
from dataclasses import dataclass, replace
from uuid import uuid4

import structlog

from mediagate.domain.entities import (
    Diagnostic,
    DiagnosticCode,
    MediaRequest,
    ProviderResult,
    Source,
    SourceResponse,
    Subtitle,
    quality_rank,
)
from mediagate.domain.ports.metadata import MetadataLookupPort
from mediagate.domain.ports.provider_registry import ProviderRegistryPort
from mediagate.domain.ports.proxy import ProxyUrlPort
from mediagate.domain.ports.source_cache import SourceCacheRepository
from mediagate.domain.providers import (
    CacheBackendError,
    InvalidMediaRequestError,
    ProviderNotFoundError,
    ProviderProtocol,
)

log = structlog.get_logger(__name__)

DEFAULT_PROVIDER_TIMEOUT = 10.0
DEFAULT_SOURCES_TTL = 7_200  # 2 hours
DEFAULT_SUBTITLES_TTL = 86_400  # 24 hours


def validate_request(request: MediaRequest) -> None:
    """Raise ``InvalidMediaRequestError`` for requests that cannot be resolved."""
    if request.content_type not in ("movie", "tv"):
        raise InvalidMediaRequestError(
            "INVALID_CONTENT_TYPE",
            f"Unsupported content type: {request.content_type!r}",
        )
    if not request.external_id or not request.external_id.isdigit():
        raise InvalidMediaRequestError(
            "INVALID_TMDB_ID", "TMDB id must be a positive integer"
        )
    if request.content_type == "tv":
        if request.season is None or request.season < 0:
            raise InvalidMediaRequestError(
                "INVALID_SEASON", "Season must be a non-negative integer"
            )
        if request.episode is None or request.episode < 1:
            raise InvalidMediaRequestError(
                "INVALID_EPISODE", "Episode must be a positive integer"
            )


def fingerprint(request: MediaRequest) -> str:
    """Cache key for a request.

    Title/year/IMDb hints are not part of the key.
    """
    if request.content_type == "tv":
        raw = f"tv:{request.external_id}:{request.season}:{request.episode}"
    else:
        raw = f"movie:{request.external_id}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class _ProviderOutcome:
    provider: ProviderProtocol
    priority: int
    index: int
    result: ProviderResult


class SourceResolutionUseCase:
    """Resolve a media request into a merged, proxied SourceResponse.

    Flow:
        1. Fingerprint the request and check the cache.
        2. Enrich title/year/IMDb id from the metadata lookup (optional).
        3. Call every eligible provider concurrently, each under its own
           timeout. Failures become diagnostics.
        4. Merge sources (priority, quality, registration order),
           concatenate subtitles and diagnostics.
        5. Cache non-empty results.
    """

    def __init__(
        self,
        *,
        registry: ProviderRegistryPort,
        cache: SourceCacheRepository,
        proxy: ProxyUrlPort,
        metadata: MetadataLookupPort | None = None,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
        sources_ttl: int = DEFAULT_SOURCES_TTL,
        subtitles_ttl: int = DEFAULT_SUBTITLES_TTL,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._proxy = proxy
        self._metadata = metadata
        self._provider_timeout = provider_timeout
        self._sources_ttl = sources_ttl
        self._subtitles_ttl = subtitles_ttl

    async def resolve(self, request: MediaRequest) -> SourceResponse:
        validate_request(request)
        response_id = uuid4().hex
        key = fingerprint(request)
        t0 = time.perf_counter()

        diagnostics: list[Diagnostic] = []
        cache_ok = True

        try:
            cached = await self._cache.get(key)
        except CacheBackendError:
            log.warning("source_cache_unavailable", op="get", exc_info=True)
            diagnostics.append(_cache_diagnostic())
            cache_ok = False
            cached = None

        if cached is not None:
            log.info(
                "resolution_cache_hit",
                response_id=response_id,
                content_type=request.content_type,
                tmdb_id=request.external_id,
            )
            return SourceResponse(
                response_id=response_id,
                sources=cached.sources,
                subtitles=cached.subtitles,
                diagnostics=cached.diagnostics,
                cached=True,
            )

        providers = self._registry.get_providers_for(request.content_type)
        if not providers:
            log.warning(
                "resolution_no_providers",
                content_type=request.content_type,
                tmdb_id=request.external_id,
            )
            diagnostics.append(
                Diagnostic(
                    code=DiagnosticCode.NO_PROVIDERS_AVAILABLE,
                    message=f"No enabled providers support {request.content_type}",
                    severity="warn",
                )
            )
            return SourceResponse(
                response_id=response_id, diagnostics=tuple(diagnostics)
            )

        request, metadata_diagnostic = await self._enrich(request)
        if metadata_diagnostic is not None:
            diagnostics.append(metadata_diagnostic)

        log.info(
            "resolution_start",
            response_id=response_id,
            content_type=request.content_type,
            tmdb_id=request.external_id,
            provider_count=len(providers),
        )

        outcomes = await asyncio.gather(
            *(self._call_provider(p, request) for p in providers)
        )
        merged = self._merge(outcomes)

        if not merged.is_empty and cache_ok:
            ttl = self._sources_ttl if merged.sources else self._subtitles_ttl
            try:
                await self._cache.save(key, merged, ttl=ttl)
            except CacheBackendError:
                log.warning("source_cache_unavailable", op="save", exc_info=True)
                diagnostics.append(_cache_diagnostic())

        log.info(
            "resolution_done",
            response_id=response_id,
            sources=len(merged.sources),
            subtitles=len(merged.subtitles),
            diagnostics=len(merged.diagnostics) + len(diagnostics),
            duration_ms=round((time.perf_counter() - t0) * 1000, 1),
        )
        return SourceResponse(
            response_id=response_id,
            sources=merged.sources,
            subtitles=merged.subtitles,
            diagnostics=tuple(diagnostics) + merged.diagnostics,
        )

    # ------------------------------------------------------------------
    # Metadata enrichment
    # ------------------------------------------------------------------

    async def _enrich(
        self, request: MediaRequest
    ) -> tuple[MediaRequest, Diagnostic | None]:
        if self._metadata is None or request.title:
            return request, None

        try:
            meta = await asyncio.wait_for(
                self._metadata.lookup(request.content_type, request.external_id),
                timeout=self._provider_timeout,
            )
        except Exception:  # noqa: BLE001
            log.warning(
                "metadata_lookup_failed",
                tmdb_id=request.external_id,
                exc_info=True,
            )
            meta = None

        if meta is None:
            return request, Diagnostic(
                code=DiagnosticCode.METADATA_UNAVAILABLE,
                message=f"No metadata for TMDB id {request.external_id}",
                severity="info",
                field="title",
            )

        return (
            replace(
                request,
                title=meta.title,
                year=request.year or meta.year,
                imdb_id=request.imdb_id or meta.imdb_id,
            ),
            None,
        )

    # ------------------------------------------------------------------
    # Provider fan-out
    # ------------------------------------------------------------------

    def _rank(self, provider: ProviderProtocol) -> tuple[int, int]:
        """Registry priority and registration slot of *provider*."""
        try:
            descriptor = self._registry.describe(provider.id)
            return descriptor.priority, self._registry.registration_index(provider.id)
        except ProviderNotFoundError:
            # unregistered between snapshot and now
            return provider.priority, 1 << 30

    async def _call_provider(
        self, provider: ProviderProtocol, request: MediaRequest
    ) -> _ProviderOutcome:
        priority, index = self._rank(provider)
        plog = log.bind(
            provider=provider.id,
            content_type=request.content_type,
            tmdb_id=request.external_id,
        )
        method = (
            provider.get_tv_sources
            if request.content_type == "tv"
            else provider.get_movie_sources
        )

        t0 = time.perf_counter()
        try:
            result = await asyncio.wait_for(
                method(request), timeout=self._provider_timeout
            )
        except TimeoutError:
            plog.warning("provider_timeout", timeout=self._provider_timeout)
            result = ProviderResult(
                diagnostics=(
                    Diagnostic(
                        code=DiagnosticCode.PROVIDER_TIMEOUT,
                        message=(
                            f"{provider.name}: timed out after "
                            f"{self._provider_timeout:g}s"
                        ),
                        severity="error",
                    ),
                )
            )
        except Exception as exc:  # noqa: BLE001
            plog.warning("provider_error", exc_info=True)
            result = _error_result(provider, str(exc) or type(exc).__name__)
        else:
            if not isinstance(result, ProviderResult):
                plog.warning("provider_invalid_result", result_type=type(result).__name__)
                result = _error_result(provider, "returned an invalid result")
            else:
                result = self._ensure_proxied(provider, result)
                if result.is_empty and not result.diagnostics:
                    result = ProviderResult(
                        diagnostics=(
                            Diagnostic(
                                code=DiagnosticCode.PROVIDER_EMPTY,
                                message=f"{provider.name}: no sources found",
                                severity="info",
                            ),
                        )
                    )

        plog.debug(
            "provider_done",
            sources=len(result.sources),
            subtitles=len(result.subtitles),
            diagnostics=len(result.diagnostics),
            duration_ms=round((time.perf_counter() - t0) * 1000, 1),
        )
        return _ProviderOutcome(
            provider=provider, priority=priority, index=index, result=result
        )

    def _ensure_proxied(
        self, provider: ProviderProtocol, result: ProviderResult
    ) -> ProviderResult:
        """Wrap any raw URL a provider returned; drop unusable ones."""
        dropped: list[Diagnostic] = []

        sources: list[Source] = []
        for pos, source in enumerate(result.sources):
            url = self._proxied(source.url)
            if url is None:
                dropped.append(_dropped_diagnostic(provider, f"sources[{pos}].url"))
                continue
            sources.append(source if url == source.url else replace(source, url=url))

        subtitles: list[Subtitle] = []
        for pos, subtitle in enumerate(result.subtitles):
            url = self._proxied(subtitle.url)
            if url is None:
                dropped.append(_dropped_diagnostic(provider, f"subtitles[{pos}].url"))
                continue
            subtitles.append(
                subtitle if url == subtitle.url else replace(subtitle, url=url)
            )

        return ProviderResult(
            sources=tuple(sources),
            subtitles=tuple(subtitles),
            diagnostics=tuple(result.diagnostics) + tuple(dropped),
        )

    def _proxied(self, url: str) -> str | None:
        if self._proxy.is_proxy_url(url):
            return url
        try:
            return self._proxy.create_proxy_url(url)
        except ValueError:
            log.warning("provider_url_rejected", url=url)
            return None

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    @staticmethod
    def _merge(outcomes: list[_ProviderOutcome]) -> ProviderResult:
        ordered = sorted(outcomes, key=lambda o: (-o.priority, o.index))

        keyed: list[tuple[tuple[int, int, int, int], Source]] = []
        subtitles: list[Subtitle] = []
        diagnostics: list[Diagnostic] = []
        for outcome in ordered:
            for pos, source in enumerate(outcome.result.sources):
                key = (
                    -outcome.priority,
                    -int(quality_rank(source.quality)),
                    outcome.index,
                    pos,
                )
                keyed.append((key, source))
            subtitles.extend(outcome.result.subtitles)
            diagnostics.extend(outcome.result.diagnostics)

        keyed.sort(key=lambda item: item[0])
        return ProviderResult(
            sources=tuple(source for _, source in keyed),
            subtitles=tuple(subtitles),
            diagnostics=tuple(diagnostics),
        )


def _cache_diagnostic() -> Diagnostic:
    return Diagnostic(
        code=DiagnosticCode.CACHE_UNAVAILABLE,
        message="Cache backend unavailable; results were resolved live",
        severity="warn",
    )


def _error_result(provider: ProviderProtocol, message: str) -> ProviderResult:
    return ProviderResult(
        diagnostics=(
            Diagnostic(
                code=DiagnosticCode.PROVIDER_ERROR,
                message=f"{provider.name}: {message}",
                severity="error",
            ),
        )
    )


def _dropped_diagnostic(provider: ProviderProtocol, field: str) -> Diagnostic:
    return Diagnostic(
        code=DiagnosticCode.PROVIDER_ERROR,
        message=f"{provider.name}: dropped entry with a non-http(s) URL",
        severity="warn",
        field=field,
    )

"""Shared base class for httpx-based provider plugins.

Eliminates boilerplate that every provider would otherwise duplicate:
bound logging, safe fetch/parse, proxy URL creation, result building
and the default health check.

This base class lives in the *infrastructure* layer because it depends
on ``httpx`` and ``structlog``.  The *domain* layer only knows
``ProviderProtocol``; providers that inherit from ``HttpxProviderBase``
structurally satisfy that Protocol.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

import httpx
import structlog

from mediagate.domain.entities import (
    AudioTrack,
    ContentType,
    DiagnosticCode,
    MediaRequest,
    ProviderAttribution,
    ProviderResult,
    QualityTag,
    Severity,
    Source,
    StreamType,
    Subtitle,
    SubtitleFormat,
)
from mediagate.infrastructure.health import HealthProber

from .constants import DEFAULT_CLIENT_TIMEOUT
from .context import ProviderContext
from .helpers import empty_result, infer_quality, infer_type


class HttpxProviderBase:
    """Shared base for httpx-based providers.

    Subclasses **must** set:
    - ``id`` (unique, lowercase)
    - ``name``
    - ``base_url``

    Subclasses **must** override:
    - ``get_movie_sources()`` and/or ``get_tv_sources()`` for every
      content type listed in ``capabilities``

    Subclasses **may** override:
    - ``enabled``, ``priority``, ``capabilities``, ``headers``
    - ``_timeout``
    - ``health_check()``
    """

    # --- Must be set by subclass ---
    id: str = ""
    name: str = ""
    base_url: str = ""

    # --- Overridable defaults ---
    enabled: bool = True
    priority: int = 0
    capabilities: frozenset[ContentType] = frozenset({"movie", "tv"})
    headers: Mapping[str, str] = {}  # noqa: RUF012  # subclass overrides
    _timeout: float = DEFAULT_CLIENT_TIMEOUT

    def __init__(self, context: ProviderContext) -> None:
        self._context = context
        self._proxy = context.proxy
        self._client = context.http_client
        self._log = structlog.get_logger(__name__).bind(provider=self.id or self.name)

    @property
    def attribution(self) -> ProviderAttribution:
        return ProviderAttribution(id=self.id, name=self.name)

    def request_headers(self, **extra: str) -> dict[str, str]:
        """Default request headers (User-Agent + class ``headers`` + *extra*)."""
        return {"User-Agent": self._context.user_agent, **self.headers, **extra}

    def log_for(self, media: MediaRequest) -> structlog.stdlib.BoundLogger:
        """Provider logger with the request's fields bound."""
        log = self._log.bind(
            content_type=media.content_type, tmdb_id=media.external_id
        )
        if media.content_type == "tv":
            log = log.bind(season=media.season, episode=media.episode)
        return log

    # ------------------------------------------------------------------
    # Result builders
    # ------------------------------------------------------------------

    def create_proxy_url(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> str:
        """Wrap *url* so clients fetch it through the proxy endpoint."""
        return self._proxy.create_proxy_url(url, headers)

    def make_source(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        type: StreamType | None = None,
        quality: QualityTag | None = None,
        audio_tracks: Sequence[AudioTrack] = (),
    ) -> Source:
        """Build a proxied ``Source`` for *url*.

        Type and quality are inferred from the URL when not given.
        """
        return Source(
            url=self.create_proxy_url(url, headers),
            type=type or infer_type(url),
            quality=quality or infer_quality(url),
            provider=self.attribution,
            audio_tracks=tuple(audio_tracks),
        )

    def make_subtitle(
        self,
        url: str,
        *,
        language: str,
        label: str = "",
        format: SubtitleFormat | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Subtitle:
        if format is None:
            format = "srt" if url.lower().split("?", 1)[0].endswith(".srt") else "vtt"
        return Subtitle(
            url=self.create_proxy_url(url, headers),
            language=language,
            format=format,
            provider=self.attribution,
            label=label,
        )

    def empty_result(
        self,
        message: str,
        *,
        code: str = DiagnosticCode.PROVIDER_ERROR,
        severity: Severity = "error",
    ) -> ProviderResult:
        return empty_result(self.name, message, code=code, severity=severity)

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    async def _safe_fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        context: str = "",
        **kwargs: object,
    ) -> httpx.Response | None:
        """Fetch *url* with structured error logging.

        Returns ``None`` on failure instead of raising.
        """
        kwargs.setdefault("headers", self.request_headers())
        kwargs.setdefault("timeout", self._timeout)
        try:
            resp = await self._client.request(method, url, **kwargs)  # type: ignore[arg-type]
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException:
            self._log.warning("provider_fetch_timeout", url=url, context=context)
        except httpx.HTTPStatusError as exc:
            self._log.warning(
                "provider_http_error",
                url=url,
                status=exc.response.status_code,
                context=context,
            )
        except httpx.HTTPError as exc:
            self._log.warning(
                "provider_fetch_error",
                url=url,
                error=str(exc),
                context=context,
            )
        return None

    def _safe_parse_json(
        self,
        response: httpx.Response,
        context: str = "",
    ) -> dict | list | None:
        """Parse JSON response with structured error logging."""
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            self._log.warning(
                "provider_invalid_json",
                url=str(response.url),
                context=context,
            )
            return None

    # ------------------------------------------------------------------
    # Capability contract
    # ------------------------------------------------------------------

    async def health_check(self) -> bool:
        """HEAD probe of ``base_url`` (GET ``Range: bytes=0-0`` fallback)."""
        if not self.base_url:
            return False
        prober = HealthProber(
            self._client,
            timeout=self._context.health_timeout,
            headers=self.request_headers(),
        )
        result = await prober.probe(self.base_url)
        return result.ok

    async def get_movie_sources(self, media: MediaRequest) -> ProviderResult:
        """Resolve movie sources. Subclasses supporting movies override this."""
        raise NotImplementedError(
            f"{type(self).__name__}.get_movie_sources() not implemented"
        )

    async def get_tv_sources(self, media: MediaRequest) -> ProviderResult:
        """Resolve episode sources. Subclasses supporting tv override this."""
        raise NotImplementedError(
            f"{type(self).__name__}.get_tv_sources() not implemented"
        )

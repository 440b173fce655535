"""TMDB API client: async httpx implementation with caching."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from mediagate.domain.entities import ContentType
from mediagate.domain.ports.cache import CachePort
from mediagate.domain.ports.metadata import MediaMetadata
from mediagate.domain.providers import CacheBackendError

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"

DEFAULT_METADATA_TTL = 86_400  # 24 hours


class HttpxTmdbClient:
    """Async TMDB client using httpx + CachePort.

    Implements ``MetadataLookupPort`` from domain.ports.metadata.
    Lookups never raise: network, API and cache failures all end in
    ``None`` (or an uncached answer).
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: CachePort,
        ttl_seconds: int = DEFAULT_METADATA_TTL,
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._ttl = ttl_seconds
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(
                url, params={"api_key": self._api_key, **extra}
            )
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None
        return data if isinstance(data, dict) else None

    async def _cache_get(self, key: str) -> dict[str, Any] | None:
        try:
            return await self._cache.get(key)
        except CacheBackendError:
            log.warning("tmdb_cache_unavailable", key=key, exc_info=True)
            return None

    async def _cache_set(self, key: str, value: dict[str, Any]) -> None:
        try:
            await self._cache.set(key, value, ttl=self._ttl)
        except CacheBackendError:
            log.warning("tmdb_cache_unavailable", key=key, exc_info=True)

    @staticmethod
    def _to_metadata(data: dict[str, Any]) -> MediaMetadata | None:
        # Movies use "title"/"release_date", TV shows "name"/"first_air_date"
        title = data.get("title") or data.get("name")
        if not title:
            return None
        date_str = data.get("release_date") or data.get("first_air_date") or ""
        year = int(date_str[:4]) if date_str[:4].isdigit() else None
        imdb_id = data.get("imdb_id") or (data.get("external_ids") or {}).get(
            "imdb_id"
        )
        return MediaMetadata(title=title, year=year, imdb_id=imdb_id or None)

    # ------------------------------------------------------------------
    # Public API (MetadataLookupPort)
    # ------------------------------------------------------------------

    async def lookup(
        self, content_type: ContentType, tmdb_id: str
    ) -> MediaMetadata | None:
        """Title, year and IMDb id for a TMDB id, or None if unknown."""
        endpoint = "tv" if content_type == "tv" else "movie"
        cache_key = f"tmdb:meta:{endpoint}:{tmdb_id}"

        data = await self._cache_get(cache_key)
        if data is None:
            data = await self._get(
                f"/{endpoint}/{tmdb_id}", append_to_response="external_ids"
            )
            if data is None:
                return None
            data = {
                k: data.get(k)
                for k in (
                    "title",
                    "name",
                    "release_date",
                    "first_air_date",
                    "imdb_id",
                    "external_ids",
                )
            }
            await self._cache_set(cache_key, data)

        return self._to_metadata(data)

"""Resolution result repository backed by CachePort (memory/redis/diskcache)."""

from __future__ import annotations

import json
from typing import Any

import structlog

from mediagate.domain.entities import (
    AudioTrack,
    Diagnostic,
    ProviderAttribution,
    ProviderResult,
    Source,
    Subtitle,
)
from mediagate.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

_KEY_PREFIX = "sources:"


def _serialize_result(result: ProviderResult) -> str:
    """Serialize ProviderResult to a JSON string."""
    return json.dumps(
        {
            "sources": [
                {
                    "url": s.url,
                    "type": s.type,
                    "quality": s.quality,
                    "provider": {"id": s.provider.id, "name": s.provider.name},
                    "audio_tracks": [
                        {"language": a.language, "label": a.label}
                        for a in s.audio_tracks
                    ],
                }
                for s in result.sources
            ],
            "subtitles": [
                {
                    "url": s.url,
                    "language": s.language,
                    "format": s.format,
                    "label": s.label,
                    "provider": {"id": s.provider.id, "name": s.provider.name},
                }
                for s in result.subtitles
            ],
            "diagnostics": [
                {
                    "code": d.code,
                    "message": d.message,
                    "severity": d.severity,
                    "field": d.field,
                }
                for d in result.diagnostics
            ],
        }
    )


def _attribution(data: dict[str, Any]) -> ProviderAttribution:
    return ProviderAttribution(id=data["id"], name=data.get("name", data["id"]))


def _deserialize_result(data: str) -> ProviderResult:
    """Deserialize ProviderResult from a JSON string."""
    d = json.loads(data)
    return ProviderResult(
        sources=tuple(
            Source(
                url=s["url"],
                type=s["type"],
                quality=s.get("quality", "unknown"),
                provider=_attribution(s["provider"]),
                audio_tracks=tuple(
                    AudioTrack(language=a["language"], label=a.get("label", ""))
                    for a in s.get("audio_tracks", [])
                ),
            )
            for s in d.get("sources", [])
        ),
        subtitles=tuple(
            Subtitle(
                url=s["url"],
                language=s["language"],
                format=s.get("format", "vtt"),
                label=s.get("label", ""),
                provider=_attribution(s["provider"]),
            )
            for s in d.get("subtitles", [])
        ),
        diagnostics=tuple(
            Diagnostic(
                code=x["code"],
                message=x["message"],
                severity=x.get("severity", "error"),
                field=x.get("field", ""),
            )
            for x in d.get("diagnostics", [])
        ),
    )


class CacheSourceRepository:
    """Stores merged resolution results via CachePort."""

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache

    async def save(self, fingerprint: str, result: ProviderResult, *, ttl: int) -> None:
        """Save result in cache with TTL."""
        key = f"{_KEY_PREFIX}{fingerprint}"
        await self.cache.set(key, _serialize_result(result), ttl=ttl)
        log.debug(
            "source_result_saved",
            fingerprint=fingerprint,
            sources=len(result.sources),
            subtitles=len(result.subtitles),
            ttl=ttl,
        )

    async def get(self, fingerprint: str) -> ProviderResult | None:
        """Load result from cache."""
        key = f"{_KEY_PREFIX}{fingerprint}"
        data = await self.cache.get(key)
        if data is None:
            log.debug("source_result_not_found", fingerprint=fingerprint)
            return None

        try:
            return _deserialize_result(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error(
                "source_result_deserialize_error",
                fingerprint=fingerprint,
                error=str(e),
            )
            return None

"""JSON presenters: domain entities -> camelCase wire format."""

from __future__ import annotations

from typing import Any

from mediagate.domain.entities import (
    Diagnostic,
    ProviderDescriptor,
    Source,
    SourceResponse,
    Subtitle,
)


def _source(source: Source) -> dict[str, Any]:
    return {
        "url": source.url,
        "type": source.type,
        "quality": source.quality,
        "audioTracks": [
            {"language": t.language, "label": t.label} for t in source.audio_tracks
        ],
        "provider": {"id": source.provider.id, "name": source.provider.name},
    }


def _subtitle(subtitle: Subtitle) -> dict[str, Any]:
    return {
        "url": subtitle.url,
        "label": subtitle.label,
        "format": subtitle.format,
        "language": subtitle.language,
        "provider": {"id": subtitle.provider.id, "name": subtitle.provider.name},
    }


def present_diagnostic(diagnostic: Diagnostic) -> dict[str, str]:
    return {
        "code": diagnostic.code,
        "message": diagnostic.message,
        "field": diagnostic.field,
        "severity": diagnostic.severity,
    }


def present_source_response(response: SourceResponse) -> dict[str, Any]:
    return {
        "responseId": response.response_id,
        "sources": [_source(s) for s in response.sources],
        "subtitles": [_subtitle(s) for s in response.subtitles],
        "diagnostics": [present_diagnostic(d) for d in response.diagnostics],
        "cached": response.cached,
    }


def present_provider(descriptor: ProviderDescriptor) -> dict[str, Any]:
    return {
        "id": descriptor.id,
        "name": descriptor.name,
        "enabled": descriptor.enabled,
        "capabilities": sorted(descriptor.capabilities),
        "priority": descriptor.priority,
        "baseUrl": descriptor.base_url,
    }


def error_body(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}}

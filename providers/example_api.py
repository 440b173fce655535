"""Example JSON-API provider for Mediagate.

Template for providers backed by a site that exposes a small JSON API:
- GET /api/source?tmdb={id}&type=movie -> {"streamUrl": ..., "subtitles": [...]}
- GET /api/source?tmdb={id}&type=tv&season={s}&episode={e} -> same shape

When the stream is an HLS master playlist, audio renditions
(``#EXT-X-MEDIA:TYPE=AUDIO``) become audio tracks and subtitle renditions
(``TYPE=SUBTITLES``) become subtitles.

Disabled by default; enable via ``providers.overrides.example-api.enabled``.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from mediagate.domain.entities import (
    AudioTrack,
    Diagnostic,
    DiagnosticCode,
    MediaRequest,
    ProviderResult,
    Subtitle,
)
from mediagate.infrastructure.providers import HttpxProviderBase, infer_quality

# ---------------------------------------------------------------------------
# Configurable settings
# ---------------------------------------------------------------------------
_BASE_URL = "https://example.com"

_MEDIA_RE = re.compile(r"^#EXT-X-MEDIA:(?P<attrs>.+)$", re.MULTILINE)
_ATTR_RE = re.compile(r'([A-Z0-9-]+)=("[^"]*"|[^,]*)')


def _parse_attributes(raw: str) -> dict[str, str]:
    """Parse an HLS attribute list (``KEY=VALUE,KEY="VALUE"``)."""
    return {key: value.strip('"') for key, value in _ATTR_RE.findall(raw)}


def parse_renditions(manifest: str) -> tuple[list[AudioTrack], list[dict[str, str]]]:
    """Extract audio tracks and subtitle renditions from an HLS master playlist."""
    audio: list[AudioTrack] = []
    subtitles: list[dict[str, str]] = []
    for match in _MEDIA_RE.finditer(manifest):
        attrs = _parse_attributes(match.group("attrs"))
        language = attrs.get("LANGUAGE", "und")
        label = attrs.get("NAME", language)
        if attrs.get("TYPE") == "AUDIO":
            audio.append(AudioTrack(language=language, label=label))
        elif attrs.get("TYPE") == "SUBTITLES" and attrs.get("URI"):
            subtitles.append({"language": language, "label": label, "uri": attrs["URI"]})
    return audio, subtitles


def absolute_http_url(base: str, raw: object) -> str | None:
    """Resolve *raw* against *base*; None unless the result is http(s)."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    url = urljoin(base, raw.strip())
    parsed = urlsplit(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return url


class ExampleApiProvider(HttpxProviderBase):
    """Provider for a JSON stream API (template)."""

    id = "example-api"
    name = "Example API"
    base_url = _BASE_URL
    enabled = False
    priority = 0
    headers = {  # noqa: RUF012
        "Accept": "application/json, text/plain, */*",
        "Referer": f"{_BASE_URL}/",
        "Origin": _BASE_URL,
    }

    async def _fetch_source(self, media: MediaRequest) -> ProviderResult:
        log = self.log_for(media)
        params: dict[str, str | int] = {
            "tmdb": media.external_id,
            "type": media.content_type,
        }
        if media.content_type == "tv":
            params["season"] = media.season or 0
            params["episode"] = media.episode or 0

        resp = await self._safe_fetch(
            f"{self.base_url}/api/source", params=params, context="source"
        )
        if resp is None:
            return self.empty_result("source lookup failed")

        data = self._safe_parse_json(resp, context="source")
        if not isinstance(data, dict) or not data.get("streamUrl"):
            log.info("example_api_no_stream")
            return self.empty_result("no stream URL in response")

        stream_url = absolute_http_url(str(resp.url), data["streamUrl"])
        if stream_url is None:
            log.warning("example_api_bad_stream_url", stream_url=data["streamUrl"])
            return self.empty_result("stream URL is not an http(s) URL")

        # Origin requires the Referer of the watch page on every request
        stream_headers = {"Referer": f"{self.base_url}/watch/{media.external_id}"}

        audio_tracks: list[AudioTrack] = []
        rendition_subs: list[dict[str, str]] = []
        if self.is_hls(stream_url):
            manifest = await self._safe_fetch(
                stream_url,
                headers=self.request_headers(**stream_headers),
                context="manifest",
            )
            if manifest is not None:
                audio_tracks, rendition_subs = parse_renditions(manifest.text)

        source = self.make_source(
            stream_url,
            headers=stream_headers,
            quality=infer_quality(str(data.get("quality") or stream_url)),
            audio_tracks=audio_tracks or [AudioTrack(language="en", label="English")],
        )

        subtitles: list[Subtitle] = []
        diagnostics: list[Diagnostic] = []
        api_subs = data.get("subtitles")
        for pos, sub in enumerate(api_subs if isinstance(api_subs, list) else []):
            if not isinstance(sub, dict):
                continue
            url = absolute_http_url(stream_url, sub.get("url"))
            if url is None:
                diagnostics.append(self._skipped_subtitle(f"subtitles[{pos}].url"))
                continue
            subtitles.append(
                self.make_subtitle(
                    url,
                    language=str(sub.get("language") or "und"),
                    label=str(sub.get("label") or ""),
                    headers=stream_headers,
                )
            )
        for sub in rendition_subs:
            url = absolute_http_url(stream_url, sub["uri"])
            if url is None:
                diagnostics.append(self._skipped_subtitle("manifest"))
                continue
            subtitles.append(
                self.make_subtitle(
                    url,
                    language=sub["language"],
                    label=sub["label"],
                    format="vtt",
                    headers=stream_headers,
                )
            )

        log.info(
            "example_api_found",
            sources=1,
            subtitles=len(subtitles),
            skipped=len(diagnostics),
        )
        return ProviderResult(
            sources=(source,),
            subtitles=tuple(subtitles),
            diagnostics=tuple(diagnostics),
        )

    def _skipped_subtitle(self, field: str) -> Diagnostic:
        return Diagnostic(
            code=DiagnosticCode.PROVIDER_ERROR,
            message=f"{self.name}: skipped subtitle without an http(s) URL",
            severity="warn",
            field=field,
        )

    @staticmethod
    def is_hls(url: str) -> bool:
        return ".m3u8" in url.lower()

    async def get_movie_sources(self, media: MediaRequest) -> ProviderResult:
        return await self._fetch_source(media)

    async def get_tv_sources(self, media: MediaRequest) -> ProviderResult:
        return await self._fetch_source(media)

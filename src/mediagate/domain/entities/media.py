"""Domain entities for media source resolution.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Literal

ContentType = Literal["movie", "tv"]
StreamType = Literal["hls", "dash", "mp4", "mkv", "webm", "embed"]
QualityTag = Literal["2160p", "1080p", "720p", "480p", "360p", "unknown"]
SubtitleFormat = Literal["vtt", "srt"]
Severity = Literal["info", "warn", "error"]

CONTENT_TYPES: tuple[ContentType, ...] = ("movie", "tv")
STREAM_TYPES: tuple[StreamType, ...] = ("hls", "dash", "mp4", "mkv", "webm", "embed")


class QualityRank(IntEnum):
    """Ranked quality levels (higher value = better quality)."""

    UNKNOWN = 0
    SD_360P = 10
    SD_480P = 20
    HD_720P = 30
    HD_1080P = 40
    UHD_2160P = 50


_QUALITY_RANKS: dict[str, QualityRank] = {
    "2160p": QualityRank.UHD_2160P,
    "1080p": QualityRank.HD_1080P,
    "720p": QualityRank.HD_720P,
    "480p": QualityRank.SD_480P,
    "360p": QualityRank.SD_360P,
    "unknown": QualityRank.UNKNOWN,
}


def quality_rank(quality: str) -> QualityRank:
    """Map a quality tag to its rank; unrecognised tags rank as UNKNOWN."""
    return _QUALITY_RANKS.get(quality, QualityRank.UNKNOWN)


class DiagnosticCode:
    """Enumerated diagnostic codes attached to resolution results."""

    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_EMPTY = "PROVIDER_EMPTY"
    NO_PROVIDERS_AVAILABLE = "NO_PROVIDERS_AVAILABLE"
    DISCOVERY_LOAD_ERROR = "DISCOVERY_LOAD_ERROR"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
    METADATA_UNAVAILABLE = "METADATA_UNAVAILABLE"


@dataclass(frozen=True)
class MediaRequest:
    """Inbound media request.

    ``external_id`` is the TMDB id. ``title``/``year`` are optional hints
    that providers may use for site searches; they do not take part in
    the cache fingerprint.
    """

    content_type: ContentType
    external_id: str
    season: int | None = None
    episode: int | None = None
    title: str | None = None
    year: int | None = None
    imdb_id: str | None = None


@dataclass(frozen=True)
class ProviderAttribution:
    """Which provider produced a source or subtitle."""

    id: str
    name: str


@dataclass(frozen=True)
class AudioTrack:
    language: str  # ISO 639-1, e.g. "en"
    label: str  # "English"


@dataclass(frozen=True)
class Source:
    """A single playable stream. ``url`` is always a proxy URL."""

    url: str
    type: StreamType
    quality: QualityTag
    provider: ProviderAttribution
    audio_tracks: tuple[AudioTrack, ...] = ()


@dataclass(frozen=True)
class Subtitle:
    url: str
    language: str
    format: SubtitleFormat
    provider: ProviderAttribution
    label: str = ""


@dataclass(frozen=True)
class Diagnostic:
    """Structured, non-fatal note describing a partial failure."""

    code: str
    message: str
    severity: Severity = "error"
    field: str = ""


@dataclass(frozen=True)
class ProviderResult:
    """Return contract of every provider call."""

    sources: tuple[Source, ...] = ()
    subtitles: tuple[Subtitle, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.sources and not self.subtitles


@dataclass(frozen=True)
class SourceResponse:
    """Unified resolution response returned to clients."""

    response_id: str
    sources: tuple[Source, ...] = ()
    subtitles: tuple[Subtitle, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    cached: bool = False


@dataclass(frozen=True)
class ProviderDescriptor:
    """Read-only view of a registered provider."""

    id: str
    name: str
    enabled: bool
    capabilities: frozenset[ContentType] = field(default_factory=frozenset)
    priority: int = 0
    base_url: str = ""

"""Port for third-party metadata lookup (title / year by TMDB id)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from mediagate.domain.entities import ContentType


@dataclass(frozen=True)
class MediaMetadata:
    """The fields the resolution pipeline needs from a metadata lookup."""

    title: str
    year: int | None = None
    imdb_id: str | None = None


@runtime_checkable
class MetadataLookupPort(Protocol):
    """Async interface for metadata lookups."""

    async def lookup(
        self, content_type: ContentType, tmdb_id: str
    ) -> MediaMetadata | None:
        """Return title/year/IMDb id, or None if unknown."""
        ...

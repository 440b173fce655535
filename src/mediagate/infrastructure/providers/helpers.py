"""Free helper functions shared by provider implementations."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from mediagate.domain.entities import (
    Diagnostic,
    DiagnosticCode,
    ProviderResult,
    QualityTag,
    Severity,
    StreamType,
)

_QUALITY_PATTERNS: tuple[tuple[re.Pattern[str], QualityTag], ...] = (
    (re.compile(r"2160p?|\b4k\b|\buhd\b", re.IGNORECASE), "2160p"),
    (re.compile(r"1080p?|\bfhd\b|\bfull[ ._-]?hd\b", re.IGNORECASE), "1080p"),
    (re.compile(r"720p?|\bhd\b", re.IGNORECASE), "720p"),
    (re.compile(r"480p?|\bsd\b", re.IGNORECASE), "480p"),
    (re.compile(r"360p?", re.IGNORECASE), "360p"),
)

# "1920x1080" style resolutions; the height decides the tag.
_RESOLUTION_RE = re.compile(r"\b\d{3,4}x(\d{3,4})\b")

_EXTENSION_TYPES: dict[str, StreamType] = {
    ".m3u8": "hls",
    ".mpd": "dash",
    ".mp4": "mp4",
    ".mkv": "mkv",
    ".webm": "webm",
}


def _quality_from_height(height: int) -> QualityTag:
    if height >= 2160:
        return "2160p"
    if height >= 1080:
        return "1080p"
    if height >= 720:
        return "720p"
    if height >= 480:
        return "480p"
    if height >= 360:
        return "360p"
    return "unknown"


def infer_quality(text: str) -> QualityTag:
    """Detect a quality tag in a URL, filename or label.

    >>> infer_quality("video_1080p.m3u8")
    '1080p'
    >>> infer_quality("stream-1280x720.mp4")
    '720p'
    """
    if not text:
        return "unknown"
    match = _RESOLUTION_RE.search(text)
    if match:
        return _quality_from_height(int(match.group(1)))
    for pattern, tag in _QUALITY_PATTERNS:
        if pattern.search(text):
            return tag
    return "unknown"


def infer_type(url: str) -> StreamType:
    """Detect the stream type from the URL path extension.

    Anything without a known media extension is an ``embed``.
    """
    path = urlsplit(url).path.lower()
    for ext, stream_type in _EXTENSION_TYPES.items():
        if path.endswith(ext):
            return stream_type
    return "embed"


def empty_result(
    provider_name: str,
    message: str,
    *,
    code: str = DiagnosticCode.PROVIDER_ERROR,
    severity: Severity = "error",
    field: str = "",
) -> ProviderResult:
    """Empty result carrying one descriptive diagnostic."""
    return ProviderResult(
        diagnostics=(
            Diagnostic(
                code=code,
                message=f"{provider_name}: {message}",
                severity=severity,
                field=field,
            ),
        )
    )

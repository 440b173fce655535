"""HLS playlist rewriting for the proxy endpoint.

Origins that require ``Referer`` (or other headers) usually require them
on **every** HLS sub-request (variant playlists, segments, keys), so
a proxied master playlist is useless unless its nested URIs are proxied
as well.  Each URI is resolved against the playlist URL and replaced by a
proxy URL carrying the same headers.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from urllib.parse import urljoin, urlsplit

HLS_CONTENT_TYPES = frozenset(
    {
        "application/vnd.apple.mpegurl",
        "application/x-mpegurl",
        "audio/mpegurl",
        "audio/x-mpegurl",
    }
)

# URI="..." attributes inside tags (#EXT-X-KEY, #EXT-X-MEDIA, #EXT-X-MAP, ...)
_URI_ATTR_RE = re.compile(r'URI="([^"]+)"')

RewriteFn = Callable[[str, Mapping[str, str]], str]


def is_hls_response(url: str, content_type: str | None) -> bool:
    """Return True when the response is an HLS playlist."""
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime in HLS_CONTENT_TYPES:
            return True
    return urlsplit(url).path.lower().endswith(".m3u8")


def rewrite_manifest(
    content: str,
    manifest_url: str,
    headers: Mapping[str, str],
    rewrite: RewriteFn,
) -> str:
    """Replace every URI in an HLS playlist with a proxied URI.

    - URI lines (anything not empty and not starting with ``#``) are
      resolved against *manifest_url* and rewritten.
    - ``URI="..."`` attributes on tag lines are rewritten in place.
    - All other tag/comment lines pass through untouched.

    Query parameters (auth tokens) of the original URIs are preserved.
    URIs that do not resolve to http(s) (``skd://`` key ids, ``data:``
    URIs) are left as they are.
    """

    def _proxied(uri: str) -> str:
        absolute = urljoin(manifest_url, uri)
        if urlsplit(absolute).scheme not in ("http", "https"):
            return uri
        return rewrite(absolute, headers)

    lines: list[str] = []
    for line in content.splitlines(keepends=True):
        stripped = line.strip()
        if not stripped:
            lines.append(line)
            continue
        if stripped.startswith("#"):
            if 'URI="' in stripped:
                line = _URI_ATTR_RE.sub(
                    lambda m: f'URI="{_proxied(m.group(1))}"', line
                )
            lines.append(line)
            continue
        ending = line[len(line.rstrip("\r\n")) :]
        lines.append(_proxied(stripped) + ending)
    return "".join(lines)

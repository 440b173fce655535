"""Upstream fetching for the proxy endpoint.

Opens the origin response in streaming mode so that media bytes flow
through the proxy without loading the entire payload into memory.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping

import httpx
import structlog

log = structlog.get_logger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024

# Global semaphore for concurrent origin fetches (prevents stampede).
_UPSTREAM_SEMAPHORE = asyncio.Semaphore(50)

# Client request headers that are forwarded to the origin.
PASSTHROUGH_REQUEST_HEADERS = ("range", "if-range")

# Origin response headers that are forwarded to the client.
PASSTHROUGH_RESPONSE_HEADERS = frozenset(
    {
        "content-type",
        "content-encoding",
        "content-length",
        "content-range",
        "accept-ranges",
        "etag",
        "last-modified",
        "cache-control",
    }
)


def build_upstream_headers(
    encoded: Mapping[str, str],
    client_headers: Mapping[str, str],
) -> httpx.Headers:
    """Merge the token's headers with the client's range headers.

    Encoded headers win over anything the client sends (names compare
    case-insensitively); only range-related client headers are forwarded.
    The body is requested unencoded so that byte ranges and
    ``Content-Length`` stay valid after proxying.
    """
    headers = httpx.Headers()
    for name in PASSTHROUGH_REQUEST_HEADERS:
        value = client_headers.get(name)
        if value:
            headers[name.title()] = value
    headers.update(encoded)
    if "accept-encoding" not in headers:
        headers["Accept-Encoding"] = "identity"
    return headers


def filter_response_headers(headers: httpx.Headers) -> dict[str, str]:
    """Keep only headers that make sense after proxying."""
    return {k: v for k, v in headers.items() if k.lower() in PASSTHROUGH_RESPONSE_HEADERS}


async def open_upstream(
    http_client: httpx.AsyncClient,
    url: str,
    *,
    method: str,
    headers: Mapping[str, str],
) -> httpx.Response:
    """Send the origin request and return the (unread) streaming response.

    Raises ``httpx.HTTPError`` on transport failures. Non-2xx statuses are
    returned as-is so they can be forwarded to the client.
    """
    async with _UPSTREAM_SEMAPHORE:
        response = await http_client.send(
            http_client.build_request(method, url, headers=headers),
            stream=True,
            follow_redirects=True,
        )
    log.debug(
        "proxy_upstream_opened",
        method=method,
        status=response.status_code,
        host=response.url.host,
    )
    return response


async def iter_body(response: httpx.Response) -> AsyncIterator[bytes]:
    """Yield the upstream body as received (no decoding) and close the response."""
    try:
        async for chunk in response.aiter_raw(chunk_size=STREAM_CHUNK_SIZE):
            yield chunk
    finally:
        await response.aclose()

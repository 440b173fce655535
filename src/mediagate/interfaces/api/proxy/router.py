"""Streaming proxy endpoint.

Resolves a signed proxy token, fetches the origin with the encoded
headers and streams the body back. HLS playlists are rewritten so that
every nested URI also goes through this endpoint.
"""

from __future__ import annotations

from typing import cast

import httpx
import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from mediagate.infrastructure.proxy import is_hls_response, rewrite_manifest
from mediagate.infrastructure.proxy.upstream import (
    build_upstream_headers,
    filter_response_headers,
    iter_body,
    open_upstream,
)
from mediagate.interfaces.api.presenters import error_body
from mediagate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["proxy"])

HLS_MEDIA_TYPE = "application/vnd.apple.mpegurl"


@router.api_route("/proxy", methods=["GET", "HEAD"])
async def proxy(request: Request, data: str = "", sig: str = "") -> Response:
    state = cast(AppState, request.app.state)

    # ProxyResolutionError -> 400/403 via exception handler
    target = state.proxy.resolve_token(data, sig)
    headers = build_upstream_headers(target.headers, request.headers)

    try:
        upstream = await open_upstream(
            state.http_client,
            target.origin_url,
            method=request.method,
            headers=headers,
        )
    except httpx.HTTPError as exc:
        log.warning(
            "proxy_upstream_failed",
            host=httpx.URL(target.origin_url).host,
            error=str(exc),
        )
        return JSONResponse(
            status_code=502,
            content=error_body("UPSTREAM_UNAVAILABLE", "Upstream fetch failed"),
        )

    response_headers = filter_response_headers(upstream.headers)

    if request.method == "HEAD":
        await upstream.aclose()
        return Response(status_code=upstream.status_code, headers=response_headers)

    if upstream.is_success and is_hls_response(
        str(upstream.url), upstream.headers.get("content-type")
    ):
        try:
            raw = await upstream.aread()
        except httpx.HTTPError as exc:
            log.warning("proxy_manifest_read_failed", error=str(exc))
            return JSONResponse(
                status_code=502,
                content=error_body("UPSTREAM_UNAVAILABLE", "Upstream fetch failed"),
            )
        finally:
            await upstream.aclose()

        text = raw.decode(upstream.encoding or "utf-8", errors="replace")
        rewritten = rewrite_manifest(
            text, str(upstream.url), target.headers, state.proxy.create_proxy_url
        )
        log.debug("proxy_manifest_rewritten", host=upstream.url.host)
        return Response(
            content=rewritten,
            status_code=upstream.status_code,
            media_type=HLS_MEDIA_TYPE,
            headers={"Cache-Control": "no-cache"},
        )

    return StreamingResponse(
        iter_body(upstream),
        status_code=upstream.status_code,
        headers=response_headers,
    )

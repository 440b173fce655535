"""HTTP tests for the streaming proxy endpoint (origin mocked via respx)."""

from __future__ import annotations

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from mediagate.infrastructure.proxy import ProxyService

_ORIGIN = "https://cdn.example.com/media/movie.mp4"
_MANIFEST = "https://cdn.example.com/hls/master.m3u8"
_HEADERS = {"Referer": "https://site.example.com/watch/550"}


@pytest.fixture()
def proxy(client: TestClient) -> ProxyService:
    return client.app.state.proxy


@pytest.fixture()
def origin():
    with respx.mock(assert_all_called=False) as router:
        yield router


class TestStreaming:
    def test_body_and_headers_passed_through(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        route = origin.get(_ORIGIN).mock(
            return_value=httpx.Response(
                200,
                content=b"\x00\x01\x02",
                headers={
                    "Content-Type": "video/mp4",
                    "Accept-Ranges": "bytes",
                    "Set-Cookie": "tracking=1",
                },
            )
        )

        resp = client.get(proxy.create_proxy_url(_ORIGIN, _HEADERS))

        assert resp.status_code == 200
        assert resp.content == b"\x00\x01\x02"
        assert resp.headers["content-type"] == "video/mp4"
        assert resp.headers["accept-ranges"] == "bytes"
        assert "set-cookie" not in resp.headers
        upstream = route.calls.last.request
        assert upstream.headers["Referer"] == _HEADERS["Referer"]

    def test_range_request_forwarded(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        route = origin.get(_ORIGIN).mock(
            return_value=httpx.Response(
                206,
                content=b"\x00\x01",
                headers={"Content-Range": "bytes 0-1/1000", "Content-Type": "video/mp4"},
            )
        )

        resp = client.get(
            proxy.create_proxy_url(_ORIGIN, _HEADERS), headers={"Range": "bytes=0-1"}
        )

        assert resp.status_code == 206
        assert resp.headers["content-range"] == "bytes 0-1/1000"
        assert route.calls.last.request.headers["Range"] == "bytes=0-1"

    def test_head_request(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        origin.head(_ORIGIN).mock(
            return_value=httpx.Response(200, headers={"Content-Type": "video/mp4"})
        )

        resp = client.head(proxy.create_proxy_url(_ORIGIN))

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "video/mp4"
        assert resp.content == b""

    def test_origin_error_status_forwarded(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        origin.get(_ORIGIN).mock(return_value=httpx.Response(404, text="gone"))
        resp = client.get(proxy.create_proxy_url(_ORIGIN))
        assert resp.status_code == 404

    def test_unreachable_origin_is_502(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        origin.get(_ORIGIN).mock(side_effect=httpx.ConnectError("refused"))

        resp = client.get(proxy.create_proxy_url(_ORIGIN))

        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "UPSTREAM_UNAVAILABLE"


class TestTokenErrors:
    def test_missing_token_is_400(self, client: TestClient) -> None:
        resp = client.get("/v1/proxy")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_PROXY_TOKEN"

    def test_bad_signature_is_403(self, client: TestClient, proxy: ProxyService) -> None:
        url = proxy.create_proxy_url(_ORIGIN)
        tampered = url[:-4] + ("0000" if not url.endswith("0000") else "1111")

        resp = client.get(tampered)

        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PROXY_FORBIDDEN"

    def test_foreign_secret_is_403(self, client: TestClient) -> None:
        foreign = ProxyService(public_base_url="http://testserver", secret="other")
        resp = client.get(foreign.create_proxy_url(_ORIGIN))
        assert resp.status_code == 403


class TestHlsRewrite:
    def test_manifest_uris_are_proxied(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        origin.get(_MANIFEST).mock(
            return_value=httpx.Response(
                200,
                text=(
                    "#EXTM3U\n"
                    '#EXT-X-KEY:METHOD=AES-128,URI="keys/k.bin"\n'
                    "#EXTINF:6.0,\n"
                    "seg-0.ts\n"
                ),
                headers={"Content-Type": "application/vnd.apple.mpegurl"},
            )
        )

        resp = client.get(proxy.create_proxy_url(_MANIFEST, _HEADERS))

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/vnd.apple.mpegurl")
        lines = resp.text.splitlines()
        assert lines[0] == "#EXTM3U"
        segment = proxy.resolve_proxy_url(lines[3])
        assert segment.origin_url == "https://cdn.example.com/hls/seg-0.ts"
        assert segment.headers == _HEADERS
        assert 'URI="http://testserver/v1/proxy?' in lines[1]

    def test_rewritten_segment_fetchable(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        origin.get(_MANIFEST).mock(
            return_value=httpx.Response(
                200,
                text="#EXTM3U\nseg-0.ts\n",
                headers={"Content-Type": "application/x-mpegURL"},
            )
        )
        seg_route = origin.get("https://cdn.example.com/hls/seg-0.ts").mock(
            return_value=httpx.Response(200, content=b"TS")
        )

        manifest = client.get(proxy.create_proxy_url(_MANIFEST, _HEADERS)).text
        segment_url = manifest.splitlines()[1]
        resp = client.get(segment_url)

        assert resp.content == b"TS"
        assert seg_route.calls.last.request.headers["Referer"] == _HEADERS["Referer"]

    def test_fairplay_key_uri_does_not_break_rewrite(
        self, client: TestClient, proxy: ProxyService, origin: respx.MockRouter
    ) -> None:
        origin.get(_MANIFEST).mock(
            return_value=httpx.Response(
                200,
                text=(
                    "#EXTM3U\n"
                    '#EXT-X-KEY:METHOD=SAMPLE-AES,URI="skd://key-id-123"\n'
                    "seg-0.ts\n"
                ),
                headers={"Content-Type": "application/vnd.apple.mpegurl"},
            )
        )

        resp = client.get(proxy.create_proxy_url(_MANIFEST, _HEADERS))

        assert resp.status_code == 200
        lines = resp.text.splitlines()
        assert lines[1] == '#EXT-X-KEY:METHOD=SAMPLE-AES,URI="skd://key-id-123"'
        assert proxy.is_proxy_url(lines[2])

"""End-to-end: discovery of the bundled provider, resolution, diskcache, proxy."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from mediagate.infrastructure.config import AppConfig
from mediagate.interfaces.app import create_app

pytestmark = pytest.mark.integration

_PROVIDERS = Path(__file__).resolve().parents[2] / "providers"
_STREAM = "https://cdn.example.com/hls/master.m3u8"

_MASTER = (
    "#EXTM3U\n"
    '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aud",LANGUAGE="en",NAME="English",'
    'URI="audio/en.m3u8"\n'
    '#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="aud",LANGUAGE="de",NAME="Deutsch",'
    'URI="audio/de.m3u8"\n'
    '#EXT-X-MEDIA:TYPE=SUBTITLES,GROUP-ID="subs",LANGUAGE="de",NAME="Deutsch",'
    'URI="subs/de.m3u8"\n'
    '#EXT-X-STREAM-INF:BANDWIDTH=5000000,RESOLUTION=1920x1080,AUDIO="aud"\n'
    "1080p/index.m3u8\n"
)


@pytest.fixture()
def pipeline_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        environment="test",
        public_base_url="http://testserver",
        provider_dir=_PROVIDERS,
        provider_overrides={"example-api": {"enabled": True}},
        proxy_secret="integration-secret",
        cache={"backend": "diskcache", "directory": tmp_path / "cache"},
    )


@pytest.fixture()
def site():
    with respx.mock(assert_all_called=False) as router:
        router.get("https://example.com/api/source").mock(
            return_value=httpx.Response(
                200, json={"streamUrl": _STREAM, "quality": "1080p", "subtitles": []}
            )
        )
        router.get(_STREAM).mock(
            return_value=httpx.Response(
                200,
                text=_MASTER,
                headers={"Content-Type": "application/vnd.apple.mpegurl"},
            )
        )
        yield router


class TestBundledProvider:
    def test_discovered_and_enabled_by_override(self, pipeline_config: AppConfig) -> None:
        with TestClient(create_app(pipeline_config)) as client:
            body = client.get("/v1/providers").json()

        ids = {p["id"]: p for p in body["providers"]}
        assert ids["example-api"]["enabled"] is True
        assert ids["example-api"]["baseUrl"] == "https://example.com"

    def test_movie_resolution(
        self, pipeline_config: AppConfig, site: respx.MockRouter
    ) -> None:
        with TestClient(create_app(pipeline_config)) as client:
            body = client.get("/v1/movies/550").json()

        assert body["cached"] is False
        (source,) = body["sources"]
        assert source["type"] == "hls"
        assert source["quality"] == "1080p"
        assert source["provider"]["id"] == "example-api"
        assert [t["language"] for t in source["audioTracks"]] == ["en", "de"]
        (subtitle,) = body["subtitles"]
        assert subtitle["language"] == "de"
        assert subtitle["url"].startswith("http://testserver/v1/proxy?")

        api_request = site.routes[0].calls.last.request
        assert api_request.url.params["tmdb"] == "550"
        assert api_request.url.params["type"] == "movie"

    def test_episode_params_sent(
        self, pipeline_config: AppConfig, site: respx.MockRouter
    ) -> None:
        with TestClient(create_app(pipeline_config)) as client:
            client.get("/v1/tv/1399/seasons/3/episodes/9")

        params = site.routes[0].calls.last.request.url.params
        assert (params["type"], params["season"], params["episode"]) == ("tv", "3", "9")


class TestPersistentCache:
    def test_result_survives_restart(
        self, pipeline_config: AppConfig, site: respx.MockRouter
    ) -> None:
        with TestClient(create_app(pipeline_config)) as client:
            first = client.get("/v1/movies/550").json()

        with TestClient(create_app(pipeline_config)) as client:
            second = client.get("/v1/movies/550").json()

        assert second["cached"] is True
        assert second["sources"] == first["sources"]
        assert site.routes[0].call_count == 1


class TestProxiedPlayback:
    def test_source_url_serves_rewritten_master(
        self, pipeline_config: AppConfig, site: respx.MockRouter
    ) -> None:
        with TestClient(create_app(pipeline_config)) as client:
            (source,) = client.get("/v1/movies/550").json()["sources"]
            manifest = client.get(source["url"])
            proxy = client.app.state.proxy

        assert manifest.status_code == 200
        variant_line = manifest.text.splitlines()[-1]
        target = proxy.resolve_proxy_url(variant_line)
        assert target.origin_url == "https://cdn.example.com/hls/1080p/index.m3u8"
        assert target.headers == {"Referer": "https://example.com/watch/550"}
        assert site.routes[1].calls.last.request.headers["Referer"] == (
            "https://example.com/watch/550"
        )

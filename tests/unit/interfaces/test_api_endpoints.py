"""HTTP tests for sources, providers and health endpoints."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from mediagate.domain.entities import AudioTrack, ProviderResult, Source
from mediagate.infrastructure.config import AppConfig
from mediagate.interfaces.app import create_app


def _register(client: TestClient, provider) -> None:
    client.app.state.registry.register(provider)


class TestMovieSources:
    def test_merged_response_shape(self, client: TestClient, fake_provider) -> None:
        p = fake_provider("alpha", name="Alpha")
        p.result = ProviderResult(
            sources=(
                Source(
                    url="https://cdn.example.com/master.m3u8",
                    type="hls",
                    quality="1080p",
                    provider=p.attribution,
                    audio_tracks=(AudioTrack(language="en", label="English"),),
                ),
            ),
            subtitles=(p.subtitle("https://cdn.example.com/en.vtt"),),
        )
        _register(client, p)

        resp = client.get("/v1/movies/550")

        assert resp.status_code == 200
        body = resp.json()
        assert set(body) == {"responseId", "sources", "subtitles", "diagnostics", "cached"}
        assert body["cached"] is False
        (source,) = body["sources"]
        assert source["url"].startswith("http://testserver/v1/proxy?")
        assert source["type"] == "hls"
        assert source["quality"] == "1080p"
        assert source["audioTracks"] == [{"language": "en", "label": "English"}]
        assert source["provider"] == {"id": "alpha", "name": "Alpha"}
        (subtitle,) = body["subtitles"]
        assert subtitle["format"] == "vtt"
        assert subtitle["language"] == "en"
        assert body["diagnostics"] == []

    def test_second_call_is_cached(self, client: TestClient, fake_provider) -> None:
        p = fake_provider("alpha")
        p.result = ProviderResult(sources=(p.source("https://a.example.com/x.mp4"),))
        _register(client, p)

        first = client.get("/v1/movies/550").json()
        second = client.get("/v1/movies/550").json()

        assert second["cached"] is True
        assert second["sources"] == first["sources"]
        assert len(p.calls) == 1

    def test_title_and_year_hints_forwarded(
        self, client: TestClient, fake_provider
    ) -> None:
        p = fake_provider("alpha")
        _register(client, p)

        client.get("/v1/movies/550", params={"title": "Fight Club", "year": "1999"})

        assert p.calls[0].title == "Fight Club"
        assert p.calls[0].year == 1999

    def test_provider_failure_is_diagnostic_not_error(
        self, client: TestClient, fake_provider
    ) -> None:
        _register(client, fake_provider("bad", name="Bad", error=RuntimeError("boom")))

        resp = client.get("/v1/movies/550")

        assert resp.status_code == 200
        (diag,) = resp.json()["diagnostics"]
        assert diag == {
            "code": "PROVIDER_ERROR",
            "message": "Bad: boom",
            "field": "",
            "severity": "error",
        }

    def test_no_providers(self, client: TestClient) -> None:
        body = client.get("/v1/movies/550").json()
        assert body["sources"] == []
        assert body["diagnostics"][0]["code"] == "NO_PROVIDERS_AVAILABLE"

    def test_non_numeric_id_rejected(self, client: TestClient) -> None:
        resp = client.get("/v1/movies/abc")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_TMDB_ID"

    def test_non_numeric_year_rejected(self, client: TestClient) -> None:
        resp = client.get("/v1/movies/550", params={"year": "soon"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_YEAR"


class TestEpisodeSources:
    def test_episode_request(self, client: TestClient, fake_provider) -> None:
        p = fake_provider("shows", capabilities=frozenset({"tv"}))
        p.result = ProviderResult(sources=(p.source("https://s.example.com/e.mp4"),))
        _register(client, p)

        resp = client.get("/v1/tv/1399/seasons/1/episodes/2")

        assert resp.status_code == 200
        assert len(resp.json()["sources"]) == 1
        seen = p.calls[0]
        assert (seen.content_type, seen.external_id, seen.season, seen.episode) == (
            "tv",
            "1399",
            1,
            2,
        )

    def test_invalid_season(self, client: TestClient) -> None:
        resp = client.get("/v1/tv/1399/seasons/x/episodes/2")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_SEASON"

    def test_invalid_episode(self, client: TestClient) -> None:
        resp = client.get("/v1/tv/1399/seasons/1/episodes/0")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_EPISODE"


class TestProviders:
    def test_list(self, client: TestClient, fake_provider) -> None:
        _register(
            client,
            fake_provider(
                "alpha",
                name="Alpha",
                priority=3,
                capabilities=frozenset({"tv", "movie"}),
                base_url="https://alpha.example.com",
            ),
        )

        body = client.get("/v1/providers").json()

        assert body["diagnostics"] == []
        assert body["providers"] == [
            {
                "id": "alpha",
                "name": "Alpha",
                "enabled": True,
                "capabilities": ["movie", "tv"],
                "priority": 3,
                "baseUrl": "https://alpha.example.com",
            }
        ]

    def test_disable_and_enable(self, client: TestClient, fake_provider) -> None:
        p = fake_provider("alpha")
        p.result = ProviderResult(sources=(p.source("https://a.example.com/x.mp4"),))
        _register(client, p)

        resp = client.post("/v1/providers/alpha/disable")
        assert resp.status_code == 200
        assert resp.json()["enabled"] is False
        body = client.get("/v1/movies/551").json()
        assert body["diagnostics"][0]["code"] == "NO_PROVIDERS_AVAILABLE"

        assert client.post("/v1/providers/alpha/enable").json()["enabled"] is True
        assert len(client.get("/v1/movies/551").json()["sources"]) == 1

    def test_unknown_provider_404(self, client: TestClient) -> None:
        resp = client.post("/v1/providers/nope/enable")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "PROVIDER_NOT_FOUND"


class TestDiscoveryDiagnostics:
    def test_broken_module_listed(self, app_config: AppConfig, provider_dir: Path) -> None:
        (provider_dir / "broken.py").write_text("import does_not_exist\n")

        with TestClient(create_app(app_config)) as client:
            body = client.get("/v1/providers").json()

        assert body["providers"] == []
        (diag,) = body["diagnostics"]
        assert diag["code"] == "DISCOVERY_LOAD_ERROR"
        assert diag["field"] == "broken.py"

    def test_overrides_applied_after_discovery(self, provider_dir: Path) -> None:
        (provider_dir / "simple.py").write_text(
            "from mediagate.domain.entities import ProviderResult\n"
            "from mediagate.infrastructure.providers import HttpxProviderBase\n"
            "\n"
            "\n"
            "class SimpleProvider(HttpxProviderBase):\n"
            "    id = 'simple'\n"
            "    name = 'Simple'\n"
            "    base_url = 'https://simple.example.com'\n"
            "\n"
            "    async def get_movie_sources(self, media):\n"
            "        return ProviderResult()\n"
        )
        config = AppConfig(
            environment="test",
            public_base_url="http://testserver",
            provider_dir=provider_dir,
            proxy_secret="test-secret",
            provider_overrides={"simple": {"enabled": False, "priority": 7}},
        )

        with TestClient(create_app(config)) as client:
            (provider,) = client.get("/v1/providers").json()["providers"]

        assert provider["id"] == "simple"
        assert provider["enabled"] is False
        assert provider["priority"] == 7


class TestHealth:
    def test_all_healthy(self, client: TestClient, fake_provider) -> None:
        _register(client, fake_provider("alpha"))
        body = client.get("/v1/health").json()
        assert body["status"] == "ok"
        assert body["providers"] == {"alpha": True}
        assert body["name"] == "mediagate"

    def test_degraded(self, client: TestClient, fake_provider) -> None:
        _register(client, fake_provider("alpha"))
        _register(client, fake_provider("beta", healthy=False))
        body = client.get("/v1/health").json()
        assert body["status"] == "degraded"
        assert body["providers"] == {"alpha": True, "beta": False}

    def test_liveness(self, client: TestClient) -> None:
        assert client.get("/healthz").json() == {"status": "ok"}

"""Tests for signed proxy URLs."""

from __future__ import annotations

import base64
import json
from unittest.mock import patch
from urllib.parse import parse_qs, urlencode, urlsplit

import pytest

from mediagate.domain.providers import ProxyResolutionError
from mediagate.infrastructure.proxy import ProxyService
from mediagate.infrastructure.proxy.signing import sign_payload

_ORIGIN = "https://cdn.example.com/hls/master.m3u8?token=abc"
_HEADERS = {"Referer": "https://example.com/watch/550", "Origin": "https://example.com"}


def _params(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


class TestCreateProxyUrl:
    def test_points_at_proxy_endpoint(self, proxy_service: ProxyService) -> None:
        url = proxy_service.create_proxy_url(_ORIGIN, _HEADERS)
        assert url.startswith("http://testserver/v1/proxy?")
        assert set(_params(url)) == {"data", "sig"}

    def test_round_trip(self, proxy_service: ProxyService) -> None:
        url = proxy_service.create_proxy_url(_ORIGIN, _HEADERS)
        target = proxy_service.resolve_proxy_url(url)
        assert target.origin_url == _ORIGIN
        assert target.headers == _HEADERS
        assert target.expires_at is None

    def test_without_headers(self, proxy_service: ProxyService) -> None:
        url = proxy_service.create_proxy_url(_ORIGIN)
        assert proxy_service.resolve_proxy_url(url).headers == {}

    def test_deterministic(self, proxy_service: ProxyService) -> None:
        a = proxy_service.create_proxy_url(_ORIGIN, _HEADERS)
        b = proxy_service.create_proxy_url(_ORIGIN, dict(reversed(_HEADERS.items())))
        assert a == b

    def test_proxy_url_is_not_wrapped_twice(self, proxy_service: ProxyService) -> None:
        url = proxy_service.create_proxy_url(_ORIGIN)
        assert proxy_service.create_proxy_url(url) == url

    @pytest.mark.parametrize(
        "origin", ["ftp://example.com/a.mp4", "/relative/path.m3u8", "javascript:x"]
    )
    def test_rejects_non_http_origin(
        self, proxy_service: ProxyService, origin: str
    ) -> None:
        with pytest.raises(ValueError):
            proxy_service.create_proxy_url(origin)

    def test_is_proxy_url(self, proxy_service: ProxyService) -> None:
        assert proxy_service.is_proxy_url(proxy_service.create_proxy_url(_ORIGIN))
        assert not proxy_service.is_proxy_url(_ORIGIN)

    def test_empty_secret_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProxyService(public_base_url="http://x", secret="")

    def test_trailing_slash_in_base_url(self) -> None:
        svc = ProxyService(public_base_url="http://x:3000/", secret="s")
        assert svc.endpoint == "http://x:3000/v1/proxy"


class TestResolveToken:
    def test_tampered_payload_is_forbidden(self, proxy_service: ProxyService) -> None:
        params = _params(proxy_service.create_proxy_url(_ORIGIN))
        forged = base64.urlsafe_b64encode(
            json.dumps({"u": "https://evil.example.com/", "h": {}}).encode()
        ).decode()
        with pytest.raises(ProxyResolutionError) as exc_info:
            proxy_service.resolve_token(forged, params["sig"])
        assert exc_info.value.forbidden

    def test_wrong_secret_is_forbidden(self, proxy_service: ProxyService) -> None:
        other = ProxyService(public_base_url="http://testserver", secret="other")
        url = other.create_proxy_url(_ORIGIN)
        with pytest.raises(ProxyResolutionError) as exc_info:
            proxy_service.resolve_proxy_url(url)
        assert exc_info.value.forbidden

    def test_missing_params_is_client_error(self, proxy_service: ProxyService) -> None:
        with pytest.raises(ProxyResolutionError) as exc_info:
            proxy_service.resolve_token("", "")
        assert not exc_info.value.forbidden

    def test_non_ascii_signature_is_forbidden(
        self, proxy_service: ProxyService
    ) -> None:
        params = _params(proxy_service.create_proxy_url(_ORIGIN))
        with pytest.raises(ProxyResolutionError) as exc_info:
            proxy_service.resolve_token(params["data"], "é" * 64)
        assert exc_info.value.forbidden

    def test_validly_signed_garbage_is_client_error(
        self, proxy_service: ProxyService
    ) -> None:
        data = "not-base64-json"
        with pytest.raises(ProxyResolutionError) as exc_info:
            proxy_service.resolve_token(data, sign_payload(data, "test-secret"))
        assert not exc_info.value.forbidden

    def test_signed_payload_without_origin_is_client_error(
        self, proxy_service: ProxyService
    ) -> None:
        data = base64.urlsafe_b64encode(json.dumps({"h": {}}).encode()).decode()
        with pytest.raises(ProxyResolutionError, match="no origin URL"):
            proxy_service.resolve_token(data, sign_payload(data, "test-secret"))

    def test_query_string_round_trip(self, proxy_service: ProxyService) -> None:
        params = _params(proxy_service.create_proxy_url(_ORIGIN, _HEADERS))
        rebuilt = f"http://testserver/v1/proxy?{urlencode(params)}"
        assert proxy_service.resolve_proxy_url(rebuilt).origin_url == _ORIGIN


class TestTokenExpiry:
    def test_expiring_token_carries_expiry(self) -> None:
        svc = ProxyService(public_base_url="http://x", secret="s", token_ttl_seconds=60)
        with patch("mediagate.infrastructure.proxy.signing.time.time", return_value=1000):
            target = svc.resolve_proxy_url(svc.create_proxy_url(_ORIGIN))
        assert target.expires_at == 1060

    def test_expired_token_is_forbidden(self) -> None:
        svc = ProxyService(public_base_url="http://x", secret="s", token_ttl_seconds=60)
        with patch("mediagate.infrastructure.proxy.signing.time.time", return_value=1000):
            url = svc.create_proxy_url(_ORIGIN)
        with patch("mediagate.infrastructure.proxy.signing.time.time", return_value=1061):
            with pytest.raises(ProxyResolutionError) as exc_info:
                svc.resolve_proxy_url(url)
        assert exc_info.value.forbidden

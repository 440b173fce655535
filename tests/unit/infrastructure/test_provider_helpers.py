"""Tests for provider helper functions."""

from __future__ import annotations

import pytest

from mediagate.domain.entities import DiagnosticCode
from mediagate.infrastructure.providers import empty_result, infer_quality, infer_type


class TestInferQuality:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("https://cdn/x/2160p/index.m3u8", "2160p"),
            ("Movie.4K.HDR.mkv", "2160p"),
            ("video_1080p.m3u8", "1080p"),
            ("FHD stream", "1080p"),
            ("stream-1280x720.mp4", "720p"),
            ("720", "720p"),
            ("HD", "720p"),
            ("480p", "480p"),
            ("360p.mp4", "360p"),
            ("https://cdn/stream/index.m3u8", "unknown"),
            ("", "unknown"),
        ],
    )
    def test_tags(self, text: str, expected: str) -> None:
        assert infer_quality(text) == expected

    def test_resolution_height_decides(self) -> None:
        assert infer_quality("3840x2160") == "2160p"
        assert infer_quality("640x360") == "360p"
        assert infer_quality("320x240") == "unknown"


class TestInferType:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://cdn/a/master.m3u8?token=1", "hls"),
            ("https://cdn/a/manifest.MPD", "dash"),
            ("https://cdn/a/movie.mp4", "mp4"),
            ("https://cdn/a/movie.mkv", "mkv"),
            ("https://cdn/a/movie.webm", "webm"),
            ("https://player.example.com/embed/123", "embed"),
        ],
    )
    def test_types(self, url: str, expected: str) -> None:
        assert infer_type(url) == expected


class TestEmptyResult:
    def test_single_prefixed_diagnostic(self) -> None:
        result = empty_result("Alpha", "site changed")
        assert result.is_empty
        (diag,) = result.diagnostics
        assert diag.code == DiagnosticCode.PROVIDER_ERROR
        assert diag.message == "Alpha: site changed"
        assert diag.severity == "error"

    def test_custom_code_and_severity(self) -> None:
        result = empty_result(
            "Alpha", "nothing", code=DiagnosticCode.PROVIDER_EMPTY, severity="info"
        )
        assert result.diagnostics[0].code == "PROVIDER_EMPTY"
        assert result.diagnostics[0].severity == "info"

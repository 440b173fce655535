from __future__ import annotations

import pytest

from mediagate.interfaces.cli.cli import _parse_args, build_cli_overrides


class TestParseArgs:
    def test_defaults_are_none(self) -> None:
        args = _parse_args([])
        assert args.host is None
        assert args.port is None
        assert args.config is None
        assert args.dotenv is None

    def test_port_is_int(self) -> None:
        assert _parse_args(["--port", "8080"]).port == 8080

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(SystemExit):
            _parse_args(["--log-level", "TRACE"])


class TestBuildCliOverrides:
    def test_empty_when_no_flags(self) -> None:
        assert build_cli_overrides(_parse_args([])) == {}

    def test_only_given_flags(self) -> None:
        args = _parse_args(
            ["--host", "127.0.0.1", "--port", "9000", "--log-format", "console"]
        )
        assert build_cli_overrides(args) == {
            "host": "127.0.0.1",
            "port": 9000,
            "log_format": "console",
        }

    def test_provider_dir_and_level(self) -> None:
        args = _parse_args(["--provider-dir", "/srv/providers", "--log-level", "DEBUG"])
        assert build_cli_overrides(args) == {
            "provider_dir": "/srv/providers",
            "log_level": "DEBUG",
        }

    def test_config_paths_not_in_overrides(self) -> None:
        args = _parse_args(["--config", "config.yaml", "--dotenv", ".env"])
        assert build_cli_overrides(args) == {}

"""Fixtures for HTTP interface tests (real app, real lifespan)."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mediagate.infrastructure.config import AppConfig
from mediagate.interfaces.app import create_app


@pytest.fixture()
def provider_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "providers"
    directory.mkdir()
    return directory


@pytest.fixture()
def app_config(provider_dir: Path, tmp_path: Path) -> AppConfig:
    """Config with a fixed proxy secret, an empty provider dir and memory cache."""
    return AppConfig(
        environment="test",
        public_base_url="http://testserver",
        provider_dir=provider_dir,
        proxy_secret="test-secret",
        provider_timeout_seconds=1.0,
        health_timeout_seconds=1.0,
    )


@pytest.fixture()
def client(app_config: AppConfig) -> TestClient:
    """TestClient with the lifespan running; ``client.app.state`` is wired."""
    with TestClient(create_app(app_config)) as test_client:
        yield test_client

"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "mediagate",
    "app_version": "1.0.0",
    "environment": "dev",
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
        "public_base_url": None,  # Derived from host/port in schema.py
    },
    "providers": {
        "provider_dir": "./providers",
        "timeout_seconds": 10.0,
        "overrides": {},
    },
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "user_agent": "Mediagate/1.0.0",
    },
    "cache": {
        "backend": "memory",
        "dir": "./.cache/mediagate",
        "sources_ttl_seconds": 7200,
        "subtitles_ttl_seconds": 86400,
    },
    "proxy": {
        "secret": None,  # Ephemeral secret generated at startup when unset
        "token_ttl_seconds": 0,
    },
    "health": {
        "timeout_seconds": 5.0,
        "interval_seconds": 0,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}

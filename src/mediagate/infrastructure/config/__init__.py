from __future__ import annotations

from .load import load_config
from .schema import AppConfig, CacheConfig, EnvOverrides, ProviderOverride

__all__ = [
    "AppConfig",
    "CacheConfig",
    "EnvOverrides",
    "ProviderOverride",
    "load_config",
]

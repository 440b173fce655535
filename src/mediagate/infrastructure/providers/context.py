"""Collaborators injected into every provider instance."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from mediagate.domain.ports import ProxyUrlPort

from .constants import DEFAULT_HEALTH_TIMEOUT, DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ProviderContext:
    """Shared dependencies handed to provider constructors.

    Discovery instantiates each provider class as ``cls(context)``.
    """

    proxy: ProxyUrlPort
    http_client: httpx.AsyncClient
    user_agent: str = DEFAULT_USER_AGENT
    health_timeout: float = DEFAULT_HEALTH_TIMEOUT

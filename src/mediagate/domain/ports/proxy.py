"""Port for building and resolving proxy URLs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from mediagate.domain.entities import ProxyTarget


@runtime_checkable
class ProxyUrlPort(Protocol):
    """Wraps origin URLs so clients fetch them through this server."""

    def create_proxy_url(
        self, origin_url: str, headers: Mapping[str, str] | None = None
    ) -> str: ...

    def resolve_proxy_url(self, proxy_url: str) -> ProxyTarget: ...

    def is_proxy_url(self, url: str) -> bool: ...

"""Port for provider registration and lookup."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from mediagate.domain.entities import ContentType, Diagnostic, ProviderDescriptor
from mediagate.domain.providers.base import ProviderProtocol


@runtime_checkable
class ProviderRegistryPort(Protocol):
    """Synchronous interface for provider registration, discovery and lookup."""

    def register(
        self, provider: ProviderProtocol, *, overwrite: bool = False
    ) -> None: ...
    def discover_providers(self, path: Path) -> list[Diagnostic]: ...
    def set_priority(self, provider_id: str, priority: int) -> None: ...
    def get_providers_for(
        self, content_type: ContentType
    ) -> list[ProviderProtocol]: ...
    def all_providers(self) -> list[ProviderProtocol]: ...
    def registration_index(self, provider_id: str) -> int: ...
    def get(self, provider_id: str) -> ProviderProtocol: ...
    def describe(self, provider_id: str) -> ProviderDescriptor: ...
    def list_providers(self) -> list[ProviderDescriptor]: ...
    def enable(self, provider_id: str) -> None: ...
    def disable(self, provider_id: str) -> None: ...

"""Provider registry with priority ordering, runtime enable/disable and discovery."""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from pathlib import Path

import structlog

from mediagate.domain.entities import (
    ContentType,
    Diagnostic,
    DiagnosticCode,
    ProviderDescriptor,
)
from mediagate.domain.providers import (
    DiscoveryLoadError,
    DuplicateProviderError,
    ProviderNotFoundError,
    ProviderProtocol,
)

from .context import ProviderContext
from .loader import instantiate_provider, iter_provider_files, load_provider_classes

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _Entry:
    provider: ProviderProtocol
    enabled: bool
    priority: int
    index: int  # registration slot, the final tie-breaker


def _discovery_diagnostic(message: str, field: str = "") -> Diagnostic:
    return Diagnostic(
        code=DiagnosticCode.DISCOVERY_LOAD_ERROR,
        message=message,
        severity="error",
        field=field,
    )


class ProviderRegistry:
    """
    Copy-on-write provider registry.

    Every mutation builds a new tuple of entries under a lock and swaps
    it in; readers take the current tuple without locking and always see
    a consistent snapshot.

    Priority: higher values are merged first. Equal priorities keep
    registration order.
    """

    def __init__(self, provider_context: ProviderContext | None = None) -> None:
        self._context = provider_context
        self._lock = threading.Lock()
        self._entries: tuple[_Entry, ...] = ()
        self._next_index = 0

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, provider: ProviderProtocol, *, overwrite: bool = False) -> None:
        provider_id = provider.id
        with self._lock:
            entries = list(self._entries)
            for pos, entry in enumerate(entries):
                if entry.provider.id != provider_id:
                    continue
                if not overwrite:
                    raise DuplicateProviderError(
                        f"Provider id '{provider_id}' already registered"
                    )
                entries[pos] = _Entry(
                    provider=provider,
                    enabled=bool(provider.enabled),
                    priority=int(provider.priority),
                    index=entry.index,
                )
                self._entries = tuple(entries)
                log.info("provider_replaced", provider=provider_id)
                return

            entries.append(
                _Entry(
                    provider=provider,
                    enabled=bool(provider.enabled),
                    priority=int(provider.priority),
                    index=self._next_index,
                )
            )
            self._next_index += 1
            self._entries = tuple(entries)

        log.info(
            "provider_registered",
            provider=provider_id,
            priority=provider.priority,
            enabled=provider.enabled,
        )

    def discover_providers(self, path: Path) -> list[Diagnostic]:
        """Load every provider module in *path* and register its classes.

        One bad module (or class) yields one ``DISCOVERY_LOAD_ERROR``
        diagnostic and is skipped; discovery itself never raises.
        """
        path = Path(path)
        if not path.is_dir():
            log.warning("provider_directory_not_found", directory=str(path))
            return [
                _discovery_diagnostic(
                    f"Provider directory not found: {path}", field=str(path)
                )
            ]

        diagnostics: list[Diagnostic] = []
        registered = 0
        for file in iter_provider_files(path):
            try:
                _, classes = load_provider_classes(file)
            except DiscoveryLoadError as e:
                log.error(
                    "provider_load_failed",
                    provider_file=str(file),
                    error_message=str(e),
                )
                diagnostics.append(
                    _discovery_diagnostic(
                        f"Failed to load provider module {file.name}",
                        field=file.name,
                    )
                )
                continue

            for cls in classes:
                try:
                    args = () if self._context is None else (self._context,)
                    self.register(instantiate_provider(cls, *args))
                    registered += 1
                except (DiscoveryLoadError, DuplicateProviderError) as e:
                    log.error(
                        "provider_register_failed",
                        provider_file=str(file),
                        provider_class=cls.__name__,
                        error_message=str(e),
                    )
                    diagnostics.append(
                        _discovery_diagnostic(
                            f"{file.name}: {cls.__name__}: {e}", field=file.name
                        )
                    )

        log.info(
            "providers_discovered",
            directory=str(path),
            registered=registered,
            failed=len(diagnostics),
        )
        return diagnostics

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _find(self, provider_id: str) -> _Entry:
        for entry in self._entries:
            if entry.provider.id == provider_id:
                return entry
        raise ProviderNotFoundError(f"Provider '{provider_id}' not found")

    def get(self, provider_id: str) -> ProviderProtocol:
        return self._find(provider_id).provider

    def registration_index(self, provider_id: str) -> int:
        return self._find(provider_id).index

    def all_providers(self) -> list[ProviderProtocol]:
        """Every provider (enabled or not) in registration order."""
        return [entry.provider for entry in self._entries]

    def get_providers_for(self, content_type: ContentType) -> list[ProviderProtocol]:
        """Enabled providers supporting *content_type*, highest priority first."""
        snapshot = self._entries
        eligible = [
            entry
            for entry in snapshot
            if entry.enabled and content_type in entry.provider.capabilities
        ]
        eligible.sort(key=lambda e: (-e.priority, e.index))
        return [entry.provider for entry in eligible]

    def describe(self, provider_id: str) -> ProviderDescriptor:
        return self._descriptor(self._find(provider_id))

    def list_providers(self) -> list[ProviderDescriptor]:
        return [self._descriptor(entry) for entry in self._entries]

    @staticmethod
    def _descriptor(entry: _Entry) -> ProviderDescriptor:
        provider = entry.provider
        return ProviderDescriptor(
            id=provider.id,
            name=provider.name,
            enabled=entry.enabled,
            capabilities=frozenset(provider.capabilities),
            priority=entry.priority,
            base_url=getattr(provider, "base_url", "") or "",
        )

    # ------------------------------------------------------------------
    # Runtime mutation
    # ------------------------------------------------------------------

    def _update(self, provider_id: str, **changes: object) -> None:
        with self._lock:
            entries = list(self._entries)
            for pos, entry in enumerate(entries):
                if entry.provider.id == provider_id:
                    entries[pos] = replace(entry, **changes)  # type: ignore[arg-type]
                    self._entries = tuple(entries)
                    return
        raise ProviderNotFoundError(f"Provider '{provider_id}' not found")

    def enable(self, provider_id: str) -> None:
        self._update(provider_id, enabled=True)
        log.info("provider_enabled", provider=provider_id)

    def disable(self, provider_id: str) -> None:
        self._update(provider_id, enabled=False)
        log.info("provider_disabled", provider=provider_id)

    def set_priority(self, provider_id: str, priority: int) -> None:
        self._update(provider_id, priority=int(priority))
        log.info("provider_priority_set", provider=provider_id, priority=priority)

"""Error taxonomy for provider, cache and proxy failures."""

from __future__ import annotations


class MediagateError(Exception):
    """Base class for all mediagate errors."""


class ProviderError(MediagateError):
    """A provider's own resolution failed (recorded as a diagnostic)."""

    def __init__(self, provider_id: str, message: str) -> None:
        super().__init__(f"{provider_id}: {message}")
        self.provider_id = provider_id


class ProviderTimeoutError(ProviderError):
    """A provider did not answer within its timeout."""

    def __init__(self, provider_id: str, timeout: float) -> None:
        super().__init__(provider_id, f"timed out after {timeout:g}s")
        self.timeout = timeout


class DuplicateProviderError(MediagateError):
    """Raised when a provider id is registered twice without overwrite."""


class ProviderNotFoundError(MediagateError):
    """Raised when a provider id is not known to the registry."""


class DiscoveryLoadError(MediagateError):
    """Raised when a provider module fails to import or instantiate."""


class CacheBackendError(MediagateError):
    """Raised when the cache backend is unavailable."""


class ProxyResolutionError(MediagateError):
    """Raised for malformed, tampered or expired proxy tokens."""

    def __init__(self, message: str, *, forbidden: bool = False) -> None:
        super().__init__(message)
        self.forbidden = forbidden


class InvalidMediaRequestError(MediagateError):
    """Raised when an inbound media request is malformed."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code

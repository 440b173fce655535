from .base import ProviderProtocol
from .exceptions import (
    CacheBackendError,
    DiscoveryLoadError,
    DuplicateProviderError,
    InvalidMediaRequestError,
    MediagateError,
    ProviderError,
    ProviderNotFoundError,
    ProviderTimeoutError,
    ProxyResolutionError,
)

__all__ = [
    "CacheBackendError",
    "DiscoveryLoadError",
    "DuplicateProviderError",
    "InvalidMediaRequestError",
    "MediagateError",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderProtocol",
    "ProviderTimeoutError",
    "ProxyResolutionError",
]

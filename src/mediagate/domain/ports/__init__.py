from .cache import CachePort
from .metadata import MediaMetadata, MetadataLookupPort
from .provider_registry import ProviderRegistryPort
from .proxy import ProxyUrlPort
from .source_cache import SourceCacheRepository

__all__ = [
    "CachePort",
    "MediaMetadata",
    "MetadataLookupPort",
    "ProviderRegistryPort",
    "ProxyUrlPort",
    "SourceCacheRepository",
]

from .source_cache import CacheSourceRepository

__all__ = ["CacheSourceRepository"]

from .hls import is_hls_response, rewrite_manifest
from .signing import DEFAULT_PROXY_PATH, ProxyService

__all__ = [
    "DEFAULT_PROXY_PATH",
    "ProxyService",
    "is_hls_response",
    "rewrite_manifest",
]

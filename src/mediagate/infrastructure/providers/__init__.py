from .context import ProviderContext
from .helpers import empty_result, infer_quality, infer_type
from .httpx_base import HttpxProviderBase
from .registry import ProviderRegistry

__all__ = [
    "HttpxProviderBase",
    "ProviderContext",
    "ProviderRegistry",
    "empty_result",
    "infer_quality",
    "infer_type",
]

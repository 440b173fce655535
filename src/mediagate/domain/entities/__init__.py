from .health import HealthReport, ProbeResult
from .media import (
    CONTENT_TYPES,
    STREAM_TYPES,
    AudioTrack,
    ContentType,
    Diagnostic,
    DiagnosticCode,
    MediaRequest,
    ProviderAttribution,
    ProviderDescriptor,
    ProviderResult,
    QualityRank,
    QualityTag,
    Severity,
    Source,
    SourceResponse,
    StreamType,
    Subtitle,
    SubtitleFormat,
    quality_rank,
)
from .proxy import ProxyTarget

__all__ = [
    "CONTENT_TYPES",
    "STREAM_TYPES",
    "AudioTrack",
    "ContentType",
    "Diagnostic",
    "DiagnosticCode",
    "HealthReport",
    "MediaRequest",
    "ProbeResult",
    "ProviderAttribution",
    "ProviderDescriptor",
    "ProviderResult",
    "ProxyTarget",
    "QualityRank",
    "QualityTag",
    "Severity",
    "Source",
    "SourceResponse",
    "StreamType",
    "Subtitle",
    "SubtitleFormat",
    "quality_rank",
]

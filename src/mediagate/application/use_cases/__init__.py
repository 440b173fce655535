from .check_health import HealthCheckUseCase
from .resolve_sources import SourceResolutionUseCase, fingerprint, validate_request

__all__ = [
    "HealthCheckUseCase",
    "SourceResolutionUseCase",
    "fingerprint",
    "validate_request",
]

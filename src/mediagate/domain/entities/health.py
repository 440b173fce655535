"""Health probe value objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ProbeResult:
    """Raw output from a single reachability probe."""

    started_at: datetime
    duration_ms: float
    ok: bool
    error_kind: str | None = None  # "timeout", "captcha", "http_error"
    http_status: int | None = None
    captcha_detected: bool = False


@dataclass(frozen=True)
class HealthReport:
    """Outcome of one ``check_all`` run."""

    checked_at: datetime
    providers: dict[str, bool] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return all(self.providers.values())

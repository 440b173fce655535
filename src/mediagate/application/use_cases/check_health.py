"""Provider health check use case (on demand and periodic)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog

from mediagate.domain.entities import HealthReport
from mediagate.domain.ports.provider_registry import ProviderRegistryPort
from mediagate.domain.providers import ProviderProtocol

log = structlog.get_logger(__name__)

DEFAULT_HEALTH_TIMEOUT = 5.0


class HealthCheckUseCase:
    """Probe every registered provider, including disabled ones.

    The last report is kept in ``last_report`` so that a periodic
    monitor (``run_forever``) and the health endpoint share results.
    """

    def __init__(
        self,
        *,
        registry: ProviderRegistryPort,
        timeout: float = DEFAULT_HEALTH_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._timeout = timeout
        self._last_report: HealthReport | None = None

    @property
    def last_report(self) -> HealthReport | None:
        return self._last_report

    async def _check_one(self, provider: ProviderProtocol) -> tuple[str, bool]:
        try:
            ok = await asyncio.wait_for(provider.health_check(), timeout=self._timeout)
            return provider.id, bool(ok)
        except TimeoutError:
            log.warning("health_check_timeout", provider=provider.id, timeout=self._timeout)
        except Exception:  # noqa: BLE001
            log.warning("health_check_error", provider=provider.id, exc_info=True)
        return provider.id, False

    async def check_all(self) -> dict[str, bool]:
        """Run all health checks concurrently; failures report ``False``."""
        providers = self._registry.all_providers()
        results = await asyncio.gather(*(self._check_one(p) for p in providers))
        report = dict(results)
        self._last_report = HealthReport(
            checked_at=datetime.now(timezone.utc), providers=report
        )
        log.info(
            "health_check_done",
            total=len(report),
            healthy=sum(1 for ok in report.values() if ok),
        )
        return report

    async def run_forever(self, interval_seconds: float) -> None:
        """Refresh the report every *interval_seconds* until cancelled."""
        log.info("health_monitor_started", interval_seconds=interval_seconds)
        try:
            while True:
                await self.check_all()
                await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            log.info("health_monitor_stopped")
            raise

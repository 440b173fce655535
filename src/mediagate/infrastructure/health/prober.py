"""Health prober: HEAD/GET reachability check against provider base URLs."""

from __future__ import annotations

import time
from datetime import datetime, timezone

import httpx
import structlog

from mediagate.domain.entities import ProbeResult

log = structlog.get_logger(__name__)

_CF_MARKERS: tuple[str, ...] = (
    "Just a moment",
    "challenge-platform",
    "cf-error-details",
    "Attention Required",
    "cf-turnstile",
)


def is_cloudflare_challenge(status_code: int, html: str) -> bool:
    """Return *True* when *status_code* + *html* indicate a CF challenge/block.

    Cloudflare uses several block types:
    - JS challenge: 503 + "Just a moment" / "challenge-platform"
    - WAF block:    403 + "Attention Required" / "cf-error-details"
    - Turnstile:    403/503 + "cf-turnstile"
    """
    if status_code not in (403, 503):
        return False
    return any(marker in html for marker in _CF_MARKERS)


class HealthProber:
    """Probes provider base URLs to check reachability and latency.

    Strategy:
    1. HEAD request to the base URL.
    2. On 405/501 (method not allowed), fall back to GET with
       ``Range: bytes=0-0`` to minimise bandwidth.

    A Cloudflare challenge page counts as unreachable: the provider's
    scraping requests would be blocked the same way.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        timeout: float = 5.0,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._http = http_client
        self._timeout = timeout
        self._headers = dict(headers or {})

    async def probe(self, base_url: str) -> ProbeResult:
        """Probe a single base URL and return a ProbeResult."""
        started_at = datetime.now(timezone.utc)
        t0 = time.monotonic()

        try:
            resp = await self._http.head(
                base_url,
                timeout=self._timeout,
                follow_redirects=True,
                headers=self._headers,
            )

            if resp.status_code in (405, 501):
                resp = await self._http.get(
                    base_url,
                    timeout=self._timeout,
                    follow_redirects=True,
                    headers={**self._headers, "Range": "bytes=0-0"},
                )
                # GET has a body: use full body-based CF detection
                captcha = is_cloudflare_challenge(resp.status_code, resp.text)
            else:
                # HEAD has no body: heuristic is cf-ray header + 403/503
                captcha = resp.status_code in (403, 503) and "cf-ray" in resp.headers

            duration_ms = (time.monotonic() - t0) * 1000
            ok = resp.status_code < 400 and not captcha

            return ProbeResult(
                started_at=started_at,
                duration_ms=duration_ms,
                ok=ok,
                http_status=resp.status_code,
                captcha_detected=captcha,
                error_kind="captcha" if captcha else None,
            )
        except httpx.TimeoutException:
            duration_ms = (time.monotonic() - t0) * 1000
            return ProbeResult(
                started_at=started_at,
                duration_ms=duration_ms,
                ok=False,
                error_kind="timeout",
            )
        except httpx.HTTPError as exc:
            duration_ms = (time.monotonic() - t0) * 1000
            log.debug(
                "health_probe_error",
                url=base_url,
                error=str(exc),
            )
            return ProbeResult(
                started_at=started_at,
                duration_ms=duration_ms,
                ok=False,
                error_kind="http_error",
            )

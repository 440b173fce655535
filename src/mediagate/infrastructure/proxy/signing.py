"""Signed, self-contained proxy URLs.

A proxy URL carries the origin URL and the headers the origin needs in a
URL-safe base64 JSON payload (``data``), plus an HMAC-SHA256 signature
(``sig``) over that payload:

    {public_base_url}/v1/proxy?data=<payload>&sig=<hex>

Nothing is stored server-side. Tokens stay valid across restarts as long
as the secret does; with ``token_ttl_seconds > 0`` they also carry an
expiry timestamp (``e``).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from collections.abc import Mapping
from urllib.parse import parse_qs, urlencode, urlsplit

import structlog

from mediagate.domain.entities import ProxyTarget
from mediagate.domain.providers.exceptions import ProxyResolutionError

log = structlog.get_logger(__name__)

DEFAULT_PROXY_PATH = "/v1/proxy"


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


def sign_payload(payload: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of *payload*."""
    digest = hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256)
    return digest.hexdigest()


def _require_http_url(url: str) -> None:
    parsed = urlsplit(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Proxy origin must be an absolute http(s) URL: {url!r}")


class ProxyService:
    """Builds and resolves signed proxy URLs (implements ``ProxyUrlPort``)."""

    def __init__(
        self,
        *,
        public_base_url: str,
        secret: str,
        path: str = DEFAULT_PROXY_PATH,
        token_ttl_seconds: int = 0,
    ) -> None:
        if not secret:
            raise ValueError("Proxy secret must not be empty")
        self._base = public_base_url.rstrip("/")
        self._path = "/" + path.strip("/")
        self._secret = secret
        self._ttl = token_ttl_seconds

    @property
    def endpoint(self) -> str:
        return f"{self._base}{self._path}"

    def is_proxy_url(self, url: str) -> bool:
        return url.startswith(f"{self.endpoint}?")

    def create_proxy_url(
        self, origin_url: str, headers: Mapping[str, str] | None = None
    ) -> str:
        """Wrap *origin_url* (+ headers) into a signed proxy URL.

        URLs that already point at this proxy are returned unchanged.
        """
        if self.is_proxy_url(origin_url):
            return origin_url
        _require_http_url(origin_url)

        body: dict[str, object] = {
            "u": origin_url,
            "h": {str(k): str(v) for k, v in (headers or {}).items()},
        }
        if self._ttl > 0:
            body["e"] = int(time.time()) + self._ttl

        payload = _b64encode(
            json.dumps(body, separators=(",", ":"), sort_keys=True).encode("utf-8")
        )
        query = urlencode({"data": payload, "sig": sign_payload(payload, self._secret)})
        return f"{self.endpoint}?{query}"

    def resolve_proxy_url(self, proxy_url: str) -> ProxyTarget:
        """Decode a full proxy URL back into origin URL + headers."""
        parsed = urlsplit(proxy_url)
        params = parse_qs(parsed.query)
        data = params.get("data", [""])[0]
        sig = params.get("sig", [""])[0]
        return self.resolve_token(data, sig)

    def resolve_token(self, data: str, sig: str) -> ProxyTarget:
        """Verify and decode the ``data``/``sig`` query parameters.

        Raises:
            ProxyResolutionError: malformed payload (client error) or bad
                signature / expired token (``forbidden=True``).
        """
        if not data or not sig:
            raise ProxyResolutionError("missing proxy token")

        expected = sign_payload(data, self._secret)
        if not hmac.compare_digest(sig.encode("utf-8"), expected.encode("ascii")):
            log.warning("proxy_signature_mismatch")
            raise ProxyResolutionError("invalid proxy signature", forbidden=True)

        try:
            body = json.loads(_b64decode(data))
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise ProxyResolutionError(f"malformed proxy token: {e}") from e

        if not isinstance(body, dict) or not isinstance(body.get("u"), str):
            raise ProxyResolutionError("proxy token has no origin URL")
        headers = body.get("h", {})
        if not isinstance(headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            raise ProxyResolutionError("proxy token headers must be a string mapping")

        expires_at = body.get("e")
        if expires_at is not None:
            if not isinstance(expires_at, int):
                raise ProxyResolutionError("invalid proxy token expiry")
            if int(time.time()) > expires_at:
                raise ProxyResolutionError("proxy token expired", forbidden=True)

        try:
            _require_http_url(body["u"])
        except ValueError as e:
            raise ProxyResolutionError(str(e)) from e

        return ProxyTarget(origin_url=body["u"], headers=headers, expires_at=expires_at)

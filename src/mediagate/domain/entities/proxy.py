"""Proxy token value object."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProxyTarget:
    """Origin URL plus the headers the origin requires.

    Decoded from a signed proxy token at fetch time.
    ``expires_at`` is a UNIX timestamp, ``None`` for non-expiring tokens.
    """

    origin_url: str
    headers: dict[str, str] = field(default_factory=dict)
    expires_at: int | None = None

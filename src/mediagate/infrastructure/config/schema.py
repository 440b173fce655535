"""Pydantic configuration models with validation."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
CacheBackendName = Literal["memory", "redis", "diskcache"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class CacheConfig(BaseModel):
    """Cache configuration (backend-agnostic)."""

    backend: CacheBackendName = Field(
        default="memory",
        description="Cache backend: 'memory', 'redis' or 'diskcache' (SQLite)",
    )

    # Diskcache settings
    directory: Path = Field(
        default=Path("./.cache/mediagate"),
        alias="dir",
        description="Diskcache SQLite DB path",
    )

    # Redis settings
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_password: Optional[str] = Field(default=None, description="Redis password")
    redis_db: int = Field(default=0, description="Redis database index")

    # Shared settings
    sources_ttl_seconds: int = Field(
        default=7200,
        description="TTL for results that contain sources (seconds).",
    )
    subtitles_ttl_seconds: int = Field(
        default=86400,
        description="TTL for subtitle-only results (seconds).",
    )
    max_concurrent: int = Field(
        default=10,
        description="Max parallel cache ops (semaphore limit)",
    )
    max_entries: int = Field(
        default=10_000,
        description="Max entries kept by the in-memory backend",
    )

    model_config = {"populate_by_name": True}

    @field_validator("directory", mode="before")
    @classmethod
    def _validate_dir(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("sources_ttl_seconds", "subtitles_ttl_seconds")
    @classmethod
    def _validate_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache TTLs must be >= 0")
        return v


class ProviderOverride(BaseModel):
    """Per-provider overrides applied after discovery (YAML providers.overrides)."""

    enabled: Optional[bool] = None
    priority: Optional[int] = None


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned
      (server/providers/http/cache/proxy/health/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="mediagate", description="Server name.")
    app_version: str = Field(default="1.0.0", description="Reported server version.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Server (YAML section: server.*)
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("host", AliasPath("server", "host")),
        description="Bind address.",
    )
    port: int = Field(
        default=3000,
        validation_alias=AliasChoices("port", AliasPath("server", "port")),
        description="Bind port.",
    )
    public_base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "public_base_url",
            AliasPath("server", "public_base_url"),
        ),
        description=(
            "Externally visible base URL used in proxy URLs. "
            "If unset, derived from host/port."
        ),
    )

    # Providers (YAML section: providers.*)
    provider_dir: Path = Field(
        default=Path("./providers"),
        validation_alias=AliasChoices(
            "provider_dir",
            AliasPath("providers", "provider_dir"),
        ),
        description="Directory containing provider modules.",
    )
    provider_timeout_seconds: float = Field(
        default=10.0,
        validation_alias=AliasChoices(
            "provider_timeout_seconds",
            AliasPath("providers", "timeout_seconds"),
        ),
        description="Per-provider timeout for one resolution (seconds).",
    )
    provider_overrides: dict[str, ProviderOverride] = Field(
        default_factory=dict,
        validation_alias=AliasChoices(
            "provider_overrides",
            AliasPath("providers", "overrides"),
        ),
        description="Per-provider enabled/priority overrides keyed by provider id.",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Default timeout for outgoing HTTP requests.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="Mediagate/1.0.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Cache (YAML section: cache.*)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    # Proxy (YAML section: proxy.*)
    proxy_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "proxy_secret",
            AliasPath("proxy", "secret"),
        ),
        description="HMAC secret for proxy tokens. Unset = ephemeral per process.",
    )
    proxy_token_ttl_seconds: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "proxy_token_ttl_seconds",
            AliasPath("proxy", "token_ttl_seconds"),
        ),
        description="Proxy token lifetime in seconds. 0 = no expiry.",
    )

    # Health (YAML section: health.*)
    health_timeout_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "health_timeout_seconds",
            AliasPath("health", "timeout_seconds"),
        ),
        description="Per-provider health check timeout (seconds).",
    )
    health_interval_seconds: float = Field(
        default=0,
        validation_alias=AliasChoices(
            "health_interval_seconds",
            AliasPath("health", "interval_seconds"),
        ),
        description="Background health check interval. 0 = on demand only.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    # TMDB metadata enrichment (optional)
    tmdb_api_key: Optional[str] = Field(
        default=None,
        description="TMDB API key for title/year/IMDb enrichment.",
    )
    tmdb_cache_ttl_seconds: int = Field(
        default=86400,
        description="TTL for cached TMDB lookups (seconds).",
    )

    @field_validator("provider_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator(
        "http_timeout_seconds", "provider_timeout_seconds", "health_timeout_seconds"
    )
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("proxy_token_ttl_seconds", "health_interval_seconds")
    @classmethod
    def _validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("port")
    @classmethod
    def _validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError("port must be in 1..65535")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        if not self.public_base_url:
            host = "localhost" if self.host in ("0.0.0.0", "::", "") else self.host
            self.public_base_url = f"http://{host}:{self.port}"
        self.public_base_url = self.public_base_url.rstrip("/")

        # Cached results hold proxy URLs; they must expire before those URLs do.
        if self.proxy_token_ttl_seconds > 0:
            limit = max(
                1,
                self.proxy_token_ttl_seconds - math.ceil(self.provider_timeout_seconds),
            )
            for name in ("sources_ttl_seconds", "subtitles_ttl_seconds"):
                current = getattr(self.cache, name)
                if current == 0 or current > limit:
                    setattr(self.cache, name, limit)
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        The proxy secret is masked.
        """
        return {
            "app_name": self.app_name,
            "app_version": self.app_version,
            "environment": self.environment,
            "server": {
                "host": self.host,
                "port": self.port,
                "public_base_url": self.public_base_url,
            },
            "providers": {
                "provider_dir": str(self.provider_dir),
                "timeout_seconds": self.provider_timeout_seconds,
                "overrides": {
                    k: v.model_dump(exclude_none=True)
                    for k, v in self.provider_overrides.items()
                },
            },
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "cache": self.cache.model_dump(mode="json", by_alias=True),
            "proxy": {
                "secret": "***" if self.proxy_secret else None,
                "token_ttl_seconds": self.proxy_token_ttl_seconds,
            },
            "health": {
                "timeout_seconds": self.health_timeout_seconds,
                "interval_seconds": self.health_interval_seconds,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read MEDIAGATE_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - MEDIAGATE_PORT
    - MEDIAGATE_PROVIDER_DIR
    - MEDIAGATE_CACHE_BACKEND
    - MEDIAGATE_PROXY_SECRET
    - MEDIAGATE_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="MEDIAGATE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    app_version: Optional[str] = None
    environment: Optional[Environment] = None

    host: Optional[str] = None
    port: Optional[int] = None
    public_base_url: Optional[str] = None

    provider_dir: Optional[Path] = None
    provider_timeout_seconds: Optional[float] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    cache_backend: Optional[CacheBackendName] = None
    cache_dir: Optional[Path] = None
    cache_redis_host: Optional[str] = None
    cache_redis_port: Optional[int] = None
    cache_redis_password: Optional[str] = None
    cache_redis_db: Optional[int] = None
    cache_sources_ttl_seconds: Optional[int] = None
    cache_subtitles_ttl_seconds: Optional[int] = None
    cache_max_concurrent: Optional[int] = None
    cache_max_entries: Optional[int] = None

    proxy_secret: Optional[str] = None
    proxy_token_ttl_seconds: Optional[int] = None

    health_timeout_seconds: Optional[float] = None
    health_interval_seconds: Optional[float] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    tmdb_api_key: Optional[str] = None
    tmdb_cache_ttl_seconds: Optional[int] = None

    @field_validator("provider_dir", "cache_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)

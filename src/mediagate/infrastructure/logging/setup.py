"""structlog + stdlib logging wiring for the gateway and uvicorn.

Both our own events and foreign records (uvicorn, httpx) end up in the
same ProcessorFormatter, so console/JSON output looks identical no matter
who logged. Proxy URLs carry the origin headers inside their signed
``data`` parameter; the access log would otherwise print them verbatim.
"""

from __future__ import annotations

import copy
import logging
import logging.config
import re
from datetime import datetime, timezone
from typing import Any

import structlog

from mediagate.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

REDACTED = "***"

_PROXY_PARAM_RE = re.compile(r"([?&](?:data|sig)=)[^&\s\"']+")
_SECRET_KEYS: frozenset[str] = frozenset(
    {"authorization", "cookie", "proxy_secret", "tmdb_api_key"}
)

# Loggers we pin explicitly; httpx/httpcore stay at WARNING unless DEBUG.
_HTTP_CLIENT_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

BASE_LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {},
    "handlers": {
        "default": {
            "formatter": "structlog",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stderr",
        },
        "access": {
            "formatter": "structlog",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "uvicorn": {"handlers": ["default"], "level": "INFO", "propagate": False},
        "uvicorn.error": {"level": "INFO"},
        "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
        **{name: {"level": "WARNING"} for name in _HTTP_CLIENT_LOGGERS},
    },
}


def redact_proxy_tokens(text: str) -> str:
    """Replace the ``data``/``sig`` values of any proxy URL inside *text*."""
    return _PROXY_PARAM_RE.sub(rf"\g<1>{REDACTED}", text)


def _redact(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if key.lower() in _SECRET_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str) and ("data=" in value or "sig=" in value):
            event_dict[key] = redact_proxy_tokens(value)
    return event_dict


def _strip_uvicorn_color(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("color_message", None)
    return event_dict


def _stamp_foreign_record(_: Any, __: Any, event_dict: dict[str, Any]) -> dict[str, Any]:
    # Foreign records keep the time they were created, in UTC.
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        event_dict["timestamp"] = created.isoformat().replace("+00:00", "Z")
    return event_dict


def _pre_chain(timestamper: structlog.typing.Processor) -> list[structlog.typing.Processor]:
    return [
        _strip_uvicorn_color,
        structlog.contextvars.merge_contextvars,
        timestamper,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _redact,
    ]


def _renderer(config: AppConfig) -> structlog.typing.Processor:
    if config.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def build_logging_config(config: AppConfig) -> dict[str, Any]:
    """Return the dictConfig shared by our process and uvicorn.

    ``config.log_level`` applies to the root logger and the uvicorn loggers.
    The HTTP client loggers only follow it when DEBUG is requested.
    """
    cfg = copy.deepcopy(BASE_LOGGING_CONFIG)
    cfg["formatters"]["structlog"] = {
        "()": structlog.stdlib.ProcessorFormatter,
        "foreign_pre_chain": _pre_chain(_stamp_foreign_record),
        "processors": [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(config),
        ],
    }

    level = config.log_level
    for name, logger_cfg in cfg["loggers"].items():
        if name not in _HTTP_CLIENT_LOGGERS or level == "DEBUG":
            logger_cfg["level"] = level
    cfg["root"] = {"handlers": ["default"], "level": level}
    return cfg


def configure_logging(config: AppConfig) -> dict[str, Any]:
    """Configure structlog and stdlib logging; return the applied dictConfig.

    Pass the result to uvicorn as ``log_config``.
    """
    structlog.configure(
        processors=[
            *_pre_chain(structlog.processors.TimeStamper(fmt="iso", utc=True)),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    cfg = build_logging_config(config)
    logging.config.dictConfig(cfg)

    log.info(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )
    return cfg

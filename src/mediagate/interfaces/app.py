"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from mediagate.domain.providers import (
    InvalidMediaRequestError,
    ProviderNotFoundError,
    ProxyResolutionError,
)
from mediagate.infrastructure.config import AppConfig
from mediagate.interfaces.api.presenters import error_body
from mediagate.interfaces.app_state import AppState
from mediagate.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InvalidMediaRequestError)
    async def _invalid_media_request(
        request: Request, exc: InvalidMediaRequestError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_body(exc.code, str(exc)))

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("INVALID_REQUEST", "Malformed request parameters"),
        )

    @app.exception_handler(ProxyResolutionError)
    async def _proxy_resolution(
        request: Request, exc: ProxyResolutionError
    ) -> JSONResponse:
        if exc.forbidden:
            return JSONResponse(
                status_code=403, content=error_body("PROXY_FORBIDDEN", str(exc))
            )
        return JSONResponse(
            status_code=400, content=error_body("INVALID_PROXY_TOKEN", str(exc))
        )

    @app.exception_handler(ProviderNotFoundError)
    async def _provider_not_found(
        request: Request, exc: ProviderNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=404, content=error_body("PROVIDER_NOT_FOUND", str(exc))
        )


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration ONLY, NO resource initialization.

    Resources (HTTP client, cache, providers) are created in lifespan().
    """
    app = FastAPI(
        title=config.app_name,
        description="Aggregates and proxies media sources from pluggable providers",
        version=config.app_version,
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    _register_exception_handlers(app)

    from mediagate.interfaces.api.health import router as health_router
    from mediagate.interfaces.api.providers import router as providers_router
    from mediagate.interfaces.api.proxy import router as proxy_router
    from mediagate.interfaces.api.sources import router as sources_router

    app.include_router(sources_router, prefix="/v1")
    app.include_router(proxy_router, prefix="/v1")
    app.include_router(health_router, prefix="/v1")
    app.include_router(providers_router, prefix="/v1")

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        """Liveness probe: returns 200 as long as the process is running."""
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            status_code = getattr(locals().get("response", None), "status_code", 500)

            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app

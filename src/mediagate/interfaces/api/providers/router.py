"""Provider listing and runtime enable/disable."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request

from mediagate.interfaces.api.presenters import present_diagnostic, present_provider
from mediagate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("")
async def list_providers(request: Request) -> dict[str, Any]:
    state = cast(AppState, request.app.state)
    return {
        "providers": [present_provider(d) for d in state.registry.list_providers()],
        "diagnostics": [
            present_diagnostic(d) for d in state.discovery_diagnostics
        ],
    }


@router.post("/{provider_id}/enable")
async def enable_provider(request: Request, provider_id: str) -> dict[str, Any]:
    state = cast(AppState, request.app.state)
    state.registry.enable(provider_id)
    return present_provider(state.registry.describe(provider_id))


@router.post("/{provider_id}/disable")
async def disable_provider(request: Request, provider_id: str) -> dict[str, Any]:
    state = cast(AppState, request.app.state)
    state.registry.disable(provider_id)
    return present_provider(state.registry.describe(provider_id))

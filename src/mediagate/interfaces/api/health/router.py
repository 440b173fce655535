"""Provider health endpoint."""

from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Request

from mediagate.interfaces.app_state import AppState

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Provider reachability.

    With a background monitor running, the last report is returned;
    otherwise every provider is probed now.
    """
    state = cast(AppState, request.app.state)
    report = state.health_uc.last_report
    if state._health_task is not None and report is not None:
        providers = dict(report.providers)
    else:
        providers = await state.health_uc.check_all()

    return {
        "status": "ok" if all(providers.values()) else "degraded",
        "name": state.config.app_name,
        "version": state.config.app_version,
        "providers": providers,
    }

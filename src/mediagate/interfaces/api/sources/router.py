"""Source resolution endpoints (movies, tv episodes)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from mediagate.domain.entities import MediaRequest
from mediagate.domain.providers import InvalidMediaRequestError
from mediagate.interfaces.api.presenters import present_source_response
from mediagate.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["sources"])


def _parse_int(value: str | None, *, code: str, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidMediaRequestError(
            code, f"{name} must be an integer, got {value!r}"
        ) from None


@router.get("/movies/{tmdb_id}")
async def movie_sources(request: Request, tmdb_id: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    media = MediaRequest(
        content_type="movie",
        external_id=tmdb_id,
        title=request.query_params.get("title") or None,
        year=_parse_int(
            request.query_params.get("year"), code="INVALID_YEAR", name="year"
        ),
    )
    response = await state.resolve_uc.resolve(media)
    return JSONResponse(content=present_source_response(response))


@router.get("/tv/{tmdb_id}/seasons/{season}/episodes/{episode}")
async def episode_sources(
    request: Request, tmdb_id: str, season: str, episode: str
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    media = MediaRequest(
        content_type="tv",
        external_id=tmdb_id,
        season=_parse_int(season, code="INVALID_SEASON", name="season"),
        episode=_parse_int(episode, code="INVALID_EPISODE", name="episode"),
        title=request.query_params.get("title") or None,
        year=_parse_int(
            request.query_params.get("year"), code="INVALID_YEAR", name="year"
        ),
    )
    response = await state.resolve_uc.resolve(media)
    return JSONResponse(content=present_source_response(response))

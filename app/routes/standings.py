"""Public standings tile: SofaScore standings behind a 5 minute cache.

Fallback chain: fresh cache -> API -> stale cache -> bundled mock table.
The X-Cache header tells which one answered (HIT, MISS, STALE, MOCK).
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.etl.base import SportsDataProvider
from app.etl.sofascore_provider import SofascoreAPIError, get_sports_provider
from app.security import limiter
from app.utils.cache import KeyedCache
from app.utils.standings import (
    StandingsGroupNotFound,
    build_standings_response,
    mock_standings,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/sofascore", tags=["standings"])

_standings_cache = KeyedCache(ttl=settings.STANDINGS_CACHE_SECONDS)

FRESH_CACHE_CONTROL = "public, s-maxage=300, stale-while-revalidate=600"
FALLBACK_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=120"


def _respond(data: dict, cache_state: str, api_failed: bool = False) -> JSONResponse:
    headers = {
        "Cache-Control": FRESH_CACHE_CONTROL if cache_state in ("HIT", "MISS") else FALLBACK_CACHE_CONTROL,
        "X-Cache": cache_state,
    }
    if api_failed:
        headers["X-API-Failed"] = "true"
    return JSONResponse(content=data, headers=headers)


@router.get("/standings")
@limiter.limit(settings.RATE_LIMIT_PER_MINUTE)
async def get_standings(
    request: Request,
    tournament_id: Optional[int] = Query(None, alias="tournamentId"),
    season_id: Optional[int] = Query(None, alias="seasonId"),
    group: Optional[str] = Query(None),
    provider: SportsDataProvider = Depends(get_sports_provider),
):
    """Standings of a tournament season (Brasileirão by default)."""
    tournament_id = tournament_id or settings.BRASILEIRAO_TOURNAMENT_ID
    season_id = season_id or settings.BRASILEIRAO_SEASON_ID
    cache_key = (tournament_id, season_id, group)

    hit, cached = _standings_cache.get(cache_key)
    if hit:
        return _respond(cached, "HIT")

    if not settings.RAPIDAPI_KEY:
        logger.warning("[STANDINGS] RAPIDAPI_KEY not configured, using mock data")
        return _respond(mock_standings(), "MOCK")

    data = None
    try:
        payload = await provider.get_standings(tournament_id, season_id)
        data = build_standings_response(payload, tournament_id, group)
    except StandingsGroupNotFound as e:
        raise HTTPException(
            status_code=404,
            detail={
                "message": f"Group '{e.requested}' not found",
                "available_groups": e.available,
            },
            headers={"X-Available-Groups": ",".join(e.available)},
        )
    except (SofascoreAPIError, httpx.HTTPError) as e:
        logger.error(f"[STANDINGS] SofaScore fetch failed for {tournament_id}/{season_id}: {e}")
    except (KeyError, TypeError) as e:
        logger.error(f"[STANDINGS] Unexpected standings payload for {tournament_id}/{season_id}: {e}")

    if data is not None:
        _standings_cache.set(cache_key, data)
        return _respond(data, "MISS")

    found, stale = _standings_cache.get_stale(cache_key)
    if found:
        return _respond(stale, "STALE", api_failed=True)

    return _respond(mock_standings(), "MOCK", api_failed=True)


def clear_standings_cache() -> None:
    _standings_cache.invalidate()

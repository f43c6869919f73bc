"""User-facing API: profile, upcoming matches, predictions, ranking, prize pool.

Every endpoint requires a Supabase access token (get_current_profile).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_async_session
from app.logos.service import get_team_logo_path
from app.models import UserProfile
from app.payments.service import get_active_prize_pool, serialize_prize_pool
from app.predictions.service import (
    get_upcoming_matches,
    get_user_predictions,
    serialize_prediction,
    submit_prediction,
)
from app.scoring.ranking import general_ranking, tournament_ranking
from app.security import get_current_profile, limiter
from app.users.levels import level_info

router = APIRouter(prefix="/api", tags=["api"])

logger = logging.getLogger(__name__)
settings = get_settings()


class PredictionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: int = Field(alias="matchId")
    home_team_goals: int = Field(alias="homeTeamGoals")
    away_team_goals: int = Field(alias="awayTeamGoals")


def _favorite_team_logo(profile: UserProfile) -> Optional[str]:
    if profile.favorite_team_logo:
        return profile.favorite_team_logo
    if profile.favorite_team_name:
        return get_team_logo_path(profile.favorite_team_name)
    return None


@router.get("/me")
async def get_me(profile: UserProfile = Depends(get_current_profile)):
    """Caller's profile with level progress."""
    info = level_info(profile.xp, profile.level)
    return {
        "id": profile.id,
        "firebaseId": profile.firebase_id,
        "name": profile.name,
        "email": profile.email,
        "role": profile.role,
        "points": profile.points,
        "predictionsCount": profile.predictions_count,
        "xp": profile.xp,
        "level": info.level,
        "title": info.title,
        "xpInLevel": info.xp_in_level,
        "progressPercent": info.progress_percent,
        "favoriteTeamId": profile.favorite_team_id,
        "favoriteTeamName": profile.favorite_team_name,
        "favoriteTeamLogo": _favorite_team_logo(profile),
        "publicProfile": profile.public_profile,
    }


@router.get("/matches/upcoming")
async def upcoming_matches(
    tournament_id: Optional[int] = Query(None, alias="tournamentId"),
    profile: UserProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_async_session),
):
    matches = await get_upcoming_matches(
        session,
        profile.id,
        window_days=settings.UPCOMING_WINDOW_DAYS,
        tournament_id=tournament_id,
    )
    return {"matches": matches, "count": len(matches)}


@router.post("/predictions")
@limiter.limit(settings.RATE_LIMIT_PER_MINUTE)
async def create_prediction(
    request: Request,
    body: PredictionRequest,
    profile: UserProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_async_session),
):
    """Insert or update the caller's prediction (201 on first submission)."""
    prediction, created = await submit_prediction(
        session,
        profile,
        body.match_id,
        body.home_team_goals,
        body.away_team_goals,
    )
    return JSONResponse(
        status_code=201 if created else 200,
        content=jsonable_encoder(
            {"prediction": serialize_prediction(prediction), "created": created}
        ),
    )


@router.get("/predictions/me")
async def my_predictions(
    tournament_id: Optional[int] = Query(None, alias="tournamentId"),
    profile: UserProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_async_session),
):
    return await get_user_predictions(session, profile.id, tournament_id=tournament_id)


@router.get("/ranking")
async def ranking(
    tournament_id: Optional[int] = Query(None, alias="tournamentId"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    profile: UserProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_async_session),
):
    """General ranking, or the pool's ranking within one tournament."""
    if tournament_id:
        rows = await tournament_ranking(session, tournament_id, limit=limit)
    else:
        rows = await general_ranking(session, limit=limit)
    return {"ranking": rows, "tournamentId": tournament_id}


@router.get("/prize-pool")
async def prize_pool(
    profile: UserProfile = Depends(get_current_profile),
    session: AsyncSession = Depends(get_async_session),
):
    pool = await get_active_prize_pool(session)
    return {"prizePool": serialize_prize_pool(pool)}

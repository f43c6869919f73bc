"""Leaderboards."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import UserProfile, UserTournamentPoints
from app.users.levels import level_title


def accuracy_pct(correct_results: int, predictions_count: int) -> int:
    """Share of correct outcomes, as a rounded percentage (0 without predictions)."""
    if not predictions_count:
        return 0
    # half-up, 12.5 -> 13
    return int(correct_results * 100 / predictions_count + 0.5)


async def general_ranking(session: AsyncSession, limit: Optional[int] = None) -> list[dict]:
    """Public profiles by total points."""
    query = (
        select(UserProfile)
        .where(UserProfile.public_profile.is_(True))
        .order_by(UserProfile.points.desc(), UserProfile.name)
    )
    if limit:
        query = query.limit(limit)

    result = await session.execute(query)
    return [
        {
            "position": index + 1,
            "userId": profile.id,
            "name": profile.name,
            "points": profile.points,
            "predictionsCount": profile.predictions_count,
            "level": profile.level,
            "title": level_title(profile.level),
            "favoriteTeamLogo": profile.favorite_team_logo,
        }
        for index, profile in enumerate(result.scalars().all())
    ]


async def tournament_ranking(
    session: AsyncSession,
    tournament_id: int,
    limit: Optional[int] = None,
) -> list[dict]:
    """Per-tournament standings of the pool, with accuracy."""
    query = (
        select(UserTournamentPoints, UserProfile)
        .join(UserProfile, UserProfile.id == UserTournamentPoints.user_id)
        .where(UserTournamentPoints.tournament_id == tournament_id)
        .order_by(UserTournamentPoints.points.desc(), UserProfile.name)
    )
    if limit:
        query = query.limit(limit)

    result = await session.execute(query)
    return [
        {
            "position": index + 1,
            "userId": profile.id,
            "name": profile.name,
            "points": points.points,
            "predictionsCount": points.predictions_count,
            "exactScores": points.exact_scores,
            "correctResults": points.correct_results,
            "accuracy": accuracy_pct(points.correct_results, points.predictions_count),
            "favoriteTeamLogo": profile.favorite_team_logo,
        }
        for index, (points, profile) in enumerate(result.all())
    ]

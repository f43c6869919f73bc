"""User-side prediction flow: upcoming matches, submission, history."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ApiError
from app.models import Match, Prediction, UserProfile
from app.scoring.rules import classify_outcome

logger = logging.getLogger(__name__)

MATCH_NOT_FOUND = "Partida não encontrada"
MATCH_CLOSED = "Palpites encerrados para esta partida"
NEGATIVE_GOALS = "Placar inválido"


def serialize_match(match: Match) -> dict:
    return {
        "id": match.id,
        "roundNumber": match.round_number,
        "roundName": match.round_name,
        "groupName": match.group_name,
        "homeTeamId": match.home_team_id,
        "homeTeamName": match.home_team_name,
        "homeTeamShortName": match.home_team_short_name,
        "homeTeamLogo": match.home_team_logo,
        "awayTeamId": match.away_team_id,
        "awayTeamName": match.away_team_name,
        "awayTeamShortName": match.away_team_short_name,
        "awayTeamLogo": match.away_team_logo,
        "startTime": match.start_time,
        "status": match.status,
        "homeScore": match.home_score,
        "awayScore": match.away_score,
        "tournamentId": match.tournament_id,
        "tournamentName": match.tournament_name,
    }


def serialize_prediction(prediction: Prediction) -> dict:
    return {
        "id": prediction.id,
        "matchId": prediction.match_id,
        "homeTeamGoals": prediction.home_team_goals,
        "awayTeamGoals": prediction.away_team_goals,
        "winner": prediction.winner,
        "pointsEarned": prediction.points_earned or 0,
        "isCorrect": bool(prediction.is_correct),
        "isExactScore": bool(prediction.is_exact_score),
        "predictedAt": prediction.predicted_at,
    }


def is_open_for_predictions(match: Match, now: Optional[datetime] = None) -> bool:
    """Predictions close at kick-off or as soon as the status moves on."""
    now = now or datetime.utcnow()
    return match.status == "notstarted" and match.start_time > now


async def get_upcoming_matches(
    session: AsyncSession,
    user_id: str,
    window_days: int = 14,
    tournament_id: Optional[int] = None,
) -> list[dict]:
    """Matches kicking off in the next ``window_days`` with the caller's predictions."""
    now = datetime.utcnow()
    query = (
        select(Match)
        .where(Match.start_time >= now, Match.start_time <= now + timedelta(days=window_days))
        .order_by(Match.start_time)
    )
    if tournament_id:
        query = query.where(Match.tournament_id == tournament_id)

    result = await session.execute(query)
    matches = result.scalars().all()
    if not matches:
        return []

    result = await session.execute(
        select(Prediction).where(
            Prediction.user_id == user_id,
            Prediction.match_id.in_([m.id for m in matches]),
        )
    )
    by_match = {p.match_id: p for p in result.scalars().all()}

    return [
        {
            **serialize_match(match),
            "prediction": serialize_prediction(by_match[match.id]) if match.id in by_match else None,
        }
        for match in matches
    ]


async def submit_prediction(
    session: AsyncSession,
    profile: UserProfile,
    match_id: int,
    home_goals: int,
    away_goals: int,
) -> tuple[Prediction, bool]:
    """
    Insert or update the caller's prediction for a match.

    Returns (prediction, created). The first prediction on a match also
    bumps the profile's predictions_count.

    Raises:
        ApiError: 400 for negative goals or a match no longer open, 404 for
            an unknown match.
    """
    if home_goals < 0 or away_goals < 0:
        raise ApiError(400, NEGATIVE_GOALS)

    match = await session.get(Match, match_id)
    if match is None:
        raise ApiError(404, MATCH_NOT_FOUND)
    if not is_open_for_predictions(match):
        raise ApiError(400, MATCH_CLOSED)

    result = await session.execute(
        select(Prediction).where(
            Prediction.user_id == profile.id,
            Prediction.match_id == match_id,
        )
    )
    prediction = result.scalar_one_or_none()
    winner = classify_outcome(home_goals, away_goals)
    created = prediction is None

    if created:
        prediction = Prediction(
            user_id=profile.id,
            match_id=match_id,
            home_team_goals=home_goals,
            away_team_goals=away_goals,
            winner=winner,
            tournament_id=match.tournament_id,
            season_id=match.season_id,
        )
        session.add(prediction)
        profile.predictions_count = (profile.predictions_count or 0) + 1
        session.add(profile)
    else:
        prediction.home_team_goals = home_goals
        prediction.away_team_goals = away_goals
        prediction.winner = winner
        prediction.updated_at = datetime.utcnow()

    await session.commit()
    await session.refresh(prediction)

    logger.info(
        f"Prediction {'created' if created else 'updated'}: user={profile.id} "
        f"match={match_id} {home_goals}-{away_goals}"
    )
    return prediction, created


async def get_user_predictions(
    session: AsyncSession,
    user_id: str,
    tournament_id: Optional[int] = None,
) -> dict:
    """The caller's predictions, newest first, with per-round totals."""
    query = (
        select(Prediction, Match)
        .join(Match, Match.id == Prediction.match_id)
        .where(Prediction.user_id == user_id)
        .order_by(Prediction.predicted_at.desc())
    )
    if tournament_id:
        query = query.where(Match.tournament_id == tournament_id)

    result = await session.execute(query)

    predictions = []
    rounds: dict[int, dict] = {}
    for prediction, match in result.all():
        predictions.append({
            **serialize_prediction(prediction),
            "tournamentId": match.tournament_id,
            "roundNumber": match.round_number,
            "match": serialize_match(match),
        })

        stats = rounds.setdefault(match.round_number, {
            "roundNumber": match.round_number,
            "total": 0,
            "correct": 0,
            "exact": 0,
            "points": 0,
            "finishedCount": 0,
        })
        stats["total"] += 1
        stats["points"] += prediction.points_earned or 0
        if prediction.is_correct:
            stats["correct"] += 1
        if prediction.is_exact_score:
            stats["exact"] += 1
        if match.status == "finished":
            stats["finishedCount"] += 1

    return {
        "predictions": predictions,
        "rounds": [rounds[key] for key in sorted(rounds)],
    }

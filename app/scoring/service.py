"""
Scoring passes over the database.

calculate_scores applies app.scoring.rules to every prediction of the
selected finished matches, then rebuilds the aggregates the ranking pages
read (user_tournament_points and the users_profiles totals).
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db_utils import bulk_upsert
from app.models import Match, Prediction, UserProfile, UserTournamentPoints
from app.scoring.rules import score_prediction
from app.telemetry.metrics import record_predictions_scored

logger = logging.getLogger(__name__)

NO_FINISHED_MATCHES = "Nenhuma partida finalizada encontrada"
NO_PREDICTIONS = "Nenhum palpite encontrado para as partidas"


def _count_true(column):
    return func.sum(case((column.is_(True), 1), else_=0))


async def calculate_scores(
    session: AsyncSession,
    tournament_id: int,
    season_id: Optional[int] = None,
    round_number: Optional[int] = None,
) -> dict:
    """
    Score every prediction of the tournament's finished matches.

    Narrowed by season and round when given. Returns the summary sent back
    to the admin page; "nothing to do" cases come back as a 200 body with a
    message rather than an error status.
    """
    query = select(Match).where(
        Match.tournament_id == tournament_id,
        Match.status == "finished",
    )
    if season_id:
        query = query.where(Match.season_id == season_id)
    if round_number:
        query = query.where(Match.round_number == round_number)

    result = await session.execute(query)
    matches = {m.id: m for m in result.scalars().all()}

    if not matches:
        logger.info(f"[SCORING] No finished matches for tournament {tournament_id} (round={round_number})")
        return {"error": NO_FINISHED_MATCHES, "scored": 0}

    result = await session.execute(
        select(Prediction).where(Prediction.match_id.in_(list(matches.keys())))
    )
    predictions = result.scalars().all()

    if not predictions:
        return {"scored": 0, "message": NO_PREDICTIONS}

    scored = 0
    for prediction in predictions:
        match = matches.get(prediction.match_id)
        if match is None:
            continue

        score = score_prediction(
            match.home_score,
            match.away_score,
            prediction.home_team_goals,
            prediction.away_team_goals,
        )
        prediction.points_earned = score.points
        prediction.is_correct = score.is_correct
        prediction.is_exact_score = score.is_exact
        prediction.tournament_id = tournament_id
        prediction.season_id = season_id or None
        scored += 1

    await session.flush()
    users_updated = await refresh_tournament_points(session, tournament_id)
    await session.commit()

    record_predictions_scored(scored)
    logger.info(
        f"[SCORING] Tournament {tournament_id}: scored {scored}/{len(predictions)} predictions "
        f"over {len(matches)} matches, {users_updated} users updated"
    )

    return {
        "scored": scored,
        "totalPredictions": len(predictions),
        "matchesProcessed": len(matches),
        "usersUpdated": users_updated,
    }


async def refresh_tournament_points(session: AsyncSession, tournament_id: int) -> int:
    """
    Rebuild user_tournament_points for a tournament and re-total the
    affected users' profile points and prediction counts.

    Does not commit. Returns the number of users touched.
    """
    result = await session.execute(
        select(
            Prediction.user_id,
            func.coalesce(func.sum(Prediction.points_earned), 0),
            func.count(Prediction.id),
            _count_true(Prediction.is_exact_score),
            _count_true(Prediction.is_correct),
        )
        .where(Prediction.tournament_id == tournament_id)
        .group_by(Prediction.user_id)
    )
    rows = result.all()
    if not rows:
        return 0

    now = datetime.utcnow()
    values = [
        {
            "user_id": user_id,
            "tournament_id": tournament_id,
            "points": int(points or 0),
            "predictions_count": int(count or 0),
            "exact_scores": int(exact or 0),
            "correct_results": int(correct or 0),
            "updated_at": now,
        }
        for user_id, points, count, exact, correct in rows
    ]
    await bulk_upsert(
        session,
        UserTournamentPoints,
        values,
        conflict_columns=["user_id", "tournament_id"],
        update_columns=["points", "predictions_count", "exact_scores", "correct_results", "updated_at"],
    )

    user_ids = [row[0] for row in rows]
    result = await session.execute(
        select(
            Prediction.user_id,
            func.coalesce(func.sum(Prediction.points_earned), 0),
            func.count(Prediction.id),
        )
        .where(Prediction.user_id.in_(user_ids))
        .group_by(Prediction.user_id)
    )
    totals = {user_id: (int(points), int(count)) for user_id, points, count in result.all()}

    result = await session.execute(select(UserProfile).where(UserProfile.id.in_(user_ids)))
    for profile in result.scalars().all():
        profile.points, profile.predictions_count = totals.get(profile.id, (0, 0))
        profile.updated_at = now

    await session.flush()
    return len(user_ids)


async def compute_round_scores(
    session: AsyncSession,
    tournament_id: int,
    round_number: Optional[int] = None,
    season_id: Optional[int] = None,
) -> list[dict]:
    """Per (user, round) totals, ordered by round then points desc."""
    round_col = func.coalesce(Match.round_number, 0)
    query = (
        select(
            Prediction.user_id,
            UserProfile.name,
            round_col.label("round_number"),
            func.coalesce(func.sum(Prediction.points_earned), 0).label("points"),
            func.count(Prediction.id).label("predictions"),
            _count_true(Prediction.is_exact_score).label("exact_scores"),
            _count_true(Prediction.is_correct).label("correct_results"),
        )
        .select_from(Prediction)
        .outerjoin(Match, Match.id == Prediction.match_id)
        .outerjoin(UserProfile, UserProfile.id == Prediction.user_id)
        .where(Prediction.tournament_id == tournament_id)
        .group_by(Prediction.user_id, UserProfile.name, round_col)
    )
    if season_id:
        query = query.where(Prediction.season_id == season_id)
    if round_number:
        query = query.where(round_col == round_number)

    result = await session.execute(query)
    rows = [
        {
            "userId": user_id,
            "userName": name or user_id[:8],
            "roundNumber": int(rnd),
            "points": int(points or 0),
            "predictions": int(count or 0),
            "exactScores": int(exact or 0),
            "correctResults": int(correct or 0),
        }
        for user_id, name, rnd, points, count, exact, correct in result.all()
    ]
    rows.sort(key=lambda r: (r["roundNumber"], -r["points"]))
    return rows


async def sync_predictions_season(session: AsyncSession, tournament_id: int, season_id: int) -> int:
    """Fill season_id on the tournament's predictions that have none."""
    result = await session.execute(
        update(Prediction)
        .where(
            Prediction.tournament_id == tournament_id,
            Prediction.season_id.is_(None),
        )
        .values(season_id=season_id)
    )
    await session.commit()
    logger.info(f"[SCORING] Synced season {season_id} on {result.rowcount} predictions (tournament {tournament_id})")
    return result.rowcount

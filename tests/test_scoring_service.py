"""Tests for the database scoring passes and leaderboards."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from conftest import build_match
from app.models import Prediction, UserProfile, UserTournamentPoints
from app.scoring.ranking import accuracy_pct, general_ranking, tournament_ranking
from app.scoring.service import (
    calculate_scores,
    compute_round_scores,
    refresh_tournament_points,
)

PAST = datetime.utcnow() - timedelta(days=1)


def _prediction(user_id, match_id, home, away):
    winner = "home" if home > away else "away" if home < away else "draw"
    return Prediction(
        user_id=user_id, match_id=match_id,
        home_team_goals=home, away_team_goals=away, winner=winner,
    )


@pytest.fixture
def profiles():
    return [
        UserProfile(id="u1", firebase_id="001", name="Ana"),
        UserProfile(id="u2", firebase_id="002", name="Bruno"),
        UserProfile(id="u3", firebase_id="003", name="Carla", public_profile=False),
    ]


async def _setup(session, profiles):
    session.add_all(profiles)
    session.add_all([
        build_match(1, round_number=1, status="finished", home_score=2, away_score=1, start_time=PAST),
        build_match(2, round_number=1, status="finished", home_score=0, away_score=0, start_time=PAST),
        build_match(3, round_number=2, status="finished", home_score=1, away_score=3, start_time=PAST),
        build_match(4, round_number=3),
        _prediction("u1", 1, 2, 1),   # exact
        _prediction("u1", 2, 1, 1),   # draw, wrong goals
        _prediction("u1", 3, 0, 0),   # wrong
        _prediction("u2", 1, 1, 0),   # outcome
        _prediction("u2", 3, 1, 3),   # exact
        _prediction("u2", 4, 2, 2),   # not finished yet
        _prediction("u3", 2, 0, 0),   # exact
    ])
    await session.commit()


class TestCalculateScores:
    @pytest.mark.asyncio
    async def test_scores_finished_matches(self, session, profiles):
        await _setup(session, profiles)

        result = await calculate_scores(session, 325, 87678)

        assert result == {"scored": 6, "totalPredictions": 6, "matchesProcessed": 3, "usersUpdated": 3}

        rows = (await session.execute(
            select(Prediction).where(Prediction.user_id == "u1").order_by(Prediction.match_id)
        )).scalars().all()
        assert [(p.points_earned, p.is_correct, p.is_exact_score) for p in rows] == [
            (10, True, True),
            (5, True, False),
            (0, False, False),
        ]
        assert all(p.tournament_id == 325 and p.season_id == 87678 for p in rows)

        pending = (await session.execute(
            select(Prediction).where(Prediction.match_id == 4)
        )).scalar_one()
        assert pending.points_earned == 0
        assert pending.is_correct is None

    @pytest.mark.asyncio
    async def test_round_filter(self, session, profiles):
        await _setup(session, profiles)

        result = await calculate_scores(session, 325, round_number=2)

        assert result["matchesProcessed"] == 1
        assert result["scored"] == 2

    @pytest.mark.asyncio
    async def test_rescoring_is_idempotent(self, session, profiles):
        await _setup(session, profiles)

        await calculate_scores(session, 325)
        await calculate_scores(session, 325)

        ana = await session.get(UserProfile, "u1", populate_existing=True)
        assert ana.points == 15
        points = (await session.execute(
            select(UserTournamentPoints).where(UserTournamentPoints.user_id == "u1")
        )).scalars().all()
        assert len(points) == 1

    @pytest.mark.asyncio
    async def test_no_predictions(self, session):
        session.add(build_match(1, status="finished", home_score=1, away_score=0, start_time=PAST))
        await session.commit()

        result = await calculate_scores(session, 325)

        assert result == {"scored": 0, "message": "Nenhum palpite encontrado para as partidas"}

    @pytest.mark.asyncio
    async def test_other_tournament_untouched(self, session, profiles):
        await _setup(session, profiles)

        result = await calculate_scores(session, 390)

        assert result["scored"] == 0
        assert "error" in result


class TestTournamentPoints:
    @pytest.mark.asyncio
    async def test_aggregates(self, session, profiles):
        await _setup(session, profiles)
        await calculate_scores(session, 325)

        rows = {
            p.user_id: p
            for p in (await session.execute(select(UserTournamentPoints))).scalars().all()
        }

        assert rows["u1"].points == 15
        assert rows["u1"].predictions_count == 3
        assert rows["u1"].exact_scores == 1
        assert rows["u1"].correct_results == 2
        assert rows["u2"].points == 15
        assert rows["u2"].predictions_count == 2

        bruno = await session.get(UserProfile, "u2", populate_existing=True)
        # the open match prediction still counts as a prediction
        assert bruno.predictions_count == 3

    @pytest.mark.asyncio
    async def test_nothing_to_refresh(self, session):
        assert await refresh_tournament_points(session, 325) == 0


class TestRoundScores:
    @pytest.mark.asyncio
    async def test_rows_by_round_then_points(self, session, profiles):
        await _setup(session, profiles)
        await calculate_scores(session, 325)

        rows = await compute_round_scores(session, 325)

        assert [(r["roundNumber"], r["userName"], r["points"]) for r in rows] == [
            (1, "Ana", 15),
            (1, "Carla", 10),
            (1, "Bruno", 5),
            (2, "Bruno", 10),
            (2, "Ana", 0),
        ]
        ana_round_1 = rows[0]
        assert ana_round_1["predictions"] == 2
        assert ana_round_1["exactScores"] == 1
        assert ana_round_1["correctResults"] == 2

    @pytest.mark.asyncio
    async def test_single_round(self, session, profiles):
        await _setup(session, profiles)
        await calculate_scores(session, 325)

        rows = await compute_round_scores(session, 325, round_number=2)

        assert {r["roundNumber"] for r in rows} == {2}


class TestRanking:
    def test_accuracy(self):
        assert accuracy_pct(0, 0) == 0
        assert accuracy_pct(2, 3) == 67
        assert accuracy_pct(1, 8) == 13
        assert accuracy_pct(3, 3) == 100

    @pytest.mark.asyncio
    async def test_general_ranking_hides_private_profiles(self, session, profiles):
        await _setup(session, profiles)
        await calculate_scores(session, 325)

        ranking = await general_ranking(session)

        assert [(r["position"], r["name"], r["points"]) for r in ranking] == [
            (1, "Ana", 15),
            (2, "Bruno", 15),
        ]
        assert ranking[0]["title"] == "Novato"

    @pytest.mark.asyncio
    async def test_tournament_ranking(self, session, profiles):
        await _setup(session, profiles)
        await calculate_scores(session, 325)

        ranking = await tournament_ranking(session, 325, limit=2)

        assert [r["name"] for r in ranking] == ["Ana", "Bruno"]
        assert ranking[0]["accuracy"] == 67
        assert ranking[1]["accuracy"] == 100

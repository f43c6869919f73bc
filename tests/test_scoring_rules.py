"""Unit tests for the per-prediction scoring rule."""

import pytest

from app.scoring.rules import (
    CORRECT_RESULT_POINTS,
    EXACT_SCORE_POINTS,
    PredictionScore,
    classify_outcome,
    score_prediction,
)


class TestClassifyOutcome:
    """Outcome of a scoreline."""

    def test_home_win(self):
        assert classify_outcome(2, 1) == "home"

    def test_away_win(self):
        assert classify_outcome(0, 3) == "away"

    @pytest.mark.parametrize("goals", [0, 1, 4])
    def test_level_scores_are_draws(self, goals):
        assert classify_outcome(goals, goals) == "draw"


class TestScorePrediction:
    """10 for the exact score, 5 for the outcome, 0 otherwise."""

    def test_exact_score(self):
        score = score_prediction(2, 1, 2, 1)
        assert score == PredictionScore(points=EXACT_SCORE_POINTS, is_correct=True, is_exact=True)
        assert score.points == 10

    def test_correct_outcome_wrong_goals(self):
        score = score_prediction(2, 1, 3, 0)
        assert score.points == CORRECT_RESULT_POINTS == 5
        assert score.is_correct is True
        assert score.is_exact is False

    def test_wrong_outcome(self):
        score = score_prediction(1, 1, 2, 0)
        assert score.points == 0
        assert score.is_correct is False
        assert score.is_exact is False

    def test_draw_with_different_goals(self):
        """1-1 predicted, 0-0 played: outcome only."""
        assert score_prediction(0, 0, 1, 1).points == 5

    def test_exact_draw(self):
        assert score_prediction(3, 3, 3, 3).points == 10

    def test_away_win_predicted_as_home_win(self):
        assert score_prediction(0, 2, 2, 0).points == 0

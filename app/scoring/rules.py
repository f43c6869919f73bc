"""
Scoring rule for a single prediction.

    exact scoreline           -> 10 points
    same outcome (1/X/2)      ->  5 points
    anything else             ->  0 points

Each prediction is scored on its own; nothing carries over between
predictions or matches.
"""

from dataclasses import dataclass

EXACT_SCORE_POINTS = 10
CORRECT_RESULT_POINTS = 5

HOME = "home"
AWAY = "away"
DRAW = "draw"


def classify_outcome(home_goals: int, away_goals: int) -> str:
    """'home', 'away' or 'draw' from a scoreline."""
    if home_goals > away_goals:
        return HOME
    if home_goals < away_goals:
        return AWAY
    return DRAW


@dataclass(frozen=True)
class PredictionScore:
    points: int
    is_correct: bool  # outcome matched (true for exact hits too)
    is_exact: bool


def score_prediction(
    actual_home: int,
    actual_away: int,
    predicted_home: int,
    predicted_away: int,
) -> PredictionScore:
    """Score one prediction against a finished match."""
    is_exact = predicted_home == actual_home and predicted_away == actual_away
    is_correct = classify_outcome(predicted_home, predicted_away) == classify_outcome(
        actual_home, actual_away
    )

    if is_exact:
        points = EXACT_SCORE_POINTS
    elif is_correct:
        points = CORRECT_RESULT_POINTS
    else:
        points = 0

    return PredictionScore(points=points, is_correct=is_correct, is_exact=is_exact)

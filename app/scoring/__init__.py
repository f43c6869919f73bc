"""Prediction scoring: the per-prediction rule and the database passes around it."""

from app.scoring.rules import (
    EXACT_SCORE_POINTS,
    CORRECT_RESULT_POINTS,
    PredictionScore,
    classify_outcome,
    score_prediction,
)

__all__ = [
    "EXACT_SCORE_POINTS",
    "CORRECT_RESULT_POINTS",
    "PredictionScore",
    "classify_outcome",
    "score_prediction",
]

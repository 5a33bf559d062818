"""Scoring module for the relevance score audit."""

from .breakdown import ScoreBreakdown, decompose_score, get_score_breakdown, score_tier

__all__ = [
    "ScoreBreakdown",
    "decompose_score",
    "get_score_breakdown",
    "score_tier",
]

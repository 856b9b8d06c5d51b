"""Visibility scoring: five heuristic signals combined into one score in [0, 1]."""

from ai_visibility_checker.scoring.scorer import ScoreBreakdown, VisibilityScorer

__all__ = ["ScoreBreakdown", "VisibilityScorer"]

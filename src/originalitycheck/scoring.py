"""Originality score aggregation."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ScoreResult, SimilarityMatch, UniquenessLevel

HIGH_UNIQUENESS_MAX_SCORE = 20
MEDIUM_UNIQUENESS_MAX_SCORE = 50


def uniqueness_level(overall_score: float) -> UniquenessLevel:
    if overall_score <= HIGH_UNIQUENESS_MAX_SCORE:
        return "high"
    if overall_score <= MEDIUM_UNIQUENESS_MAX_SCORE:
        return "medium"
    return "low"


def aggregate_score(matches: Iterable[SimilarityMatch]) -> ScoreResult:
    """Mean similarity of unreferenced matches; cited overlap never counts."""

    unreferenced = [match.similarity_percentage for match in matches if not match.is_referenced]
    overall_score = sum(unreferenced) / len(unreferenced) if unreferenced else 0.0
    return ScoreResult(
        overall_score=overall_score,
        uniqueness_level=uniqueness_level(overall_score),
    )

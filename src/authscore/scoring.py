"""Helpers shared by the SPF, DKIM and DMARC scorers."""

import math
from typing import Optional

from .models import ScoringResult

GRADE_THRESHOLDS = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)


def percentage(total: int, maximum: int) -> int:
    """Half-up rounded percentage; 0 when there is nothing to score."""
    if maximum <= 0:
        return 0
    return int(math.floor(total / maximum * 100 + 0.5))


def grade_for(pct: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if pct >= threshold:
            return grade
    return "F"


def finalize(score_items: list, graded: bool = False) -> ScoringResult:
    total = sum(item.score for item in score_items)
    maximum = sum(item.max_score for item in score_items)
    pct = percentage(total, maximum)
    grade: Optional[str] = grade_for(pct) if graded else None
    return ScoringResult(
        total_score=total,
        max_possible_score=maximum,
        percentage=pct,
        score_items=list(score_items),
        grade=grade,
    )

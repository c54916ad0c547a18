"""
Opportunity Score Calculator

Calculates a composite score (0-100) representing the desirability of
targeting a keyword, as the sum of four bucketed sub-scores:

1. Search Volume (5-40)   - Demand potential
2. Difficulty (5-30)      - Rankability (lower difficulty scores higher)
3. CPC (0-20)             - Commercial value
4. Intent (3-10)          - Business intent

Formula:
    Opportunity_Score = Volume + Difficulty + CPC + Intent

This is a fixed rubric with no calibration against observed outcomes.

Scored keywords are then partitioned into eight opportunity buckets. Each
bucket is an independent filter + sort + cap over the full set, so a keyword
may appear in several buckets.
"""

import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List

from src.context.models import KeywordRecord, OpportunityBuckets, ScoredKeyword

from .helpers import (
    cpc_points,
    difficulty_points,
    effective_difficulty,
    intent_points,
    is_commercial_intent,
    volume_points,
)

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_CAP = 50


def calculate_opportunity_score(keyword: KeywordRecord) -> int:
    """
    Calculate the Opportunity Score for a keyword.

    Args:
        keyword: KeywordRecord with search_volume, difficulty, cpc, search_intent

    Returns:
        Integer score in [0, 100]
    """
    score = (
        volume_points(keyword.search_volume)
        + difficulty_points(keyword.difficulty)
        + cpc_points(keyword.cpc)
        + intent_points(keyword.search_intent)
    )
    return min(100, max(0, score))


def score_keywords(keywords: List[KeywordRecord]) -> List[ScoredKeyword]:
    """Attach opportunity scores to a batch of keywords, preserving order."""
    scored = []
    for keyword in keywords:
        fields = asdict(keyword)
        fields.pop("opportunity_score", None)
        scored.append(
            ScoredKeyword(**fields, opportunity_score=calculate_opportunity_score(keyword))
        )
    return scored


def _bucket(
    keywords: List[ScoredKeyword],
    predicate: Callable[[ScoredKeyword], bool],
    sort_key: Callable[[ScoredKeyword], float],
    cap: int,
) -> List[ScoredKeyword]:
    matched = [k for k in keywords if predicate(k)]
    matched.sort(key=sort_key, reverse=True)
    return matched[:cap]


def categorize_keywords(
    keywords: List[ScoredKeyword],
    cap: int = DEFAULT_BUCKET_CAP,
) -> OpportunityBuckets:
    """
    Categorize scored keywords into opportunity buckets.

    Args:
        keywords: Scored keywords
        cap: Maximum entries per bucket

    Returns:
        OpportunityBuckets (membership is not mutually exclusive)
    """
    def by_score(k: ScoredKeyword) -> float:
        return k.opportunity_score

    def by_volume(k: ScoredKeyword) -> float:
        return k.search_volume or 0

    def by_value(k: ScoredKeyword) -> float:
        return (k.cpc or 0) * (k.search_volume or 0)

    return OpportunityBuckets(
        high_priority_opportunities=_bucket(
            keywords,
            lambda k: k.opportunity_score >= 70 and k.search_volume >= 1000,
            by_score, cap,
        ),
        high_volume_opportunities=_bucket(
            keywords,
            lambda k: k.search_volume >= 5000,
            by_volume, cap,
        ),
        commercial_opportunities=_bucket(
            keywords,
            lambda k: is_commercial_intent(k.search_intent),
            by_score, cap,
        ),
        low_competition_opportunities=_bucket(
            keywords,
            lambda k: effective_difficulty(k.difficulty) < 30 and k.search_volume >= 500,
            by_volume, cap,
        ),
        high_value_opportunities=_bucket(
            keywords,
            lambda k: (k.cpc or 0) >= 1 and k.search_volume >= 500,
            by_value, cap,
        ),
        content_opportunities=_bucket(
            keywords,
            lambda k: (k.search_intent or "").lower() == "informational" and k.search_volume >= 500,
            by_volume, cap,
        ),
        quick_win_opportunities=_bucket(
            keywords,
            lambda k: effective_difficulty(k.difficulty) < 40 and 1000 <= k.search_volume < 5000,
            by_score, cap,
        ),
        long_tail_opportunities=_bucket(
            keywords,
            lambda k: k.word_count >= 4 and 100 <= k.search_volume < 1000,
            by_volume, cap,
        ),
    )


def get_opportunity_summary(
    keywords: List[ScoredKeyword],
    buckets: OpportunityBuckets,
) -> Dict[str, Any]:
    """
    Generate summary statistics for a scored keyword batch.

    Returns:
        Summary dict with total, per-bucket counts and averages
    """
    total = len(keywords)
    summary: Dict[str, Any] = {"total_opportunities": total}
    summary.update(buckets.counts())

    if total:
        summary["average_search_volume"] = sum(k.search_volume for k in keywords) / total
        summary["average_opportunity_score"] = sum(k.opportunity_score for k in keywords) / total
    else:
        summary["average_search_volume"] = 0
        summary["average_opportunity_score"] = 0

    return summary

"""
Scoring Module

This module provides the keyword and competitor scoring calculations:

1. **Similarity** - cosine similarity between embeddings, min-max
   normalization and word-overlap (Jaccard) between keywords.

2. **Opportunity Score** (0-100)
   Fixed rubric: Volume + Difficulty + CPC + Intent.
   Scored keywords are categorized into eight opportunity buckets.

3. **Diverse Target Selection**
   Greedy top-K over a composite of similarity, volume and competition,
   rejecting near-duplicate keywords by word overlap.

Example Usage:
    from src.context.models import KeywordRecord
    from src.scoring import calculate_opportunity_score

    keyword = KeywordRecord(
        keyword="emergency plumber brooklyn",
        search_volume=12000,
        difficulty=20,
        cpc=6.0,
        search_intent="transactional",
    )
    print(calculate_opportunity_score(keyword))  # 100
"""

from .similarity import cosine_similarity, normalize, word_overlap

from .helpers import (
    VOLUME_TIERS,
    DIFFICULTY_TIERS,
    CPC_TIERS,
    INTENT_POINTS,
    DEFAULT_DIFFICULTY,
    volume_points,
    difficulty_points,
    cpc_points,
    intent_points,
)

from .opportunity import (
    calculate_opportunity_score,
    score_keywords,
    categorize_keywords,
    get_opportunity_summary,
)

from .diversity import (
    TargetCandidate,
    is_diverse,
    score_candidates,
    select_target_keywords,
)

__all__ = [
    # Similarity
    "cosine_similarity",
    "normalize",
    "word_overlap",

    # Helpers
    "VOLUME_TIERS",
    "DIFFICULTY_TIERS",
    "CPC_TIERS",
    "INTENT_POINTS",
    "DEFAULT_DIFFICULTY",
    "volume_points",
    "difficulty_points",
    "cpc_points",
    "intent_points",

    # Opportunity
    "calculate_opportunity_score",
    "score_keywords",
    "categorize_keywords",
    "get_opportunity_summary",

    # Diversity
    "TargetCandidate",
    "is_diverse",
    "score_candidates",
    "select_target_keywords",
]

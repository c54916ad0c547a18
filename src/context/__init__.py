"""
Competitor & Keyword Context Package

Stages that turn raw upstream data into ranked competitors and keyword pools:
- competitor_discovery: organic and local (Maps) competitor candidates
- competitor_ranker: service-profile similarity ranking with user-selected guarantee
- keyword_intersection: shared / unique keywords between two domains
- keyword_ideas: seed-keyword expansion, scoring and bucketing

Only the data models are re-exported here; import the stages from their
modules, since they depend on src.scoring which itself depends on the models.

Usage:
    from src.context import CompetitorCandidate, IntersectionMode
    from src.context.competitor_ranker import CompetitorRanker
"""

from .models import (
    BusinessType,
    IntersectionMode,
    SearchIntent,
    CompetitorCandidate,
    KeywordRecord,
    ScoredKeyword,
    OpportunityBuckets,
    BusinessRecord,
    service_texts,
    service_profile_text,
)

__all__ = [
    "BusinessType",
    "IntersectionMode",
    "SearchIntent",
    "CompetitorCandidate",
    "KeywordRecord",
    "ScoredKeyword",
    "OpportunityBuckets",
    "BusinessRecord",
    "service_texts",
    "service_profile_text",
]

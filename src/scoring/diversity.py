"""
Diverse Target Keyword Selection

Picks a fixed-size, mutually dissimilar target keyword set from all
similarity-scored candidates.

Composite score per candidate:
    0.6 * similarity_to_services
  + 0.3 * normalize(search_volume)
  + 0.1 * (1 - normalize(competition))

Min/max for normalization ignore zero and missing values.

Selection is a greedy walk over the candidates sorted by composite score:
a candidate is accepted only if its word overlap with every accepted keyword
is below the threshold. The walk never backtracks, so the result depends on
order and is not guaranteed to be the globally best diverse set. Equal
composite scores keep first-seen order.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from src.context.models import KeywordRecord

from .similarity import normalize, word_overlap

logger = logging.getLogger(__name__)

SIMILARITY_WEIGHT = 0.6
VOLUME_WEIGHT = 0.3
COMPETITION_WEIGHT = 0.1

DEFAULT_TARGET_COUNT = 20
DEFAULT_DIVERSITY_THRESHOLD = 0.7


@dataclass
class TargetCandidate:
    """A keyword considered for the target set."""
    keyword: str
    similarity_to_services: float
    search_volume: int = 0
    competition: float = 0.0
    competitor_position: int = 100
    source: Optional[str] = None
    composite_score: float = 0.0

    @classmethod
    def from_record(cls, record: KeywordRecord, source: Optional[str] = None) -> "TargetCandidate":
        return cls(
            keyword=record.keyword,
            similarity_to_services=record.similarity_to_services or 0.0,
            search_volume=record.search_volume or 0,
            competition=record.competition or 0.0,
            competitor_position=record.competitor_position or 100,
            source=source,
        )


def _positive_range(values: Sequence[float]) -> Tuple[float, float]:
    positive = [v for v in values if v and v > 0]
    if not positive:
        return 0.0, 0.0
    return min(positive), max(positive)


def is_diverse(keyword: str, selected: Sequence[str], threshold: float = DEFAULT_DIVERSITY_THRESHOLD) -> bool:
    """True if keyword overlaps every selected keyword below threshold."""
    return all(word_overlap(keyword, other) < threshold for other in selected)


def score_candidates(candidates: List[TargetCandidate]) -> List[TargetCandidate]:
    """Compute composite scores in place and return candidates sorted by score."""
    min_volume, max_volume = _positive_range([c.search_volume for c in candidates])
    min_comp, max_comp = _positive_range([c.competition for c in candidates])

    for c in candidates:
        volume_score = normalize(c.search_volume, min_volume, max_volume)
        competition_score = 1 - normalize(c.competition, min_comp, max_comp)
        c.composite_score = (
            c.similarity_to_services * SIMILARITY_WEIGHT
            + volume_score * VOLUME_WEIGHT
            + competition_score * COMPETITION_WEIGHT
        )

    # sorted() is stable: ties keep first-seen order
    return sorted(candidates, key=lambda c: c.composite_score, reverse=True)


def select_target_keywords(
    candidates: List[TargetCandidate],
    k: int = DEFAULT_TARGET_COUNT,
    threshold: float = DEFAULT_DIVERSITY_THRESHOLD,
) -> List[str]:
    """
    Select up to k diverse, high-scoring target keywords.

    Args:
        candidates: Keywords with similarity scores
        k: Maximum number of keywords to select
        threshold: Word overlap at or above which two keywords count as duplicates

    Returns:
        Ordered list of selected keyword strings
    """
    if not candidates:
        return []

    selected: List[str] = []
    for candidate in score_candidates(candidates):
        if len(selected) >= k:
            break
        if is_diverse(candidate.keyword, selected, threshold):
            selected.append(candidate.keyword)

    logger.info(f"Selected {len(selected)} diverse target keywords from {len(candidates)} candidates")
    return selected

"""
Keyword Intersection Extractor

Retrieves the ranked-keyword overlap between a competitor and the business:
- shared: keywords both domains rank for
- unique: keywords only the competitor ranks for

Unique keywords are scored for similarity to the business's services when a
services embedding is available. Keywords are embedded in chunks; a failing
chunk leaves its keywords with no similarity score and does not stop the
remaining chunks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from src.scoring.similarity import cosine_similarity

from .models import IntersectionMode, KeywordRecord, SearchIntent

if TYPE_CHECKING:
    from src.collector.client import DataForSEOClient
    from src.integrations.embeddings import EmbeddingClient

logger = logging.getLogger(__name__)


@dataclass
class IntersectionResult:
    """Keyword overlap between two domains."""
    total_count: int = 0
    items: List[KeywordRecord] = field(default_factory=list)


def keyword_from_intersection_item(item: Dict[str, Any], mode: IntersectionMode) -> Optional[KeywordRecord]:
    """Map a domain_intersection item to a KeywordRecord (None if it has no keyword)."""
    keyword_data = item.get("keyword_data") or {}
    keyword = keyword_data.get("keyword")
    if not keyword or not keyword.strip():
        return None

    info = keyword_data.get("keyword_info") or {}
    intent = keyword_data.get("search_intent_info") or {}
    properties = keyword_data.get("keyword_properties") or {}
    first = item.get("first_domain_serp_element") or {}
    second = item.get("second_domain_serp_element") or {}

    return KeywordRecord(
        keyword=keyword,
        search_volume=info.get("search_volume") or 0,
        competition=info.get("competition"),
        cpc=info.get("cpc") or 0.0,
        search_intent=intent.get("main_intent") or SearchIntent.UNKNOWN.value,
        difficulty=properties.get("keyword_difficulty"),
        competitor_position=first.get("rank_absolute"),
        user_position=second.get("rank_absolute") if mode == IntersectionMode.SHARED else None,
    )


def mark_targeted(records: Iterable[KeywordRecord], target_keywords: Iterable[str]) -> int:
    """Flag records whose keyword exactly matches a target keyword. Returns count flagged."""
    targets = set(target_keywords or ())
    flagged = 0
    for record in records:
        if record.keyword in targets:
            record.targeted = True
            flagged += 1
    return flagged


class KeywordIntersectionExtractor:
    """
    Extracts shared/unique keyword sets between two domains.

    Usage:
        extractor = KeywordIntersectionExtractor(dataforseo_client, embedding_client)
        result = await extractor.intersect(
            "rival.com", "example.com", 2840, "en", IntersectionMode.UNIQUE,
            services_embedding=profile_vector,
        )
    """

    def __init__(
        self,
        dataforseo_client: "DataForSEOClient",
        embedding_client: Optional["EmbeddingClient"] = None,
        chunk_size: int = 2000,
        limit: int = 500,
    ):
        self.client = dataforseo_client
        self.embeddings = embedding_client
        self.chunk_size = chunk_size
        self.limit = limit

    async def intersect(
        self,
        domain_a: str,
        domain_b: str,
        location_code: int,
        language_code: str,
        mode: IntersectionMode,
        services_embedding: Optional[List[float]] = None,
        target_keywords: Iterable[str] = (),
    ) -> IntersectionResult:
        """
        Get keyword overlap between two domains.

        Args:
            domain_a: Competitor domain (positions reported as competitor_position)
            domain_b: Business domain
            location_code: DataForSEO location code
            language_code: Language code
            mode: SHARED or UNIQUE
            services_embedding: Profile vector for unique-keyword similarity
            target_keywords: Previously selected target keywords to flag

        Returns:
            IntersectionResult with upstream total_count and mapped records

        Raises:
            DataForSEOError: If the upstream call fails
        """
        mode = IntersectionMode(mode)
        logger.info(f"Domain intersection ({mode.value}): {domain_a} vs {domain_b}")

        result = await self.client.get_domain_intersection(
            domain_a,
            domain_b,
            location_code=location_code,
            language_code=language_code,
            intersections=mode == IntersectionMode.SHARED,
            limit=self.limit,
        )

        total_count = result.get("total_count") or 0
        records = [
            r for r in (keyword_from_intersection_item(i, mode) for i in result.get("items") or []) if r
        ]

        if mode == IntersectionMode.UNIQUE and services_embedding and records:
            await self._score_similarity(records, services_embedding)

        flagged = mark_targeted(records, target_keywords)
        if flagged:
            logger.debug(f"Marked {flagged} targeted keywords for {domain_a}")

        logger.info(f"{mode.value.capitalize()} keywords with {domain_a}: {total_count} total, {len(records)} returned")
        return IntersectionResult(total_count=total_count, items=records)

    async def _score_similarity(self, records: List[KeywordRecord], services_embedding: List[float]):
        if self.embeddings is None:
            logger.warning("No embeddings client configured, skipping keyword similarity")
            return

        logger.info(f"Batch processing {len(records)} keywords for similarity")

        for start in range(0, len(records), self.chunk_size):
            chunk = records[start:start + self.chunk_size]
            logger.debug(f"Processing keywords {start + 1} to {start + len(chunk)}")

            try:
                vectors = await self.embeddings.embed([r.keyword for r in chunk])
            except Exception as e:
                logger.warning(f"Failed to get embeddings for keyword chunk at {start}: {e}")
                continue

            for record, vector in zip(chunk, vectors):
                try:
                    record.similarity_to_services = cosine_similarity(services_embedding, vector)
                except ValueError as e:
                    logger.warning(f"Failed to calculate similarity for keyword '{record.keyword}': {e}")

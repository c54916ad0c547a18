"""
Competitor Ranker

Ranks filtered competitor candidates by how closely their website content
matches the business's service profile.

Steps:
1. Embed the service profile once
2. Fetch page text for every candidate (optionally in bounded batches)
3. Batch-embed all fetched texts and score cosine similarity
4. Sort fetched candidates by similarity; unfetched ones follow with 0
5. User-selected competitors are emitted first, the rest fill up to top_n

If the profile is empty, or fetching/embedding fails for the whole batch,
the first top_n candidates are returned unranked.
"""

import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Set, TYPE_CHECKING

from src.scoring.similarity import cosine_similarity
from src.utils.domain_filter import normalize_domain

from .models import CompetitorCandidate

if TYPE_CHECKING:
    from src.integrations.embeddings import EmbeddingClient
    from src.integrations.jina import JinaScraper

logger = logging.getLogger(__name__)


def normalize_selected_domains(domains: Iterable[str]) -> Set[str]:
    """Normalize user-selected URLs/domains to bare lowercase hostnames."""
    return {d for d in (normalize_domain(value) for value in domains or []) if d}


def apply_selection_guarantee(
    ranked: List[CompetitorCandidate],
    selected_domains: Set[str],
    top_n: int,
) -> List[CompetitorCandidate]:
    """
    Put user-selected candidates first, then fill up to top_n from the rest.

    All user-selected candidates are kept even when they exceed top_n.
    """
    guaranteed = []
    discovered = []
    for candidate in ranked:
        if normalize_domain(candidate.domain) in selected_domains:
            candidate.user_selected = True
            guaranteed.append(candidate)
        else:
            discovered.append(candidate)

    remaining = max(0, top_n - len(guaranteed))
    logger.info(
        f"Guaranteed {len(guaranteed)} user-selected competitors, "
        f"adding {min(remaining, len(discovered))} discovered"
    )
    return guaranteed + discovered[:remaining]


class CompetitorRanker:
    """
    Ranks competitors by service-profile similarity.

    Usage:
        ranker = CompetitorRanker(embedding_client, jina_scraper)
        top = await ranker.rank(candidates, profile_text, ["rival.com"], top_n=10)
    """

    def __init__(self, embedding_client: "EmbeddingClient", scraper: "JinaScraper"):
        self.embeddings = embedding_client
        self.scraper = scraper

    async def rank(
        self,
        candidates: List[CompetitorCandidate],
        profile_text: str,
        user_selected_domains: Iterable[str] = (),
        top_n: int = 10,
        batch_size: Optional[int] = None,
    ) -> List[CompetitorCandidate]:
        """
        Rank candidates by similarity to the service profile.

        Args:
            candidates: Filtered candidates
            profile_text: Joined service descriptors
            user_selected_domains: Competitors the user picked (always included)
            top_n: Number of discovered competitors to return
            batch_size: Max concurrent page fetches (None = unbounded)

        Returns:
            Ranked list, user-selected competitors first
        """
        if not candidates:
            return []

        if not profile_text or not profile_text.strip():
            logger.warning("No services found, skipping similarity analysis")
            return candidates[:top_n]

        try:
            ranked = await self._score(candidates, profile_text, batch_size)
        except Exception as e:
            logger.error(f"Similarity analysis failed, returning unranked competitors: {e}")
            return candidates[:top_n]

        return apply_selection_guarantee(ranked, normalize_selected_domains(user_selected_domains), top_n)

    async def _score(
        self,
        candidates: List[CompetitorCandidate],
        profile_text: str,
        batch_size: Optional[int],
    ) -> List[CompetitorCandidate]:
        logger.info(f"Combined services profile ({len(profile_text)} characters)")
        profile_embedding = await self.embeddings.embed(profile_text)

        logger.info(f"Scraping {len(candidates)} competitor websites")
        texts = await self.scraper.fetch_many([c.fetch_url for c in candidates], batch_size=batch_size)

        scraped: List[CompetitorCandidate] = []
        scraped_texts: List[str] = []
        unscraped: List[CompetitorCandidate] = []

        # Scores go on copies so a failed batch leaves the inputs untouched
        for candidate, text in zip(candidates, texts):
            if text and text.strip():
                scraped.append(replace(candidate, scraped=True, scraped_text_length=len(text)))
                scraped_texts.append(text)
            else:
                unscraped.append(replace(candidate, scraped=False, similarity=0.0))

        logger.info(f"{len(scraped)} websites successfully scraped")

        if scraped_texts:
            vectors = await self.embeddings.embed(scraped_texts)
            for candidate, vector in zip(scraped, vectors):
                candidate.similarity = cosine_similarity(profile_embedding, vector)

        scraped.sort(key=lambda c: c.similarity, reverse=True)
        logger.info(f"Ranked {len(scraped)} competitors by similarity to services")

        return scraped + unscraped

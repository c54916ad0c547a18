"""
Competitor Discovery

Finds candidate competitors for a business through two upstream sources:
- Organic domain competitors (DataForSEO Labs competitors_domain)
- Local businesses around a coordinate (DataForSEO Google Maps)

Organic discovery falls back through user-supplied alternate domains when
the business's own domain yields nothing. Filtering of platforms and
outliers is a separate step (see src.utils.domain_filter).
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from src.utils.domain_filter import SOCIAL_PROFILE_DOMAINS, is_excluded_domain, normalize_domain
from src.utils.errors import DataForSEOError, DiscoveryError

from .models import CompetitorCandidate

if TYPE_CHECKING:
    from src.collector.client import DataForSEOClient

logger = logging.getLogger(__name__)


def candidate_from_competitor_item(item: Dict[str, Any]) -> Optional[CompetitorCandidate]:
    """Map a competitors_domain item to a candidate (None if it has no domain)."""
    domain = item.get("domain")
    if not domain:
        return None

    metrics = item.get("metrics") or {}
    organic = metrics.get("organic") or {}

    return CompetitorCandidate(
        domain=domain,
        url=f"https://{domain}",
        organic_traffic=float(organic.get("etv") or 0),
        organic_keywords=int(organic.get("count") or 0),
        metrics=metrics,
    )


def candidate_from_maps_item(item: Dict[str, Any]) -> CompetitorCandidate:
    """Map a maps_search item to a local-business candidate."""
    rating = item.get("rating") or {}
    url = item.get("url")

    return CompetitorCandidate(
        domain=normalize_domain(url),
        url=url,
        title=item.get("title") or "Unknown",
        place_id=item.get("place_id"),
        address=item.get("address"),
        phone=item.get("phone"),
        rating=rating.get("value"),
        reviews_count=rating.get("votes_count"),
        category=item.get("category"),
        latitude=item.get("latitude"),
        longitude=item.get("longitude"),
    )


class CompetitorDiscovery:
    """
    Discovers competitor candidates via DataForSEO.

    Usage:
        discovery = CompetitorDiscovery(dataforseo_client)

        candidates = await discovery.discover_with_fallback(
            "example.com",
            alternates=["rival.com", "https://www.other.com"],
            location_code=2840,
        )
    """

    def __init__(self, dataforseo_client: "DataForSEOClient", limit: int = 100):
        self.client = dataforseo_client
        self.limit = limit

    async def discover(
        self,
        domain: str,
        location_code: int = 2840,
        language_code: str = "en",
        limit: Optional[int] = None,
    ) -> List[CompetitorCandidate]:
        """
        Discover organic competitors for a domain.

        Args:
            domain: Bare domain of the business
            location_code: DataForSEO location code
            language_code: Language code
            limit: Max competitors to request

        Returns:
            Candidates in upstream order (may be empty)

        Raises:
            DiscoveryError: If the upstream call fails
        """
        logger.info(f"Discovering competitors for: {domain}")

        try:
            items = await self.client.get_domain_competitors(
                domain,
                location_code=location_code,
                language_code=language_code,
                limit=limit or self.limit,
            )
        except DiscoveryError:
            raise
        except DataForSEOError as e:
            raise DiscoveryError(
                f"Competitor discovery failed for {domain}: {e}",
                status_code=e.status_code,
                response=e.response,
            ) from e

        candidates = [c for c in (candidate_from_competitor_item(i) for i in items) if c]
        logger.info(f"Found {len(candidates)} potential competitors from {domain}")
        return candidates

    async def discover_with_fallback(
        self,
        primary: str,
        alternates: Sequence[str] = (),
        location_code: int = 2840,
        language_code: str = "en",
        limit: Optional[int] = None,
    ) -> List[CompetitorCandidate]:
        """
        Discover competitors, falling back through alternate domains.

        The primary domain is tried first and its errors propagate. Each
        alternate is normalized to a bare hostname; the first alternate
        that yields at least one candidate wins. Alternate failures are
        logged and skipped.

        Returns:
            Candidates from the first source that produced any (may be empty)
        """
        candidates = await self.discover(primary, location_code, language_code, limit)
        if candidates:
            return candidates

        if alternates:
            logger.warning(
                f"No competitors found for {primary}, trying {len(alternates)} user-provided competitor(s)"
            )

        for alternate in alternates:
            alternate_domain = normalize_domain(alternate)
            if not alternate_domain:
                continue

            try:
                candidates = await self.discover(alternate_domain, location_code, language_code, limit)
            except DiscoveryError as e:
                logger.warning(f"Failed to get competitors from {alternate}: {e}")
                continue

            if candidates:
                logger.info(f"Found {len(candidates)} competitors via fallback {alternate_domain}")
                return candidates

            logger.info(f"No competitors found from {alternate_domain}, trying next")

        logger.warning(f"No competitors found for {primary} or any alternate")
        return []

    async def discover_local(
        self,
        keyword: str,
        latitude: float,
        longitude: float,
        language_code: str = "en",
        depth: int = 30,
    ) -> List[CompetitorCandidate]:
        """
        Discover local businesses on Google Maps around a coordinate.

        Keeps only business listings with a website, drops social-profile
        URLs and removes duplicate URLs (case-insensitive).

        Raises:
            DiscoveryError: If the upstream call fails
        """
        logger.info(f"Discovering local businesses for '{keyword}' at {latitude}, {longitude}")

        try:
            result = await self.client.get_maps_results(
                keyword,
                latitude=latitude,
                longitude=longitude,
                language_code=language_code,
                depth=depth,
            )
        except DataForSEOError as e:
            raise DiscoveryError(
                f"Local discovery failed for '{keyword}': {e}",
                status_code=e.status_code,
                response=e.response,
            ) from e

        listings = [i for i in (result.get("items") or []) if i.get("type") == "maps_search"]
        logger.info(f"Found {len(listings)} local businesses")

        seen_urls = set()
        candidates = []
        for item in listings:
            url = item.get("url")
            if not url or is_excluded_domain(url, SOCIAL_PROFILE_DOMAINS):
                continue
            if url.lower() in seen_urls:
                continue
            seen_urls.add(url.lower())
            candidates.append(candidate_from_maps_item(item))

        logger.info(f"Filtered to {len(candidates)} businesses with unique real websites")
        return candidates

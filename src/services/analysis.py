"""
SEO Analysis Service

Orchestrates the competitor and keyword analysis workflow for one business:
1. Load the business document and validate onboarding
2. Discover and rank competitors (local: Google Maps, online: organic domains)
3. Keyword intersection with every competitor (shared + unique)
4. Diverse target keyword selection
5. Keyword ideas from seed keywords

Steps 3-5 are optional enrichment: a failure there is logged and the run
still completes. Any failure in steps 1-2 marks the run failed and propagates.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, TYPE_CHECKING

from src.collector.client import get_location_code
from src.context.competitor_discovery import CompetitorDiscovery
from src.context.competitor_ranker import CompetitorRanker
from src.context.keyword_ideas import KeywordIdeasService
from src.context.keyword_intersection import KeywordIntersectionExtractor
from src.context.models import (
    BusinessRecord,
    BusinessType,
    CompetitorCandidate,
    IntersectionMode,
    KeywordRecord,
)
from src.persistence.status import AnalysisStatus, update_status
from src.persistence.storage import (
    DocumentStore,
    business_path,
    intersection_collection,
    intersection_path,
)
from src.scoring.diversity import TargetCandidate, select_target_keywords
from src.utils.config import Settings, get_settings
from src.utils.domain_filter import filter_competitors, normalize_domain
from src.utils.errors import DegradedResultError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from src.collector.client import DataForSEOClient
    from src.integrations.embeddings import EmbeddingClient
    from src.integrations.jina import JinaScraper

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def merge_unique(existing: List[str], additions: List[str]) -> List[str]:
    """Set union preserving first-seen order."""
    seen = set()
    merged = []
    for value in list(existing) + list(additions):
        if value and value not in seen:
            seen.add(value)
            merged.append(value)
    return merged


# =============================================================================
# TARGET KEYWORDS
# =============================================================================


class TargetKeywordGenerator:
    """
    Selects the business's target keywords from stored unique-keyword pools.

    Usage:
        generator = TargetKeywordGenerator(store)
        keywords = await generator.generate("business-123")
    """

    def __init__(self, store: DocumentStore, k: int = 20, threshold: float = 0.7):
        self.store = store
        self.k = k
        self.threshold = threshold

    async def generate(self, business_id: str) -> List[str]:
        """
        Select diverse target keywords and flag them in every intersection document.

        Returns:
            Selected keywords (empty if no similarity-scored keywords exist)
        """
        unique_docs = await self.store.list_documents(
            intersection_collection(business_id, IntersectionMode.UNIQUE.value)
        )

        candidates = []
        for doc_id, document in unique_docs.items():
            source = document.get("competitor_domain") or doc_id
            for raw in document.get("keywords") or []:
                if raw.get("similarity_to_services") is None or not raw.get("keyword"):
                    continue
                candidates.append(TargetCandidate.from_record(KeywordRecord.from_dict(raw), source=source))

        logger.info(f"Found {len(candidates)} total keywords with similarity scores")
        if not candidates:
            logger.warning(f"No keywords found for target keyword generation for {business_id}")
            return []

        selected = select_target_keywords(candidates, k=self.k, threshold=self.threshold)

        await self.store.merge(business_path(business_id), {"target_keywords": selected})
        logger.info(f"Saved {len(selected)} target keywords for business {business_id}")

        await self._mark_targeted(business_id, selected)
        return selected

    async def _mark_targeted(self, business_id: str, selected: List[str]):
        targets = set(selected)
        for mode in IntersectionMode:
            collection = intersection_collection(business_id, mode.value)
            documents = await self.store.list_documents(collection)
            for doc_id, document in documents.items():
                keywords = document.get("keywords") or []
                changed = False
                for raw in keywords:
                    if raw.get("keyword") in targets and not raw.get("targeted"):
                        raw["targeted"] = True
                        changed = True
                if changed:
                    await self.store.set(f"{collection}/{doc_id}", document)


# =============================================================================
# PIPELINE
# =============================================================================


class SEOAnalysisPipeline:
    """
    Runs the full analysis for a business.

    All provider clients are injected; nothing is created here.

    Usage:
        pipeline = SEOAnalysisPipeline(store, dataforseo, embeddings, scraper)
        results = await pipeline.process("business-123")
    """

    def __init__(
        self,
        store: DocumentStore,
        dataforseo_client: "DataForSEOClient",
        embedding_client: "EmbeddingClient",
        scraper: "JinaScraper",
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.embeddings = embedding_client

        self.discovery = CompetitorDiscovery(
            dataforseo_client, limit=self.settings.COMPETITOR_DISCOVERY_LIMIT
        )
        self.ranker = CompetitorRanker(embedding_client, scraper)
        self.intersection = KeywordIntersectionExtractor(
            dataforseo_client,
            embedding_client,
            chunk_size=self.settings.EMBEDDING_CHUNK_SIZE,
            limit=self.settings.INTERSECTION_LIMIT,
        )
        self.target_keywords = TargetKeywordGenerator(
            store,
            k=self.settings.TARGET_KEYWORD_COUNT,
            threshold=self.settings.DIVERSITY_THRESHOLD,
        )
        self.keyword_ideas = KeywordIdeasService(
            dataforseo_client,
            store,
            limit=self.settings.KEYWORD_IDEAS_LIMIT,
            bucket_cap=self.settings.BUCKET_CAP,
        )

    async def process(self, business_id: str) -> Dict[str, Any]:
        """
        Run the analysis and record its status on the business document.

        Returns:
            The stored seo_analysis_results

        Raises:
            NotFoundError: Business document missing
            ValidationError: Onboarding incomplete or required fields missing
            ProviderError: Required upstream call failed
        """
        logger.info(f"Processing SEO analysis for business {business_id}")

        # No status is written for a business that doesn't exist
        document = await self.store.get(business_path(business_id))
        if document is None:
            raise NotFoundError("Business not found")

        try:
            business = BusinessRecord(**document)
            if not business.onboarding_completed:
                raise ValidationError("Onboarding not completed")

            if document.get("seo_analysis_status") != AnalysisStatus.PROCESSING.value:
                await update_status(self.store, business_id, AnalysisStatus.PROCESSING)

            logger.info(
                f"Analyzing {business.business_name or business_id}: type={business.business_type}, "
                f"services={len(business.services)}, seed_keywords={len(business.seed_keywords)}, "
                f"competitors={len(business.competitors)}"
            )

            if business.business_type == BusinessType.LOCAL.value:
                results, ranked = await self.analyze_local(business)
            elif business.business_type == BusinessType.ONLINE.value:
                results, ranked = await self.analyze_online(business)
            else:
                raise ValidationError(f"Unknown business type: {business.business_type}")

            await self.store.merge(business_path(business_id), {"seo_analysis_results": results})

            if business.website_url:
                await self._run_stage(
                    "intersection",
                    self.run_intersection_stage(business_id, business, ranked),
                )
            else:
                logger.info("No website URL, skipping domain intersection analysis")

            await self._run_stage("keyword_ideas", self.keyword_ideas.generate(business_id))

            await update_status(self.store, business_id, AnalysisStatus.COMPLETED)
            logger.info(f"SEO analysis completed for business {business_id}")
            return results

        except Exception as e:
            logger.error(f"Error processing SEO analysis for {business_id}: {e}")
            await update_status(self.store, business_id, AnalysisStatus.FAILED, str(e))
            raise

    async def _run_stage(self, name: str, stage: Awaitable[Any]) -> Optional[Any]:
        """Await an optional stage; failures are logged and swallowed."""
        try:
            return await stage
        except DegradedResultError as e:
            logger.warning(f"Stage {name} degraded (non-critical): {e}")
        except Exception as e:
            logger.error(f"Stage {name} failed (non-critical): {e}", exc_info=True)
        return None

    # ========================================================================
    # COMPETITOR ANALYSIS
    # ========================================================================

    async def analyze_local(self, business: BusinessRecord):
        """Maps discovery + similarity ranking for a local business."""
        if business.latitude is None or business.longitude is None:
            raise ValidationError("Latitude and longitude are required for local business analysis")
        if not business.business_type_identifier:
            raise ValidationError("Business type identifier is required")

        candidates = await self.discovery.discover_local(
            business.business_type_identifier,
            latitude=business.latitude,
            longitude=business.longitude,
            language_code=business.language or self.settings.DEFAULT_LANGUAGE,
            depth=self.settings.MAPS_SEARCH_DEPTH,
        )

        ranked = await self.ranker.rank(
            candidates,
            business.service_profile,
            top_n=self.settings.TOP_LOCAL_COMPETITORS,
            batch_size=self.settings.SCRAPE_BATCH_SIZE,
        )

        results = {
            "business_type": BusinessType.LOCAL.value,
            "keyword": business.business_type_identifier,
            "total_candidates": len(candidates),
            "top_competitors": [c.to_dict() for c in ranked],
            "processed_at": _now(),
        }
        return results, ranked

    async def analyze_online(self, business: BusinessRecord):
        """Organic domain discovery + filtering + ranking for an online business."""
        if not business.target_country_code:
            raise ValidationError("Target country code is required for online business analysis")
        if not business.website_url:
            raise ValidationError("Website URL is required for online business competitor discovery")

        location_code = get_location_code(business.target_country_code)
        language = business.language or self.settings.DEFAULT_LANGUAGE
        user_domain = normalize_domain(business.website_url)

        candidates = await self.discovery.discover_with_fallback(
            user_domain,
            alternates=business.competitors,
            location_code=location_code,
            language_code=language,
        )

        filtered = filter_competitors(
            candidates,
            max_traffic_value=self.settings.MAX_COMPETITOR_TRAFFIC_VALUE,
            max_keywords=self.settings.MAX_COMPETITOR_KEYWORDS,
            source="competitors_domain",
        )

        ranked = await self.ranker.rank(
            filtered,
            business.service_profile,
            user_selected_domains=business.competitors,
            top_n=self.settings.TOP_ONLINE_COMPETITORS,
        )

        results = {
            "business_type": BusinessType.ONLINE.value,
            "domain": user_domain,
            "location_code": location_code,
            "total_candidates": len(candidates),
            "filtered_candidates": len(filtered),
            "top_competitors": [c.to_dict() for c in ranked],
            "processed_at": _now(),
        }
        return results, ranked

    # ========================================================================
    # KEYWORD INTERSECTION
    # ========================================================================

    async def run_intersection_stage(
        self,
        business_id: str,
        business: BusinessRecord,
        ranked: List[CompetitorCandidate],
    ) -> int:
        """
        Intersect the business domain with every competitor, then select targets.

        Returns:
            Number of competitors analyzed
        """
        location_code = get_location_code(business.target_country_code)
        language = business.language or self.settings.DEFAULT_LANGUAGE
        user_domain = normalize_domain(business.website_url)

        if business.business_type == BusinessType.LOCAL.value:
            competitors = [
                CompetitorCandidate(domain=normalize_domain(url), url=url, title="User-selected competitor")
                for url in business.competitors
            ] + list(ranked)
            discovered = [c.url for c in ranked if c.url]
        else:
            competitors = [
                CompetitorCandidate(domain=c.domain, url=f"https://{c.domain}", title=c.domain)
                for c in ranked
            ]
            discovered = [c.domain for c in ranked]

        if not competitors:
            raise DegradedResultError("intersection", "No competitors found for intersection analysis")

        services_embedding = await self._services_embedding(business.service_profile)

        analyzed = 0
        for competitor in competitors:
            if await self._intersect_competitor(
                business_id, business, competitor, user_domain,
                location_code, language, services_embedding,
            ):
                analyzed += 1

        logger.info(f"Domain intersection analysis completed for {analyzed}/{len(competitors)} competitors")

        if discovered:
            merged = merge_unique(business.competitors, discovered)
            await self.store.merge(business_path(business_id), {"competitors": merged})
            logger.info(f"Updated competitors: {len(business.competitors)} -> {len(merged)} total")

        await self._run_stage("target_keywords", self.target_keywords.generate(business_id))
        return analyzed

    async def _services_embedding(self, profile_text: str) -> Optional[List[float]]:
        if not profile_text:
            logger.warning("No services found, unique keywords will not be similarity-scored")
            return None
        try:
            return await self.embeddings.embed(profile_text)
        except Exception as e:
            logger.warning(f"Failed to embed services profile: {e}")
            return None

    async def _intersect_competitor(
        self,
        business_id: str,
        business: BusinessRecord,
        competitor: CompetitorCandidate,
        user_domain: str,
        location_code: int,
        language: str,
        services_embedding: Optional[List[float]],
    ) -> bool:
        competitor_domain = normalize_domain(competitor.url or competitor.domain)
        if not competitor_domain or competitor_domain == user_domain:
            return False

        try:
            for mode in (IntersectionMode.SHARED, IntersectionMode.UNIQUE):
                result = await self.intersection.intersect(
                    competitor_domain,
                    user_domain,
                    location_code,
                    language,
                    mode,
                    services_embedding=services_embedding if mode == IntersectionMode.UNIQUE else None,
                    target_keywords=business.target_keywords,
                )
                if not result.total_count:
                    continue

                document = {
                    "competitor_domain": competitor_domain,
                    "competitor_title": competitor.title,
                    "user_domain": user_domain,
                    "total_keywords": result.total_count,
                    "keywords": [k.to_dict() for k in result.items],
                    "processed_at": _now(),
                }
                if mode == IntersectionMode.UNIQUE:
                    document["has_similarity_scores"] = services_embedding is not None

                await self.store.set(intersection_path(business_id, mode.value, competitor_domain), document)
                logger.info(f"Saved {result.total_count} {mode.value} keywords for {competitor_domain}")
        except Exception as e:
            logger.warning(f"Failed to analyze intersection with {competitor.url or competitor.domain}: {e}")
            return False

        return True

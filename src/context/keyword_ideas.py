"""
Keyword Ideas

Expands a business's seed keywords into related keyword ideas, scores each
idea and groups them into opportunity buckets.

Results are stored twice under the business document:
- keyword_ideas/<timestamp>: summary and top opportunities per bucket
- keyword_ideas_history/<timestamp>: the full scored idea list
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from src.collector.client import get_location_code
from src.persistence.storage import DocumentStore, business_path, keyword_ideas_path
from src.scoring.helpers import DEFAULT_DIFFICULTY
from src.scoring.opportunity import categorize_keywords, get_opportunity_summary, score_keywords
from src.utils.errors import NotFoundError, ValidationError

from .models import BusinessRecord, KeywordRecord, SearchIntent

if TYPE_CHECKING:
    from src.collector.client import DataForSEOClient

logger = logging.getLogger(__name__)


def keyword_from_idea_item(item: Dict[str, Any]) -> Optional[KeywordRecord]:
    """Map a keyword_ideas item to a KeywordRecord (unknown difficulty defaults to 50)."""
    keyword = item.get("keyword")
    if not keyword:
        return None

    info = item.get("keyword_info") or {}
    intent = item.get("search_intent_info") or {}
    properties = item.get("keyword_properties") or {}
    difficulty = properties.get("keyword_difficulty")

    return KeywordRecord(
        keyword=keyword,
        search_volume=info.get("search_volume") or 0,
        competition=info.get("competition"),
        cpc=info.get("cpc") or 0.0,
        search_intent=intent.get("main_intent") or SearchIntent.UNKNOWN.value,
        difficulty=difficulty if difficulty is not None else DEFAULT_DIFFICULTY,
    )


class KeywordIdeasService:
    """
    Generates and stores scored keyword ideas for a business.

    Usage:
        service = KeywordIdeasService(dataforseo_client, store)
        result = await service.generate("business-123")
        print(result["analysis_summary"]["high_priority_opportunities"])
    """

    def __init__(
        self,
        dataforseo_client: "DataForSEOClient",
        store: DocumentStore,
        limit: int = 150,
        bucket_cap: int = 50,
    ):
        self.client = dataforseo_client
        self.store = store
        self.limit = limit
        self.bucket_cap = bucket_cap

    async def generate(self, business_id: str) -> Dict[str, Any]:
        """
        Generate keyword ideas from the business's seed keywords.

        Raises:
            NotFoundError: Business document missing
            ValidationError: No seed keywords
            DataForSEOError: Upstream failure
        """
        document = await self.store.get(business_path(business_id))
        if document is None:
            raise NotFoundError(f"Business {business_id} not found")

        business = BusinessRecord(**document)
        if not business.seed_keywords:
            raise ValidationError("No seed keywords found for this business")

        location_code = get_location_code(business.target_country_code)
        language = business.language or "en"

        logger.info(f"Requesting keyword ideas for {len(business.seed_keywords)} seed keywords")

        response = await self.client.get_keyword_ideas(
            business.seed_keywords,
            location_code=location_code,
            language_code=language,
            limit=self.limit,
        )

        ideas: List[KeywordRecord] = [
            k for k in (keyword_from_idea_item(i) for i in response["items"]) if k
        ]
        logger.info(f"Retrieved {len(ideas)} keyword ideas")

        scored = score_keywords(ideas)
        buckets = categorize_keywords(scored, cap=self.bucket_cap)
        summary = get_opportunity_summary(scored, buckets)

        created_at = datetime.now(timezone.utc).isoformat()
        doc_id = str(int(time.time() * 1000))
        common = {
            "seed_keywords": business.seed_keywords,
            "location_code": location_code,
            "language_code": language,
            "website_url": business.website_url or "",
            "cost": response.get("cost", 0),
            "created_at": created_at,
        }

        result = {
            **common,
            "total_opportunities_found": len(scored),
            "analysis_summary": summary,
            "top_opportunities": buckets.to_dict(),
        }

        await self.store.set(keyword_ideas_path(business_id, doc_id), result)
        await self.store.set(
            keyword_ideas_path(business_id, doc_id, history=True),
            {
                **common,
                "total_ideas": len(scored),
                "keyword_ideas": [k.to_dict() for k in scored],
            },
        )

        logger.info(f"Stored {len(scored)} keyword ideas for business {business_id}")
        return result

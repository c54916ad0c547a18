"""
Competitor & Keyword Data Models

Defines the types passed between pipeline stages:
- Competitor candidates (discovered, filtered, ranked)
- Keyword records (intersection and keyword-ideas results)
- Opportunity buckets
- Business records and service-profile text extraction
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class BusinessType(str, Enum):
    """How the business acquires customers."""
    LOCAL = "local"  # Brick-and-mortar, discovered via Maps
    ONLINE = "online"  # Discovered via organic domain competitors


class IntersectionMode(str, Enum):
    """Domain intersection mode."""
    SHARED = "shared"  # Keywords both domains rank for
    UNIQUE = "unique"  # Keywords only the first domain ranks for


class SearchIntent(str, Enum):
    """Search intent classification."""
    TRANSACTIONAL = "transactional"
    COMMERCIAL = "commercial"
    INFORMATIONAL = "informational"
    NAVIGATIONAL = "navigational"
    UNKNOWN = "unknown"


# =============================================================================
# COMPETITORS
# =============================================================================


@dataclass
class CompetitorCandidate:
    """A candidate competitor domain or local business."""
    domain: str
    url: Optional[str] = None
    title: Optional[str] = None

    # Discovery metrics
    organic_traffic: float = 0.0  # Estimated traffic value (etv)
    organic_keywords: int = 0  # Ranked-keyword count
    metrics: Dict[str, Any] = field(default_factory=dict)

    # Ranking enrichment
    scraped: bool = False
    scraped_text_length: Optional[int] = None
    similarity: Optional[float] = None
    user_selected: bool = False

    # Local business fields
    place_id: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    rating: Optional[float] = None
    reviews_count: Optional[int] = None
    category: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def fetch_url(self) -> str:
        """URL used to fetch page text for this candidate."""
        return self.url or f"https://{self.domain}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a storable dict, dropping unset values."""
        return {k: v for k, v in asdict(self).items() if v is not None}


# =============================================================================
# KEYWORDS
# =============================================================================


@dataclass
class KeywordRecord:
    """Keyword with search metrics."""
    keyword: str
    search_volume: int = 0
    competition: Optional[float] = None  # 0-1
    cpc: float = 0.0
    search_intent: str = SearchIntent.UNKNOWN.value
    difficulty: Optional[int] = None  # 0-100

    # Rank positions (intersection results)
    competitor_position: Optional[int] = None
    user_position: Optional[int] = None

    similarity_to_services: Optional[float] = None
    targeted: bool = False

    @property
    def word_count(self) -> int:
        return len(self.keyword.split())

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KeywordRecord":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class ScoredKeyword(KeywordRecord):
    """KeywordRecord with composite opportunity score (0-100)."""
    opportunity_score: int = 0


@dataclass
class OpportunityBuckets:
    """Eight independently filtered opportunity lists (not mutually exclusive)."""
    high_priority_opportunities: List[ScoredKeyword] = field(default_factory=list)
    high_volume_opportunities: List[ScoredKeyword] = field(default_factory=list)
    commercial_opportunities: List[ScoredKeyword] = field(default_factory=list)
    low_competition_opportunities: List[ScoredKeyword] = field(default_factory=list)
    high_value_opportunities: List[ScoredKeyword] = field(default_factory=list)
    content_opportunities: List[ScoredKeyword] = field(default_factory=list)
    quick_win_opportunities: List[ScoredKeyword] = field(default_factory=list)
    long_tail_opportunities: List[ScoredKeyword] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {name: len(items) for name, items in self.__dict__.items()}

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            name: [kw.to_dict() for kw in items]
            for name, items in self.__dict__.items()
        }


# =============================================================================
# BUSINESS RECORD
# =============================================================================


class BusinessRecord(BaseModel):
    """
    Business document as stored by onboarding.

    Only the fields the pipeline reads are declared; everything else in the
    stored document is ignored.
    """
    business_name: Optional[str] = None
    business_type: Optional[str] = None
    business_type_identifier: Optional[str] = None
    onboarding_completed: bool = False

    website_url: Optional[str] = None
    target_country_code: Optional[Any] = None  # ISO code or DataForSEO location code
    language: str = "en"
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    services: List[Any] = Field(default_factory=list)
    seed_keywords: List[str] = Field(default_factory=list)
    competitors: List[str] = Field(default_factory=list)
    target_keywords: List[str] = Field(default_factory=list)

    class Config:
        extra = "ignore"

    @property
    def service_profile(self) -> str:
        return service_profile_text(self.services)


# =============================================================================
# SERVICE TEXT
# =============================================================================

SERVICE_TEXT_FIELDS = ("name", "serviceName", "service_name", "title", "description")


def service_texts(entries: Sequence[Any]) -> List[str]:
    """
    Extract descriptor strings from heterogeneous service entries.

    Accepted shapes:
        - a bare string
        - a mapping with any of name, serviceName/service_name, title, description

    Other shapes are skipped.
    """
    texts: List[str] = []
    for entry in entries or []:
        if isinstance(entry, str):
            if entry.strip():
                texts.append(entry)
        elif isinstance(entry, Mapping):
            for key in SERVICE_TEXT_FIELDS:
                value = entry.get(key)
                if isinstance(value, str) and value.strip():
                    texts.append(value)
        else:
            logger.debug(f"Skipping unsupported service entry: {type(entry).__name__}")
    return texts


def service_profile_text(entries: Sequence[Any]) -> str:
    """Join all service descriptors into one profile text."""
    return " ".join(service_texts(entries))

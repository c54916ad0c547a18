"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.context.models import CompetitorCandidate
from src.persistence.storage import InMemoryDocumentStore, business_path
from src.utils.config import Settings


# ============================================================================
# Settings
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only (no .env)."""
    return Settings(_env_file=None)


# ============================================================================
# Upstream Response Builders
# ============================================================================

def dataforseo_envelope(
    result: Optional[List[Dict[str, Any]]] = None,
    status_code: int = 20000,
    task_status: int = 20000,
) -> Dict[str, Any]:
    """Wrap result objects the way the DataForSEO API does."""
    return {
        "status_code": status_code,
        "status_message": "Ok." if status_code == 20000 else "Error.",
        "cost": 0.01,
        "tasks": [{
            "status_code": task_status,
            "status_message": "Ok." if task_status == 20000 else "Task failed.",
            "cost": 0.01,
            "result": result,
        }],
    }


def competitor_item(domain: str, etv: float = 1000, count: int = 500) -> Dict[str, Any]:
    return {"domain": domain, "metrics": {"organic": {"etv": etv, "count": count}}}


def intersection_item(
    keyword: str,
    search_volume: int = 100,
    competition: float = 0.3,
    cpc: float = 1.0,
    intent: str = "commercial",
    difficulty: Optional[int] = 20,
    first_rank: int = 5,
    second_rank: Optional[int] = None,
) -> Dict[str, Any]:
    item = {
        "keyword_data": {
            "keyword": keyword,
            "keyword_info": {"search_volume": search_volume, "competition": competition, "cpc": cpc},
            "search_intent_info": {"main_intent": intent},
            "keyword_properties": {"keyword_difficulty": difficulty},
        },
        "first_domain_serp_element": {"rank_absolute": first_rank},
    }
    if second_rank is not None:
        item["second_domain_serp_element"] = {"rank_absolute": second_rank}
    return item


def json_transport(handler: Callable[[httpx.Request], Any]) -> httpx.MockTransport:
    """MockTransport whose handler returns (status, payload) or an httpx.Response."""
    def _handle(request: httpx.Request) -> httpx.Response:
        result = handler(request)
        if isinstance(result, httpx.Response):
            return result
        status, payload = result
        return httpx.Response(status, json=payload)
    return httpx.MockTransport(_handle)


def request_json(request: httpx.Request) -> Any:
    return json.loads(request.content.decode())


# ============================================================================
# Store & Business Fixtures
# ============================================================================

@pytest.fixture
def online_business() -> Dict[str, Any]:
    return {
        "business_name": "Acme Plumbing",
        "business_type": "online",
        "onboarding_completed": True,
        "website_url": "https://www.acmeplumbing.com",
        "target_country_code": "US",
        "language": "en",
        "services": [
            {"name": "Drain cleaning", "description": "Fast drain unclogging"},
            "Water heater repair",
        ],
        "seed_keywords": ["plumber", "drain cleaning"],
        "competitors": ["rivalplumbing.com"],
        "target_keywords": [],
    }


@pytest.fixture
def local_business() -> Dict[str, Any]:
    return {
        "business_name": "Brooklyn Pipes",
        "business_type": "local",
        "business_type_identifier": "plumber",
        "onboarding_completed": True,
        "website_url": "https://brooklynpipes.com",
        "target_country_code": 2840,
        "language": "en",
        "latitude": 40.6782,
        "longitude": -73.9442,
        "services": [{"serviceName": "Emergency plumbing"}],
        "seed_keywords": [],
        "competitors": ["https://userpick.com"],
    }


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def store_with_business(store, online_business):
    store._documents[business_path("biz1")] = online_business
    return store


# ============================================================================
# Client Mocks
# ============================================================================

@pytest.fixture
def mock_dataforseo():
    """DataForSEO client double with empty defaults."""
    client = MagicMock()
    client.get_domain_competitors = AsyncMock(return_value=[])
    client.get_maps_results = AsyncMock(return_value={})
    client.get_domain_intersection = AsyncMock(return_value={})
    client.get_keyword_ideas = AsyncMock(return_value={"items": [], "cost": 0})
    return client


@pytest.fixture
def mock_embeddings():
    """
    Embeddings double: "service"/"plumb" texts point one way, everything else another.

    Batch calls return one vector per input, in order.
    """
    def vector_for(text: str) -> List[float]:
        lowered = text.lower()
        if "plumb" in lowered or "drain" in lowered:
            return [1.0, 0.0]
        return [0.0, 1.0]

    async def embed(text):
        if isinstance(text, list):
            return [vector_for(t) for t in text]
        return vector_for(text)

    client = MagicMock()
    client.embed = AsyncMock(side_effect=embed)
    return client


@pytest.fixture
def mock_scraper():
    """Scraper double returning page text keyed by URL (None when missing)."""
    pages: Dict[str, Optional[str]] = {}

    async def fetch_many(urls, batch_size=None):
        return [pages.get(u) for u in urls]

    scraper = MagicMock()
    scraper.pages = pages
    scraper.fetch_many = AsyncMock(side_effect=fetch_many)
    return scraper


@pytest.fixture
def make_candidates() -> Callable[..., List[CompetitorCandidate]]:
    def _make(*domains: str) -> List[CompetitorCandidate]:
        return [CompetitorCandidate(domain=d, url=f"https://{d}") for d in domains]
    return _make


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that run several pipeline stages together"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )

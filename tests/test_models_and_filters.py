"""
Test Suite for Data Models and Domain Filtering

Tests:
- Service text extraction from heterogeneous service entries
- KeywordRecord / CompetitorCandidate conversion helpers
- Domain normalization, exclusion rules and outlier filtering
- Country to location code mapping
"""

import pytest

from src.collector.client import get_location_code
from src.context.models import (
    BusinessRecord,
    CompetitorCandidate,
    KeywordRecord,
    OpportunityBuckets,
    service_profile_text,
    service_texts,
)
from src.utils.domain_filter import (
    filter_competitors,
    get_exclusion_reason,
    is_excluded_domain,
    normalize_domain,
)


class TestServiceTexts:
    """Test service descriptor extraction."""

    def test_bare_strings(self):
        assert service_texts(["Drain cleaning", "Leak repair"]) == ["Drain cleaning", "Leak repair"]

    def test_mapping_fields(self):
        entries = [
            {"name": "Drain cleaning", "description": "Unclog sinks"},
            {"serviceName": "Water heaters"},
            {"service_name": "Sewer lines", "title": "Sewer"},
        ]
        assert service_texts(entries) == [
            "Drain cleaning", "Unclog sinks", "Water heaters", "Sewer lines", "Sewer",
        ]

    def test_unsupported_shapes_skipped(self):
        assert service_texts([42, None, ["nested"], {"price": 10}, "  "]) == []

    def test_profile_text(self):
        assert service_profile_text(["a", {"name": "b"}]) == "a b"
        assert service_profile_text([]) == ""

    def test_business_record_ignores_unknown_fields(self):
        business = BusinessRecord(
            business_type="online",
            services=["Plumbing"],
            seo_analysis_status="processing",
        )
        assert business.service_profile == "Plumbing"
        assert business.onboarding_completed is False


class TestRecords:
    """Test record conversion helpers."""

    def test_keyword_from_dict_ignores_unknown(self):
        record = KeywordRecord.from_dict({"keyword": "plumber", "search_volume": 10, "opportunity_score": 50})
        assert record.keyword == "plumber"
        assert record.search_volume == 10

    def test_keyword_to_dict_drops_none(self):
        data = KeywordRecord(keyword="plumber").to_dict()
        assert "difficulty" not in data
        assert data["targeted"] is False

    def test_word_count(self):
        assert KeywordRecord(keyword="emergency plumber near me").word_count == 4

    def test_candidate_fetch_url(self):
        assert CompetitorCandidate(domain="rival.com").fetch_url == "https://rival.com"
        assert CompetitorCandidate(domain="rival.com", url="https://rival.com/about").fetch_url == "https://rival.com/about"

    def test_empty_buckets(self):
        counts = OpportunityBuckets().counts()
        assert len(counts) == 8
        assert all(v == 0 for v in counts.values())


class TestDomainFilter:
    """Test domain exclusion and filtering."""

    def test_normalize_domain(self):
        assert normalize_domain("https://www.Example.com/about") == "example.com"
        assert normalize_domain("example.com") == "example.com"
        assert normalize_domain("  www.rival.co.uk ") == "rival.co.uk"
        assert normalize_domain("") == ""
        assert normalize_domain(None) == ""

    @pytest.mark.parametrize("domain", [
        "facebook.com/acmeplumbing",
        "www.yelp.com",
        "amazon.com",
        "en.wikipedia.org",
        "agency.gov",
        "state.edu",
    ])
    def test_excluded(self, domain):
        assert is_excluded_domain(domain)

    def test_real_business_passes(self):
        assert not is_excluded_domain("acmeplumbing.com")

    def test_box_com_not_caught_by_x_com(self):
        assert not is_excluded_domain("box.com")
        assert not is_excluded_domain("https://www.fedex.com/tracking")

    @pytest.mark.parametrize("value", ["x.com", "https://x.com/acme", "www.x.com", "mobile.x.com"])
    def test_x_com_matched_by_host(self, value):
        assert is_excluded_domain(value)
        assert get_exclusion_reason(value) == "Social media platform"

    def test_x_com_dropped_from_candidates(self):
        candidates = [CompetitorCandidate(domain="x.com"), CompetitorCandidate(domain="box.com")]

        assert [c.domain for c in filter_competitors(candidates)] == ["box.com"]

    def test_exclusion_reason(self):
        assert get_exclusion_reason("facebook.com") == "Social media platform"
        assert get_exclusion_reason("city.gov") == "Government/official site"
        assert get_exclusion_reason("acmeplumbing.com") is None

    def test_filter_preserves_order_and_drops_outliers(self):
        candidates = [
            CompetitorCandidate(domain="b-plumbing.com", organic_traffic=500, organic_keywords=100),
            CompetitorCandidate(domain="facebook.com"),
            CompetitorCandidate(domain="huge.com", organic_traffic=150000, organic_keywords=100),
            CompetitorCandidate(domain="many.com", organic_traffic=10, organic_keywords=60000),
            CompetitorCandidate(domain="a-plumbing.com", organic_traffic=100000, organic_keywords=50000),
            CompetitorCandidate(domain=""),
        ]
        filtered = filter_competitors(candidates)

        assert [c.domain for c in filtered] == ["b-plumbing.com", "a-plumbing.com"]


class TestLocationCodes:
    """Test country to location code mapping."""

    @pytest.mark.parametrize("country,code", [
        ("US", 2840), ("gb", 2826), ("CA", 2124), ("AU", 2036),
        ("DE", 2276), ("FR", 2250), ("ES", 2724), ("IT", 2380),
    ])
    def test_known_countries(self, country, code):
        assert get_location_code(country) == code

    def test_numeric_passthrough(self):
        assert get_location_code(2752) == 2752
        assert get_location_code("2752") == 2752

    def test_default(self):
        assert get_location_code("ZZ") == 2840
        assert get_location_code(None) == 2840

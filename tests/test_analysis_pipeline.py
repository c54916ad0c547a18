"""
Test Suite for the Analysis Pipeline

End-to-end runs of SEOAnalysisPipeline against in-memory storage and
mocked provider clients:
- Online and local flows
- Status transitions and hard failures
- Optional stages degrading without failing the run
- Target keyword selection and flagging
- Background runner
"""

import asyncio

import pytest

from conftest import competitor_item, intersection_item
from src.context.models import IntersectionMode
from src.persistence.jobs import JobStatus, JobTracker
from src.persistence.status import get_status
from src.persistence.storage import business_path, intersection_collection, intersection_path
from src.services import AnalysisRunner, SEOAnalysisPipeline, TargetKeywordGenerator
from src.utils.errors import DataForSEOError, DiscoveryError, NotFoundError, ValidationError


async def fake_intersection(target1, target2, intersections=True, **kwargs):
    """Shared: one keyword per competitor. Unique: a services-like and an unrelated keyword."""
    if intersections:
        return {"total_count": 1, "items": [intersection_item(f"{target1} reviews", second_rank=4)]}
    return {
        "total_count": 2,
        "items": [
            intersection_item("drain cleaning nyc", search_volume=900),
            intersection_item("water heater install", search_volume=300),
        ],
    }


@pytest.fixture
def pipeline(store_with_business, mock_dataforseo, mock_embeddings, mock_scraper, settings):
    mock_dataforseo.get_domain_competitors.return_value = [
        competitor_item("bakery.com"),
        competitor_item("facebook.com"),
        competitor_item("drainpros.com"),
        competitor_item("rivalplumbing.com"),
    ]
    mock_dataforseo.get_domain_intersection.side_effect = fake_intersection
    mock_scraper.pages.update({
        "https://rivalplumbing.com": "Licensed plumbing contractor",
        "https://drainpros.com": "Drain experts",
        "https://bakery.com": "Fresh bread daily",
    })
    return SEOAnalysisPipeline(
        store_with_business, mock_dataforseo, mock_embeddings, mock_scraper, settings=settings
    )


class TestOnlineAnalysis:
    """Test the online business flow."""

    @pytest.mark.asyncio
    async def test_full_run(self, pipeline, store_with_business):
        results = await pipeline.process("biz1")

        assert results["business_type"] == "online"
        assert results["domain"] == "acmeplumbing.com"
        assert results["location_code"] == 2840
        assert results["total_candidates"] == 4
        assert results["filtered_candidates"] == 3
        assert [c["domain"] for c in results["top_competitors"]] == [
            "rivalplumbing.com", "drainpros.com", "bakery.com",
        ]
        assert results["top_competitors"][0]["user_selected"] is True

        status = await get_status(store_with_business, "biz1")
        assert status["status"] == "completed"
        assert status["error"] is None

        business = await store_with_business.get(business_path("biz1"))
        assert business["seo_analysis_results"]["domain"] == "acmeplumbing.com"
        assert business["competitors"] == ["rivalplumbing.com", "drainpros.com", "bakery.com"]

    @pytest.mark.asyncio
    async def test_intersection_documents(self, pipeline, store_with_business):
        await pipeline.process("biz1")

        shared = await store_with_business.get(intersection_path("biz1", "shared", "drainpros.com"))
        unique = await store_with_business.get(intersection_path("biz1", "unique", "drainpros.com"))

        assert shared["user_domain"] == "acmeplumbing.com"
        assert shared["total_keywords"] == 1
        assert shared["keywords"][0]["user_position"] == 4
        assert "has_similarity_scores" not in shared
        assert unique["has_similarity_scores"] is True
        assert unique["keywords"][0]["similarity_to_services"] == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_target_keywords_selected_and_flagged(self, pipeline, store_with_business):
        await pipeline.process("biz1")

        business = await store_with_business.get(business_path("biz1"))
        assert business["target_keywords"] == ["drain cleaning nyc", "water heater install"]

        unique_docs = await store_with_business.list_documents(intersection_collection("biz1", "unique"))
        assert len(unique_docs) == 3
        for document in unique_docs.values():
            assert all(k["targeted"] for k in document["keywords"])

        shared_docs = await store_with_business.list_documents(intersection_collection("biz1", "shared"))
        for document in shared_docs.values():
            assert not any(k["targeted"] for k in document["keywords"])

    @pytest.mark.asyncio
    async def test_keyword_ideas_stored(self, pipeline, store_with_business, mock_dataforseo):
        await pipeline.process("biz1")

        mock_dataforseo.get_keyword_ideas.assert_awaited_once()
        ideas = await store_with_business.list_documents(f"{business_path('biz1')}/keyword_ideas")
        assert len(ideas) == 1

    @pytest.mark.asyncio
    async def test_intersection_failure_degrades(self, pipeline, store_with_business, mock_dataforseo):
        mock_dataforseo.get_domain_intersection.side_effect = DataForSEOError("intersection down")

        results = await pipeline.process("biz1")

        assert len(results["top_competitors"]) == 3
        assert (await get_status(store_with_business, "biz1"))["status"] == "completed"
        assert await store_with_business.list_documents(intersection_collection("biz1", "shared")) == {}

    @pytest.mark.asyncio
    async def test_keyword_ideas_failure_degrades(self, pipeline, store_with_business, mock_dataforseo):
        mock_dataforseo.get_keyword_ideas.side_effect = DataForSEOError("ideas down")

        await pipeline.process("biz1")

        assert (await get_status(store_with_business, "biz1"))["status"] == "completed"

    @pytest.mark.asyncio
    async def test_discovery_failure_fails_run(self, pipeline, store_with_business, mock_dataforseo):
        mock_dataforseo.get_domain_competitors.side_effect = DataForSEOError("auth failed", status_code=40100)

        with pytest.raises(DiscoveryError):
            await pipeline.process("biz1")

        status = await get_status(store_with_business, "biz1")
        assert status["status"] == "failed"
        assert "auth failed" in status["error"]

    @pytest.mark.asyncio
    async def test_online_requires_website(self, pipeline, store_with_business, mock_dataforseo):
        await store_with_business.merge(business_path("biz1"), {"website_url": None})

        with pytest.raises(ValidationError, match="Website URL"):
            await pipeline.process("biz1")

        mock_dataforseo.get_domain_intersection.assert_not_awaited()


class TestLocalAnalysis:
    """Test the local business flow."""

    @pytest.mark.asyncio
    async def test_full_run(self, store, local_business, mock_dataforseo, mock_embeddings, mock_scraper, settings):
        await store.set(business_path("loc1"), local_business)
        mock_dataforseo.get_maps_results.return_value = {"items": [
            {"type": "maps_search", "title": "Bread Co", "url": "https://bakery-local.com"},
            {"type": "maps_search", "title": "Pipes Local", "url": "https://pipes-local.com"},
            {"type": "maps_search", "title": "Profile", "url": "https://instagram.com/pipes"},
        ]}
        mock_dataforseo.get_domain_intersection.side_effect = fake_intersection
        mock_scraper.pages.update({
            "https://pipes-local.com": "Local plumbing",
            "https://bakery-local.com": "Cakes",
        })
        pipeline = SEOAnalysisPipeline(store, mock_dataforseo, mock_embeddings, mock_scraper, settings=settings)

        results = await pipeline.process("loc1")

        assert results["keyword"] == "plumber"
        assert results["total_candidates"] == 2
        assert [c["title"] for c in results["top_competitors"]] == ["Pipes Local", "Bread Co"]
        mock_dataforseo.get_maps_results.assert_awaited_once_with(
            "plumber", latitude=40.6782, longitude=-73.9442, language_code="en", depth=30
        )

        business = await store.get(business_path("loc1"))
        assert business["competitors"] == [
            "https://userpick.com", "https://pipes-local.com", "https://bakery-local.com",
        ]
        assert await store.exists(intersection_path("loc1", "unique", "userpick.com"))
        # No seed keywords: ideas stage is skipped, run still completes
        mock_dataforseo.get_keyword_ideas.assert_not_awaited()
        assert business["seo_analysis_status"] == "completed"

    @pytest.mark.asyncio
    async def test_requires_coordinates(self, store, local_business, mock_dataforseo, mock_embeddings, mock_scraper, settings):
        local_business["latitude"] = None
        await store.set(business_path("loc1"), local_business)
        pipeline = SEOAnalysisPipeline(store, mock_dataforseo, mock_embeddings, mock_scraper, settings=settings)

        with pytest.raises(ValidationError, match="Latitude and longitude"):
            await pipeline.process("loc1")

        assert (await get_status(store, "loc1"))["status"] == "failed"


class TestPipelineValidation:
    """Test document validation failures."""

    @pytest.mark.asyncio
    async def test_missing_business(self, pipeline, store_with_business):
        with pytest.raises(NotFoundError):
            await pipeline.process("missing")

        assert await store_with_business.get(business_path("missing")) is None

    @pytest.mark.asyncio
    async def test_onboarding_incomplete(self, pipeline, store_with_business):
        await store_with_business.merge(business_path("biz1"), {"onboarding_completed": False})

        with pytest.raises(ValidationError):
            await pipeline.process("biz1")

        status = await get_status(store_with_business, "biz1")
        assert status["status"] == "failed"
        assert status["error"] == "Onboarding not completed"

    @pytest.mark.asyncio
    async def test_unknown_business_type(self, pipeline, store_with_business):
        await store_with_business.merge(business_path("biz1"), {"business_type": "franchise"})

        with pytest.raises(ValidationError, match="Unknown business type"):
            await pipeline.process("biz1")


class TestTargetKeywordGenerator:
    """Test target keyword generation from stored documents."""

    @pytest.mark.asyncio
    async def test_no_scored_keywords(self, store_with_business):
        await store_with_business.set(
            intersection_path("biz1", IntersectionMode.UNIQUE.value, "rival.com"),
            {"competitor_domain": "rival.com", "keywords": [{"keyword": "pipes"}]},
        )
        generator = TargetKeywordGenerator(store_with_business)

        assert await generator.generate("biz1") == []
        business = await store_with_business.get(business_path("biz1"))
        assert business["target_keywords"] == []

    @pytest.mark.asyncio
    async def test_merges_across_competitors(self, store_with_business):
        for domain, keyword, similarity in (
            ("a.com", "best emergency plumber", 0.9),
            ("b.com", "best emergency plumber brooklyn", 0.8),
            ("b.com", "sewer line repair", 0.5),
        ):
            path = intersection_path("biz1", "unique", domain)
            document = await store_with_business.get(path) or {"competitor_domain": domain, "keywords": []}
            document["keywords"].append({"keyword": keyword, "similarity_to_services": similarity})
            await store_with_business.set(path, document)

        selected = await TargetKeywordGenerator(store_with_business, k=5).generate("biz1")

        assert selected == ["best emergency plumber", "sewer line repair"]
        b_doc = await store_with_business.get(intersection_path("biz1", "unique", "b.com"))
        assert [k.get("targeted", False) for k in b_doc["keywords"]] == [False, True]


class TestAnalysisRunner:
    """Test background execution."""

    @pytest.mark.asyncio
    async def test_submit_and_wait(self, pipeline, store_with_business):
        runner = AnalysisRunner(pipeline, JobTracker(persist=False))

        job_id = await runner.submit("biz1")
        job = await runner.wait(job_id)

        assert job.status == JobStatus.COMPLETED
        assert job.business_id == "biz1"
        assert runner.active_count == 0
        assert (await get_status(store_with_business, "biz1"))["status"] == "completed"

    @pytest.mark.asyncio
    async def test_failed_run_recorded(self, pipeline, store_with_business):
        await store_with_business.merge(business_path("biz1"), {"onboarding_completed": False})
        runner = AnalysisRunner(pipeline, JobTracker(persist=False))

        job = await runner.wait(await runner.submit("biz1"))

        assert job.status == JobStatus.FAILED
        assert job.error_message == "Onboarding not completed"

    @pytest.mark.asyncio
    async def test_submit_missing_business(self, pipeline):
        runner = AnalysisRunner(pipeline, JobTracker(persist=False))

        with pytest.raises(NotFoundError):
            await runner.submit("missing")
        assert runner.tracker.get_active_jobs_count() == 0

    @pytest.mark.asyncio
    async def test_cancel_mid_discovery_closes_status(self, pipeline, store_with_business, mock_dataforseo):
        started = asyncio.Event()

        async def slow_competitors(*args, **kwargs):
            started.set()
            await asyncio.sleep(30)
            return []

        mock_dataforseo.get_domain_competitors.side_effect = slow_competitors
        runner = AnalysisRunner(pipeline, JobTracker(persist=False))

        job_id = await runner.submit("biz1")
        await started.wait()

        assert await runner.cancel(job_id) is True

        job = runner.get_job(job_id)
        assert job.status == JobStatus.CANCELLED
        assert job.current_stage == "analysis"
        assert job.stages_completed == []
        status = await get_status(store_with_business, "biz1")
        assert status["status"] == "failed"
        assert status["error"] == "Analysis cancelled"
        assert status["completed_at"] is not None

    @pytest.mark.asyncio
    async def test_cancel_before_start_closes_status(self, pipeline, store_with_business):
        runner = AnalysisRunner(pipeline, JobTracker(persist=False))

        job_id = await runner.submit("biz1")
        assert await runner.cancel(job_id) is True

        assert runner.get_job(job_id).status == JobStatus.CANCELLED
        assert (await get_status(store_with_business, "biz1"))["status"] == "failed"

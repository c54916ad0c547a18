"""
Analysis Runner

Submits pipeline runs as background asyncio tasks. Submission returns a job
id immediately; observers poll the job tracker or the status fields on the
business document.
"""

import asyncio
import logging
from typing import Dict, Optional, TYPE_CHECKING

from src.persistence.jobs import Job, JobStatus, JobTracker
from src.persistence.status import AnalysisStatus, update_status
from src.persistence.storage import business_path
from src.utils.errors import NotFoundError

if TYPE_CHECKING:
    from .analysis import SEOAnalysisPipeline

logger = logging.getLogger(__name__)


class AnalysisRunner:
    """
    Background task runner for SEOAnalysisPipeline.

    Usage:
        runner = AnalysisRunner(pipeline, JobTracker(persist=False))
        job_id = await runner.submit("business-123")
        job = await runner.wait(job_id)
    """

    def __init__(self, pipeline: "SEOAnalysisPipeline", tracker: Optional[JobTracker] = None):
        self.pipeline = pipeline
        self.tracker = tracker or JobTracker()
        self._tasks: Dict[str, asyncio.Task] = {}

    async def submit(self, business_id: str) -> str:
        """
        Mark the business as processing and start the pipeline in the background.

        Returns:
            Job id

        Raises:
            NotFoundError: Business document missing
        """
        if not await self.pipeline.store.exists(business_path(business_id)):
            raise NotFoundError("Business not found")

        await update_status(self.pipeline.store, business_id, AnalysisStatus.PROCESSING)

        job = self.tracker.create_job(business_id)
        task = asyncio.create_task(self._run(job.job_id, business_id))
        self._tasks[job.job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job.job_id, None))

        logger.info(f"Submitted SEO analysis for {business_id} as {job.job_id}")
        return job.job_id

    async def _run(self, job_id: str, business_id: str):
        self.tracker.update_job(job_id, JobStatus.RUNNING, "analysis")
        try:
            await self.pipeline.process(business_id)
        except asyncio.CancelledError:
            await self._record_cancel(job_id, business_id)
            raise
        except Exception as e:
            # The pipeline has already recorded the failure on the business document
            self.tracker.fail_job(job_id, str(e))
            return
        self.tracker.complete_job(job_id)

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.tracker.get_job(job_id)

    async def wait(self, job_id: str) -> Optional[Job]:
        """Wait for a submitted job to finish and return its final state."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        return self.tracker.get_job(job_id)

    async def cancel(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        if task is None or task.done():
            return False
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        job = self.tracker.get_job(job_id)
        if job is not None and not job.status.is_terminal:
            # Cancelled before the task body started
            await self._record_cancel(job_id, job.business_id)
        return True

    async def _record_cancel(self, job_id: str, business_id: str):
        # The pipeline only records failures for Exception, so close the status here
        self.tracker.cancel_job(job_id)
        await update_status(self.pipeline.store, business_id, AnalysisStatus.FAILED, "Analysis cancelled")
        logger.info(f"SEO analysis for {business_id} cancelled ({job_id})")

    @property
    def active_count(self) -> int:
        return len(self._tasks)

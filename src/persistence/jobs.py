"""
Analysis Job Tracking

One job per submitted analysis run. Active jobs live in memory; every state
change is written to <jobs_path>/<job_id>.json when persistence is enabled,
so finished runs can still be looked up after the tracker restarts.
"""

import json
import logging
import os
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    PENDING = "pending"       # Submitted, task not started yet
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED})

_TIMESTAMP_FIELDS = ("created_at", "updated_at", "started_at", "completed_at")


@dataclass
class Job:
    """A single analysis run for one business."""
    job_id: str
    business_id: str
    status: JobStatus
    created_at: datetime
    updated_at: datetime

    current_stage: Optional[str] = None
    stages_completed: List[str] = field(default_factory=list)

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["status"] = self.status.value
        data["stages_completed"] = list(self.stages_completed)
        data["metadata"] = dict(self.metadata)
        for name in _TIMESTAMP_FIELDS:
            if data[name] is not None:
                data[name] = data[name].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        values = dict(data)
        values["status"] = JobStatus(values["status"])
        for name in _TIMESTAMP_FIELDS:
            if values.get(name):
                values[name] = datetime.fromisoformat(values[name])
        return cls(**values)

    def update_status(self, status: JobStatus, stage: Optional[str] = None):
        """
        Move the job to a new status.

        A stage becomes current when it is entered and is recorded as
        completed once the job moves on to another stage or completes.
        Failed and cancelled jobs leave their current stage unfinished.
        Entering RUNNING stamps the start time; entering a terminal status
        stamps the end time and duration.
        """
        now = datetime.now()
        self.status = status
        self.updated_at = now

        moving_on = status == JobStatus.COMPLETED or (
            status == JobStatus.RUNNING and stage is not None and stage != self.current_stage
        )
        if moving_on and self.current_stage:
            self._mark_stage_done(self.current_stage)

        if stage:
            self.current_stage = stage
            if status == JobStatus.COMPLETED:
                self._mark_stage_done(stage)

        if status == JobStatus.RUNNING and self.started_at is None:
            self.started_at = now

        if status.is_terminal:
            self.completed_at = now
            if self.started_at is not None:
                self.duration_seconds = (now - self.started_at).total_seconds()

    def _mark_stage_done(self, stage: str):
        if stage not in self.stages_completed:
            self.stages_completed.append(stage)


class JobTracker:
    """
    Registry of analysis jobs.

    Usage:
        tracker = JobTracker(persist=False)
        job = tracker.create_job("business-123")
        tracker.update_job(job.job_id, JobStatus.RUNNING, "analysis")
        tracker.complete_job(job.job_id)
    """

    def __init__(self, storage_path: Optional[str] = None, persist: bool = True):
        """
        Args:
            storage_path: Directory for job files.
                         Defaults to JOBS_PATH or ~/.keyword-engine/jobs/
            persist: Write job files; when False jobs only live in memory
        """
        self._jobs: Dict[str, Job] = {}
        self.storage_path: Optional[Path] = None

        if not persist:
            return

        self.storage_path = Path(
            storage_path or os.getenv("JOBS_PATH", str(Path.home() / ".keyword-engine" / "jobs"))
        )
        self.storage_path.mkdir(parents=True, exist_ok=True)

        for job in self._stored_jobs():
            if not job.status.is_terminal:
                self._jobs[job.job_id] = job
        logger.info(f"Resumed tracking of {len(self._jobs)} unfinished jobs from {self.storage_path}")

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _job_file(self, job_id: str) -> Path:
        return self.storage_path / f"{job_id}.json"

    def _read(self, path: Path) -> Optional[Job]:
        try:
            with path.open("r", encoding="utf-8") as f:
                return Job.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Unreadable job file {path}: {e}")
            return None

    def _stored_jobs(self) -> Iterator[Job]:
        for path in sorted(self.storage_path.glob("*.json")):
            job = self._read(path)
            if job is not None:
                yield job

    def _write(self, job: Job):
        if self.storage_path is None:
            return
        try:
            with self._job_file(job.job_id).open("w", encoding="utf-8") as f:
                json.dump(job.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Could not write job {job.job_id}: {e}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_job(self, business_id: str, metadata: Optional[Dict[str, Any]] = None) -> Job:
        """Register a PENDING job for a business."""
        now = datetime.now()
        job = Job(
            job_id=f"analysis_{uuid.uuid4().hex[:16]}",
            business_id=business_id,
            status=JobStatus.PENDING,
            created_at=now,
            updated_at=now,
            metadata=dict(metadata or {}),
        )
        self._jobs[job.job_id] = job
        self._write(job)

        logger.info(f"Registered {job.job_id} for business {business_id}")
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        """Active jobs come from memory, finished ones from their file."""
        job = self._jobs.get(job_id)
        if job is not None or self.storage_path is None:
            return job

        path = self._job_file(job_id)
        return self._read(path) if path.exists() else None

    def update_job(self, job_id: str, status: JobStatus, stage: Optional[str] = None) -> Optional[Job]:
        job = self.get_job(job_id)
        if job is None:
            return None

        job.update_status(status, stage)
        self._track(job)
        return job

    def _track(self, job: Job):
        # With persistence on, finished jobs are only kept on disk
        if job.status.is_terminal and self.storage_path is not None:
            self._jobs.pop(job.job_id, None)
        else:
            self._jobs[job.job_id] = job
        self._write(job)

    def complete_job(self, job_id: str) -> Optional[Job]:
        job = self.update_job(job_id, JobStatus.COMPLETED, "completed")
        if job is not None:
            logger.info(f"{job_id} completed in {job.duration_seconds or 0:.1f}s")
        return job

    def fail_job(self, job_id: str, error_message: str) -> Optional[Job]:
        job = self.get_job(job_id)
        if job is None:
            return None

        job.error_message = error_message
        job.update_status(JobStatus.FAILED)
        self._track(job)
        logger.error(f"{job_id} failed: {error_message}")
        return job

    def cancel_job(self, job_id: str) -> Optional[Job]:
        """Cancel an unfinished job. Returns None if it is unknown or already finished."""
        job = self.get_job(job_id)
        if job is None or job.status.is_terminal:
            return None

        job.update_status(JobStatus.CANCELLED)
        self._track(job)
        logger.info(f"{job_id} cancelled")
        return job

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_jobs(
        self,
        business_id: Optional[str] = None,
        status: Optional[JobStatus] = None,
        limit: int = 100,
        include_completed: bool = False,
    ) -> List[Job]:
        """
        Jobs matching the filters, newest first.

        Finished jobs are only read from disk when include_completed is set.
        """
        jobs = list(self._jobs.values())
        if include_completed and self.storage_path is not None:
            jobs.extend(j for j in self._stored_jobs() if j.job_id not in self._jobs)

        matching = [
            j for j in jobs
            if (business_id is None or j.business_id == business_id)
            and (status is None or j.status == status)
        ]
        matching.sort(key=lambda j: j.created_at, reverse=True)
        return matching[:limit]

    def get_active_jobs_count(self) -> int:
        return sum(1 for j in self._jobs.values() if not j.status.is_terminal)

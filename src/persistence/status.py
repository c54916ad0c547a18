"""
Analysis Status

Status of the latest analysis run, stored on the business document so any
observer can poll it without holding a handle to the running task.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .storage import DocumentStore, business_path

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def update_status(
    store: DocumentStore,
    business_id: str,
    status: AnalysisStatus,
    error: Optional[str] = None,
) -> None:
    """
    Record a status transition on the business document.

    processing sets the start time and clears any previous error;
    completed/failed set the completion time.
    """
    status = AnalysisStatus(status)
    fields: Dict[str, Any] = {"seo_analysis_status": status.value}

    if status == AnalysisStatus.PROCESSING:
        fields["seo_analysis_started_at"] = _now()
        fields["seo_analysis_error"] = None
    elif status == AnalysisStatus.COMPLETED:
        fields["seo_analysis_completed_at"] = _now()
        fields["seo_analysis_error"] = None
    elif status == AnalysisStatus.FAILED:
        fields["seo_analysis_completed_at"] = _now()
        fields["seo_analysis_error"] = error or "Unknown error"

    await store.merge(business_path(business_id), fields)
    logger.info(f"SEO analysis status for {business_id}: {status.value}")


async def get_status(store: DocumentStore, business_id: str) -> Dict[str, Any]:
    """Read the analysis status fields (idle if never run)."""
    document = await store.get(business_path(business_id)) or {}
    return {
        "status": document.get("seo_analysis_status") or AnalysisStatus.IDLE.value,
        "started_at": document.get("seo_analysis_started_at"),
        "completed_at": document.get("seo_analysis_completed_at"),
        "error": document.get("seo_analysis_error"),
    }

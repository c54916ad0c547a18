"""
Persistence Layer

Provides document storage for analysis results, the analysis status store,
and job tracking.
"""

from .storage import (
    DocumentStore,
    InMemoryDocumentStore,
    FileDocumentStore,
    get_document_store,
    business_path,
    intersection_collection,
    intersection_path,
    keyword_ideas_path,
)
from .jobs import JobTracker, Job, JobStatus
from .status import AnalysisStatus, update_status, get_status

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "FileDocumentStore",
    "get_document_store",
    "business_path",
    "intersection_collection",
    "intersection_path",
    "keyword_ideas_path",
    "JobTracker",
    "Job",
    "JobStatus",
    "AnalysisStatus",
    "update_status",
    "get_status",
]

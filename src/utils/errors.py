"""
Error Taxonomy

Exceptions shared by every stage of the competitor/keyword pipeline.

- ProviderError: an upstream API returned a non-success status or a
  malformed payload. Propagated to the caller of the component.
- NotFoundError: a required input record does not exist.
- ValidationError: a required business field is missing.
- DegradedResultError: an optional enrichment stage failed. Caught at the
  stage boundary, logged, and never re-thrown past the orchestrator.
"""

from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base class for all engine errors."""


class ProviderError(EngineError):
    """Upstream provider returned an error or an unusable payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class DataForSEOError(ProviderError):
    """DataForSEO API error (HTTP or API-level status)."""


class DiscoveryError(DataForSEOError):
    """Competitor discovery returned a non-success status."""


class EmbeddingError(ProviderError):
    """Vectorization provider error."""


class NotFoundError(EngineError):
    """Required input record is missing."""


class ValidationError(EngineError):
    """Required business fields are missing or invalid."""


class DegradedResultError(EngineError):
    """Non-fatal failure of an optional enrichment stage."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage

"""Utility modules for the competitor & keyword opportunity engine."""

from .config import Settings, get_settings
from .errors import (
    EngineError,
    ProviderError,
    DataForSEOError,
    DiscoveryError,
    EmbeddingError,
    NotFoundError,
    ValidationError,
    DegradedResultError,
)

__all__ = [
    "Settings",
    "get_settings",
    # Errors
    "EngineError",
    "ProviderError",
    "DataForSEOError",
    "DiscoveryError",
    "EmbeddingError",
    "NotFoundError",
    "ValidationError",
    "DegradedResultError",
]

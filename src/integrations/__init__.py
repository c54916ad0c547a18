"""
External API Integrations

Clients for third-party APIs used in competitor and keyword analysis:
- Embeddings: OpenAI text vectors for similarity scoring
- Jina: Plain-text page fetching
- Config: Unified configuration and client management
"""

from .embeddings import EmbeddingClient, Embedding
from .jina import JinaScraper
from .config import ExternalAPIConfig, ExternalAPIClients

__all__ = [
    # Embeddings
    "EmbeddingClient",
    "Embedding",
    # Jina
    "JinaScraper",
    # Config
    "ExternalAPIConfig",
    "ExternalAPIClients",
]

"""
External API Configuration

Configuration and factory for the provider clients used by the pipeline.
Credentials come from Settings (environment / .env).

Providers:
- DATAFORSEO_LOGIN / DATAFORSEO_PASSWORD: discovery, intersection, keyword ideas
- OPENAI_API_KEY: embeddings
- JINA_API_KEY: page text (optional; anonymous access works at lower rate limits)
"""

import logging
from typing import Optional

from src.collector.client import DataForSEOClient
from src.utils.config import Settings, get_settings

from .embeddings import EmbeddingClient
from .jina import JinaScraper

logger = logging.getLogger(__name__)


class ExternalAPIConfig:
    """Configuration for external APIs."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize external API configuration.

        Args:
            settings: Application settings (defaults to cached env settings)
        """
        settings = settings or get_settings()

        self.dataforseo_login = settings.DATAFORSEO_LOGIN
        self.dataforseo_password = settings.DATAFORSEO_PASSWORD
        self.openai_api_key = settings.OPENAI_API_KEY
        self.embedding_model = settings.EMBEDDING_MODEL
        self.jina_api_key = settings.JINA_API_KEY
        self.max_embedding_chars = settings.MAX_EMBEDDING_CHARS
        self.timeout = float(settings.API_TIMEOUT)

    @property
    def has_dataforseo(self) -> bool:
        return bool(self.dataforseo_login and self.dataforseo_password)

    @property
    def has_embeddings(self) -> bool:
        return bool(self.openai_api_key)

    def log_status(self):
        """Log configuration status."""
        logger.info(
            f"External API status: "
            f"DataForSEO={'configured' if self.has_dataforseo else 'missing'}, "
            f"Embeddings={'configured' if self.has_embeddings else 'missing'}, "
            f"Jina={'keyed' if self.jina_api_key else 'anonymous'}"
        )


class ExternalAPIClients:
    """
    Factory and manager for external API clients.

    Clients are created lazily on first access and shared afterwards.

    Usage:
        clients = ExternalAPIClients(ExternalAPIConfig())

        if clients.dataforseo:
            items = await clients.dataforseo.get_domain_competitors("example.com")

        await clients.close()
    """

    def __init__(self, config: Optional[ExternalAPIConfig] = None):
        self.config = config or ExternalAPIConfig()
        self._dataforseo: Optional[DataForSEOClient] = None
        self._embeddings: Optional[EmbeddingClient] = None
        self._jina: Optional[JinaScraper] = None

    @property
    def dataforseo(self) -> Optional[DataForSEOClient]:
        """Get or create DataForSEO client."""
        if not self.config.has_dataforseo:
            return None

        if self._dataforseo is None:
            self._dataforseo = DataForSEOClient(
                login=self.config.dataforseo_login,
                password=self.config.dataforseo_password,
                timeout=self.config.timeout,
            )
            logger.info("Initialized DataForSEO client")

        return self._dataforseo

    @property
    def embeddings(self) -> Optional[EmbeddingClient]:
        """Get or create embeddings client."""
        if not self.config.has_embeddings:
            return None

        if self._embeddings is None:
            self._embeddings = EmbeddingClient(
                api_key=self.config.openai_api_key,
                model=self.config.embedding_model,
                max_chars=self.config.max_embedding_chars,
                timeout=self.config.timeout,
            )
            logger.info("Initialized embeddings client")

        return self._embeddings

    @property
    def jina(self) -> JinaScraper:
        """Get or create Jina reader client."""
        if self._jina is None:
            self._jina = JinaScraper(
                api_key=self.config.jina_api_key,
                timeout=self.config.timeout,
            )
            logger.info("Initialized Jina reader client")

        return self._jina

    async def close(self):
        """Close all clients."""
        if self._dataforseo:
            await self._dataforseo.close()
            self._dataforseo = None

        if self._embeddings:
            await self._embeddings.close()
            self._embeddings = None

        if self._jina:
            await self._jina.close()
            self._jina = None

        logger.info("Closed external API clients")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # DataForSEO (discovery, intersection, keyword ideas)
    DATAFORSEO_LOGIN: Optional[str] = None
    DATAFORSEO_PASSWORD: Optional[str] = None

    # OpenAI embeddings
    OPENAI_API_KEY: Optional[str] = None
    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # Jina reader (page text)
    JINA_API_KEY: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    STORAGE_PATH: Optional[str] = None
    JOBS_PATH: Optional[str] = None

    # Defaults for requests
    DEFAULT_LOCATION_CODE: int = 2840
    DEFAULT_LANGUAGE: str = "en"

    # Timeouts
    API_TIMEOUT: int = 60

    # Text and batching limits
    MAX_EMBEDDING_CHARS: int = 8000
    EMBEDDING_CHUNK_SIZE: int = 2000
    SCRAPE_BATCH_SIZE: int = 20

    # Competitor discovery and filtering
    COMPETITOR_DISCOVERY_LIMIT: int = 100
    MAX_COMPETITOR_TRAFFIC_VALUE: float = 100000
    MAX_COMPETITOR_KEYWORDS: int = 50000
    TOP_ONLINE_COMPETITORS: int = 10
    TOP_LOCAL_COMPETITORS: int = 20
    MAPS_SEARCH_DEPTH: int = 30

    # Keyword selection
    INTERSECTION_LIMIT: int = 500
    KEYWORD_IDEAS_LIMIT: int = 150
    BUCKET_CAP: int = 50
    TARGET_KEYWORD_COUNT: int = 20
    DIVERSITY_THRESHOLD: float = 0.7

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()

"""
Jina Reader Client

Fetches plain-text page content for competitor similarity scoring.

Fetching is best-effort: any network or HTTP failure returns None so the
caller can treat the page as unscraped and carry on.

API: https://r.jina.ai/<url>
"""

import asyncio
import logging
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)


class JinaScraper:
    """
    Async client for the Jina reader.

    Usage:
        scraper = JinaScraper(api_key="jina_...")

        text = await scraper.fetch("https://example.com")  # str or None

        await scraper.close()
    """

    BASE_URL = "https://r.jina.ai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Jina reader client.

        Args:
            api_key: Jina API key (anonymous access when omitted)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        headers = {"X-Return-Format": "text"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            transport=transport,
        )
        self._closed = False

    async def fetch(self, url: str) -> Optional[str]:
        """
        Fetch plain text for a URL.

        Args:
            url: Page URL

        Returns:
            Page text, or None if the fetch failed
        """
        if self._closed:
            logger.warning(f"Jina client closed, cannot fetch {url}")
            return None

        try:
            response = await self._client.get(f"{self.BASE_URL}/{url}")
        except httpx.HTTPError as e:
            logger.warning(f"Error scraping {url}: {e}")
            return None

        # Unfollowable redirects count as failures too
        if not response.is_success:
            logger.warning(f"Failed to scrape {url}: {response.status_code}")
            return None

        return response.text

    async def fetch_many(self, urls: List[str], batch_size: Optional[int] = None) -> List[Optional[str]]:
        """
        Fetch several URLs concurrently.

        Args:
            urls: URLs to fetch
            batch_size: Maximum URLs in flight at once (None = all at once)

        Returns:
            Texts (or None) in the same order as urls
        """
        if not batch_size:
            return list(await asyncio.gather(*(self.fetch(u) for u in urls)))

        results: List[Optional[str]] = []
        for i in range(0, len(urls), batch_size):
            batch = urls[i:i + batch_size]
            results.extend(await asyncio.gather(*(self.fetch(u) for u in batch)))
            logger.info(f"Processed {min(i + batch_size, len(urls))} / {len(urls)} websites")
        return results

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

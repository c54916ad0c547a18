"""
OpenAI Embeddings Client

Converts text into fixed-length embedding vectors for similarity scoring.

- Single text or batch input
- Each text truncated to 8000 characters before sending
- Batch results re-sorted by the provider's returned index

API: https://platform.openai.com/docs/api-reference/embeddings
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from src.utils.errors import EmbeddingError

logger = logging.getLogger(__name__)

Embedding = List[float]

MAX_INPUT_CHARS = 8000


class EmbeddingClient:
    """
    Async client for the OpenAI embeddings endpoint.

    Usage:
        client = EmbeddingClient(api_key="sk-...")

        vector = await client.embed("plumbing and drain cleaning")
        vectors = await client.embed(["text one", "text two"])

        await client.close()
    """

    BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        max_chars: int = MAX_INPUT_CHARS,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize embeddings client.

        Args:
            api_key: OpenAI API key
            model: Embedding model name
            max_chars: Per-text truncation limit
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.model = model
        self.max_chars = max_chars

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def embed(self, text: Union[str, List[str]]) -> Union[Embedding, List[Embedding]]:
        """
        Embed a single text or a batch of texts.

        Args:
            text: A string, or a list of strings

        Returns:
            One vector for a string input; a list of vectors in input order
            for a list input

        Raises:
            EmbeddingError: On HTTP error or malformed payload
        """
        is_batch = isinstance(text, list)
        if is_batch:
            if not text:
                return []
            payload_input: Union[str, List[str]] = [t[: self.max_chars] for t in text]
        else:
            payload_input = text[: self.max_chars]

        data = await self._post({"model": self.model, "input": payload_input})

        items = data.get("data")
        if not isinstance(items, list) or not items:
            raise EmbeddingError("Invalid response format from embeddings API", response=data)

        try:
            if is_batch:
                ordered = sorted(items, key=lambda item: item["index"])
                vectors = [item["embedding"] for item in ordered]
                if len(vectors) != len(payload_input):
                    raise EmbeddingError(
                        f"Expected {len(payload_input)} embeddings, got {len(vectors)}",
                        response=data,
                    )
                return vectors
            return items[0]["embedding"]
        except (KeyError, TypeError) as e:
            raise EmbeddingError(f"Malformed embedding item: {e}", response=data) from e

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self._closed:
            raise EmbeddingError("Client has been closed")

        try:
            response = await self._client.post("/embeddings", json=payload)
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embeddings request failed: {e}") from e

        if response.status_code >= 400:
            raise EmbeddingError(
                f"Embeddings API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise EmbeddingError("Embeddings API returned invalid JSON") from e

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

"""
DataForSEO API Client

Async HTTP client with:
- Basic-auth session over a pooled httpx client
- One request per call (no automatic retry)
- API-level status checking (status_code 20000)
- Typed helpers for the endpoints used by competitor and keyword analysis
"""

import base64
import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from src.utils.errors import DataForSEOError

logger = logging.getLogger(__name__)


SUCCESS_STATUS = 20000
TASK_OK_STATUSES = (20000, 20100)

DEFAULT_LOCATION_CODE = 2840  # United States

LOCATION_CODES: Dict[str, int] = {
    "US": 2840,
    "GB": 2826,
    "CA": 2124,
    "AU": 2036,
    "DE": 2276,
    "FR": 2250,
    "ES": 2724,
    "IT": 2380,
}


def get_location_code(country: Union[str, int, None]) -> int:
    """
    Map a country to a DataForSEO location code.

    Accepts an ISO country code ("US", "gb") or a numeric location code,
    which is passed through unchanged. Unknown countries map to the US.
    """
    if country is None:
        return DEFAULT_LOCATION_CODE
    if isinstance(country, int):
        return country

    value = str(country).strip()
    if value.isdigit():
        return int(value)
    return LOCATION_CODES.get(value.upper(), DEFAULT_LOCATION_CODE)


def safe_get_result(response: Dict, get_items: bool = True) -> Any:
    """
    Pull tasks[0].result[0] (or its "items") out of a response envelope.

    Missing or malformed levels yield an empty list (items) or empty dict
    (result object) instead of raising.
    """
    empty: Any = [] if get_items else {}

    tasks = response.get("tasks") if isinstance(response, dict) else None
    if not tasks or not isinstance(tasks, list) or not isinstance(tasks[0], dict):
        return empty

    result = tasks[0].get("result")
    if not result or not isinstance(result, list):
        return empty

    first_result = result[0]
    if not first_result or not isinstance(first_result, dict):
        return empty

    if not get_items:
        return first_result

    items = first_result.get("items")
    return items if items and isinstance(items, list) else []


class DataForSEOClient:
    """
    Thin async wrapper over the DataForSEO v3 REST endpoints.

    Usage:
        async with DataForSEOClient(login, password) as client:
            items = await client.get_domain_competitors("acme.com", location_code=2840)
    """

    BASE_URL = "https://api.dataforseo.com/v3"

    def __init__(
        self,
        login: str,
        password: str,
        max_connections: int = 50,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            login: Account login (email)
            password: Account API password
            max_connections: Connection pool size
            timeout: Per-request timeout in seconds
            transport: Custom httpx transport, e.g. httpx.MockTransport
        """
        self.login = login
        token = base64.b64encode(f"{login}:{password}".encode()).decode()

        pool = httpx.Limits(max_connections=max_connections, max_keepalive_connections=max_connections // 2)
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={"Authorization": f"Basic {token}", "Content-Type": "application/json"},
            limits=pool,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def post(self, endpoint: str, data: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        POST a list of task objects to an endpoint and return the decoded envelope.

        Task-level errors are logged but not raised; callers read the items
        they need with safe_get_result.

        Raises:
            DataForSEOError: On transport error, non-200 response or non-20000 API status
        """
        if self._closed:
            raise DataForSEOError("Client is closed")

        url = f"/{endpoint}"
        logger.debug(f"DataForSEO request: {url} ({len(data)} task(s))")

        try:
            response = await self._client.post(url, json=data)
        except httpx.HTTPError as e:
            raise DataForSEOError(f"HTTP error calling {endpoint}: {e}") from e

        if response.status_code != 200:
            raise DataForSEOError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                response=self._json_or_none(response),
            )

        result = self._json_or_none(response)
        if not isinstance(result, dict):
            raise DataForSEOError(f"Invalid JSON from {endpoint}", status_code=response.status_code)

        api_status = result.get("status_code")
        if api_status != SUCCESS_STATUS:
            raise DataForSEOError(
                f"API error: {api_status} - {result.get('status_message', 'Unknown error')}",
                status_code=api_status,
                response=result,
            )

        failed = [t for t in result.get("tasks") or [] if t.get("status_code") not in TASK_OK_STATUSES]
        for task in failed:
            logger.error(f"Task failed on {url}: [{task.get('status_code')}] {task.get('status_message')}")

        logger.info(f"{endpoint} call successful. Cost: ${result.get('cost', 0)}")
        return result

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Optional[Any]:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ========================================================================
    # ENDPOINT HELPERS
    # ========================================================================

    async def get_maps_results(
        self,
        keyword: str,
        latitude: float,
        longitude: float,
        language_code: str = "en",
        depth: int = 30,
    ) -> Dict[str, Any]:
        """
        Search Google Maps around a coordinate.

        Args:
            keyword: Business-type search phrase
            latitude: Center latitude
            longitude: Center longitude
            language_code: Language code
            depth: Number of results to request

        Returns:
            First result object (items, se_results_count, check_url), or {} if empty
        """
        result = await self.post(
            "serp/google/maps/live/advanced",
            [{
                "keyword": keyword,
                "location_coordinate": f"{latitude},{longitude},12z",
                "language_code": language_code,
                "depth": depth,
                "search_this_area": False,
            }]
        )
        return safe_get_result(result, get_items=False)

    async def get_domain_competitors(
        self,
        domain: str,
        location_code: int = DEFAULT_LOCATION_CODE,
        language_code: str = "en",
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Get organic competitor domains for a target domain.

        Args:
            domain: Target domain
            location_code: DataForSEO location code
            language_code: Language code
            limit: Max competitors to return

        Returns:
            Raw competitor items (domain, metrics.organic.etv/count, ...)
        """
        result = await self.post(
            "dataforseo_labs/google/competitors_domain/live",
            [{
                "target": domain,
                "location_code": location_code,
                "language_code": language_code,
                "limit": limit,
                "item_types": ["organic"],
            }]
        )
        return safe_get_result(result)

    async def get_domain_intersection(
        self,
        target1: str,
        target2: str,
        location_code: int = DEFAULT_LOCATION_CODE,
        language_code: str = "en",
        intersections: bool = True,
        limit: int = 500,
    ) -> Dict[str, Any]:
        """
        Get keywords shared by (or unique to the first of) two domains.

        Args:
            target1: First domain (positions reported as first_domain_serp_element)
            target2: Second domain
            location_code: DataForSEO location code
            language_code: Language code
            intersections: True for shared keywords, False for keywords only target1 ranks for
            limit: Max keywords to return

        Returns:
            First result object (total_count, items), or {} if empty
        """
        result = await self.post(
            "dataforseo_labs/google/domain_intersection/live",
            [{
                "target1": target1,
                "target2": target2,
                "location_code": location_code,
                "language_code": language_code,
                "include_serp_info": True,
                "intersections": intersections,
                "limit": limit,
            }]
        )
        return safe_get_result(result, get_items=False)

    async def get_keyword_ideas(
        self,
        keywords: List[str],
        location_code: int = DEFAULT_LOCATION_CODE,
        language_code: str = "en",
        limit: int = 150,
    ) -> Dict[str, Any]:
        """
        Get related keyword ideas for a list of seed keywords.

        Only ideas with search volume above zero are returned, highest volume first.

        Returns:
            Dict with "items" (raw keyword items) and "cost"

        Raises:
            DataForSEOError: If the task itself failed
        """
        result = await self.post(
            "dataforseo_labs/google/keyword_ideas/live",
            [{
                "keywords": keywords,
                "location_code": location_code,
                "language_code": language_code,
                "include_serp_info": False,
                "include_seed_keyword": False,
                "limit": limit,
                "filters": [["keyword_info.search_volume", ">", 0]],
                "order_by": ["keyword_info.search_volume,desc"],
            }]
        )

        tasks = result.get("tasks") or []
        if not tasks:
            raise DataForSEOError("No results from DataForSEO", response=result)

        task = tasks[0]
        if task.get("status_code") != SUCCESS_STATUS:
            raise DataForSEOError(
                task.get("status_message") or "DataForSEO task failed",
                status_code=task.get("status_code"),
                response=result,
            )

        return {"items": safe_get_result(result), "cost": task.get("cost", 0)}

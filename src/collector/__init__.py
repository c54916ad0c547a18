"""
Data Collection Package

Wire client for the DataForSEO API:
- Google Maps local-business search
- Organic domain competitors
- Domain intersection (shared / unique keywords)
- Keyword ideas from seed keywords
"""

from .client import (
    DataForSEOClient,
    DataForSEOError,
    LOCATION_CODES,
    get_location_code,
    safe_get_result,
)

__all__ = [
    "DataForSEOClient",
    "DataForSEOError",
    "LOCATION_CODES",
    "get_location_code",
    "safe_get_result",
]

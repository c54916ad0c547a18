"""
Competitor Domain Filtering

Blocklist and outlier rules applied to every competitor source: organic
domain competitors, Google Maps results and competitors the user entered.

Platforms like Facebook, Amazon, Yelp etc. are never peer competitors, and
neither are government/education sites or domains whose organic footprint is
so large that they are clearly platforms rather than businesses.
"""

import logging
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from src.context.models import CompetitorCandidate

logger = logging.getLogger(__name__)


# =============================================================================
# EXCLUDED DOMAINS - matched as substrings of the lowercased domain/URL
# =============================================================================

# Social Media Platforms
SOCIAL_MEDIA = {
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "linkedin.com",
    "tiktok.com",
    "pinterest.com",
    "snapchat.com",
    "reddit.com",
}

# Short names that would match inside unrelated domains (box.com, fedex.com),
# so they are matched against the hostname instead of as substrings
SOCIAL_MEDIA_HOSTS = {
    "x.com",
}

# Video Platforms
VIDEO_PLATFORMS = {
    "youtube.com",
}

# E-commerce Marketplaces
MARKETPLACES = {
    "amazon.com",
    "ebay.com",
}

# Reference & Q&A Sites
REFERENCE_SITES = {
    "wikipedia.org",
    "quora.com",
    "medium.com",
}

# Review, Directory & Job Sites
REVIEW_DIRECTORIES = {
    "yelp.com",
    "yellowpages.com",
    "tripadvisor.com",
    "foursquare.com",
    "mapquest.com",
    "thumbtack.com",
    "angieslist.com",
    "bbb.org",
    "indeed.com",
    "glassdoor.com",
}

# Government & Educational TLDs (suffix match)
GOVERNMENT_SUFFIXES = (".gov", ".edu")

# Combine all into master set, keeping the category of each group
_EXCLUSION_GROUPS = (
    (SOCIAL_MEDIA, "Social media platform"),
    (VIDEO_PLATFORMS, "Video/media platform"),
    (MARKETPLACES, "E-commerce marketplace"),
    (REFERENCE_SITES, "Reference/educational site"),
    (REVIEW_DIRECTORIES, "Review/directory site"),
)
EXCLUDED_DOMAINS = frozenset().union(*(group for group, _ in _EXCLUSION_GROUPS))

# Local business listings only drop social profiles; directories are handled
# by the Maps result type filter.
SOCIAL_PROFILE_DOMAINS = SOCIAL_MEDIA | VIDEO_PLATFORMS


# =============================================================================
# NORMALIZATION
# =============================================================================


def normalize_domain(value: Optional[str]) -> str:
    """
    Normalize a URL or domain to a bare lowercase hostname.

    Inserts a default https:// scheme when missing and strips a leading www.

    >>> normalize_domain("https://www.Example.com/about")
    'example.com'
    >>> normalize_domain("example.com")
    'example.com'
    """
    if not value:
        return ""

    url = value.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return value.strip().lower()

    hostname = hostname.lower()
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


# =============================================================================
# EXCLUSION RULES
# =============================================================================


def matches_host(domain: Optional[str], hosts: Iterable[str]) -> bool:
    """True when the hostname of a domain or URL is one of hosts or a subdomain of one."""
    hostname = normalize_domain(domain)
    return any(hostname == host or hostname.endswith(f".{host}") for host in hosts)


def is_excluded_domain(
    domain: Optional[str],
    blocklist: Iterable[str] = EXCLUDED_DOMAINS,
    hosts: Iterable[str] = SOCIAL_MEDIA_HOSTS,
) -> bool:
    """
    True when a domain (or URL) can never be a peer competitor.

    A blocklist entry anywhere in the value excludes it, so
    "www.facebook.com/somepage" matches "facebook.com". Entries in hosts must
    match the hostname itself. Government and education suffixes are excluded
    as well. Empty values are excluded.
    """
    if not domain:
        return True

    value = domain.lower().strip()
    if any(entry in value for entry in blocklist) or matches_host(value, hosts):
        return True
    return value.endswith(GOVERNMENT_SUFFIXES)


def is_traffic_outlier(
    candidate: CompetitorCandidate,
    max_traffic_value: float = 100000,
    max_keywords: int = 50000,
) -> bool:
    """Platforms and marketplaces show up with an outsized organic footprint."""
    return (
        (candidate.organic_traffic or 0) > max_traffic_value
        or (candidate.organic_keywords or 0) > max_keywords
    )


def filter_competitors(
    candidates: List[CompetitorCandidate],
    max_traffic_value: float = 100000,
    max_keywords: int = 50000,
    source: str = "unknown",
) -> List[CompetitorCandidate]:
    """
    Drop blocklisted platforms and traffic outliers, keeping the input order.

    Args:
        candidates: Discovered candidates
        max_traffic_value: Upper bound on estimated traffic value
        max_keywords: Upper bound on ranked organic keywords
        source: Label for log lines (e.g. "organic", "maps")
    """
    kept: List[CompetitorCandidate] = []

    for candidate in candidates:
        if not candidate.domain or is_excluded_domain(candidate.domain):
            logger.debug(f"[{source}] dropped {candidate.domain}: {get_exclusion_reason(candidate.domain)}")
        elif is_traffic_outlier(candidate, max_traffic_value, max_keywords):
            logger.info(
                f"[{source}] dropped outlier {candidate.domain} "
                f"(ETV: {candidate.organic_traffic}, Keywords: {candidate.organic_keywords})"
            )
        else:
            kept.append(candidate)

    dropped = len(candidates) - len(kept)
    if dropped:
        logger.info(f"[{source}] kept {len(kept)} of {len(candidates)} candidates ({dropped} filtered)")
    return kept


def get_exclusion_reason(domain: str) -> Optional[str]:
    """Human-readable category for an excluded domain, or None if it is allowed."""
    if not domain:
        return "Empty domain"

    value = domain.lower().strip()
    for group, reason in _EXCLUSION_GROUPS:
        if any(d in value for d in group):
            return reason
    if matches_host(value, SOCIAL_MEDIA_HOSTS):
        return "Social media platform"

    if value.endswith(GOVERNMENT_SUFFIXES):
        return "Government/official site"
    return None

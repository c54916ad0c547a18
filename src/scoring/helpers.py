"""
Scoring Helper Functions and Constants

Contains the opportunity rubric tiers, intent points and bucket thresholds
used across all keyword scoring calculations.
"""

from typing import Dict, List, Optional, Tuple


# ============================================================================
# RUBRIC TIERS (threshold, points) - first matching tier wins
# ============================================================================

# Search volume: >= threshold
VOLUME_TIERS: List[Tuple[int, int]] = [
    (10000, 40),
    (5000, 30),
    (1000, 20),
    (500, 10),
]
VOLUME_FLOOR_POINTS = 5

# Keyword difficulty: < threshold (lower is better)
DIFFICULTY_TIERS: List[Tuple[int, int]] = [
    (30, 30),
    (50, 20),
    (70, 10),
]
DIFFICULTY_FLOOR_POINTS = 5
DEFAULT_DIFFICULTY = 50

# Cost per click: >= threshold
CPC_TIERS: List[Tuple[float, int]] = [
    (5.0, 20),
    (2.0, 15),
    (1.0, 10),
    (0.5, 5),
]
CPC_FLOOR_POINTS = 0


# ============================================================================
# INTENT POINTS
# ============================================================================

INTENT_POINTS: Dict[str, int] = {
    "transactional": 10,   # Ready to buy
    "commercial": 8,       # Researching with intent to buy
    "navigational": 5,     # Looking for specific site
}
DEFAULT_INTENT_POINTS = 3  # informational / unknown

COMMERCIAL_INTENTS = ("commercial", "transactional")


def volume_points(volume: Optional[int]) -> int:
    """Points for search volume (5-40)."""
    volume = volume or 0
    for threshold, points in VOLUME_TIERS:
        if volume >= threshold:
            return points
    return VOLUME_FLOOR_POINTS


def effective_difficulty(difficulty: Optional[int]) -> int:
    """Keyword difficulty with the default applied when unknown."""
    return DEFAULT_DIFFICULTY if difficulty is None else difficulty


def difficulty_points(difficulty: Optional[int]) -> int:
    """Points for keyword difficulty (5-30)."""
    kd = effective_difficulty(difficulty)
    for threshold, points in DIFFICULTY_TIERS:
        if kd < threshold:
            return points
    return DIFFICULTY_FLOOR_POINTS


def cpc_points(cpc: Optional[float]) -> int:
    """Points for cost per click (0-20)."""
    cpc = cpc or 0.0
    for threshold, points in CPC_TIERS:
        if cpc >= threshold:
            return points
    return CPC_FLOOR_POINTS


def intent_points(intent: Optional[str]) -> int:
    """Points for search intent (3-10)."""
    if not intent:
        return DEFAULT_INTENT_POINTS
    return INTENT_POINTS.get(intent.lower(), DEFAULT_INTENT_POINTS)


def is_commercial_intent(intent: Optional[str]) -> bool:
    return bool(intent) and intent.lower() in COMMERCIAL_INTENTS

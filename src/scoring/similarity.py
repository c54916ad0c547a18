"""
Similarity Helpers

Vector and word-level similarity measures used by competitor ranking and
target keyword selection.
"""

import math
from typing import Sequence


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine similarity between two embeddings: dot(A,B) / (|A| * |B|).

    Returns 0.0 when either vector has zero magnitude instead of NaN.

    Args:
        vec_a: First embedding
        vec_b: Second embedding

    Returns:
        Similarity in [-1, 1] (in practice [0, 1] for text embeddings)
    """
    if len(vec_a) != len(vec_b):
        raise ValueError(
            f"Embedding dimensions differ: {len(vec_a)} != {len(vec_b)}"
        )

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for a, b in zip(vec_a, vec_b):
        dot += a * b
        norm_a += a * a
        norm_b += b * b

    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # Clamp floating error just outside the range
    return max(-1.0, min(1.0, similarity))


def normalize(value: float, min_value: float, max_value: float) -> float:
    """
    Min-max normalize a value.

    >>> normalize(5, 0, 10)
    0.5
    >>> normalize(3, 3, 3)
    0
    """
    if max_value == min_value:
        return 0
    return (value - min_value) / (max_value - min_value)


def word_overlap(keyword_a: str, keyword_b: str) -> float:
    """
    Jaccard overlap of lowercase whitespace-split words.

    >>> word_overlap("best plumber nyc", "best plumber nyc area")
    0.75
    """
    words_a = set(keyword_a.lower().split())
    words_b = set(keyword_b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)

"""
Edit-distance similarity for ProviderMatch.

Scores how close two strings are as character sequences on a 0-100 scale,
after lowercasing and trimming both. Pure and deterministic.
"""

import logging
from typing import Optional
from Levenshtein import distance as levenshtein_distance

from ..normalize.field_normalizer import normalize_text

logger = logging.getLogger(__name__)


def edit_distance(a: Optional[str], b: Optional[str]) -> int:
    """
    Levenshtein distance between two normalized strings.

    Counts the single-character insertions, deletions and substitutions
    needed to turn one string into the other.

    Args:
        a: First string
        b: Second string

    Returns:
        Edit distance
    """
    return levenshtein_distance(normalize_text(a), normalize_text(b))


def similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Normalized similarity between two strings.

    Args:
        a: First string
        b: Second string

    Returns:
        Score in [0, 100]; 100.0 for strings equal up to case and
        surrounding whitespace, 0.0 when both are empty
    """
    norm_a = normalize_text(a)
    norm_b = normalize_text(b)

    if norm_a == norm_b:
        return 100.0 if norm_a else 0.0

    longest = max(len(norm_a), len(norm_b))
    distance = levenshtein_distance(norm_a, norm_b)

    return (longest - distance) / longest * 100

"""String normalization and edit-distance similarity."""

import re
from typing import Any

from rapidfuzz.distance import Levenshtein

_PUNCTUATION = re.compile(r"[.,;:!\-()'\"]")
_WHITESPACE = re.compile(r"\s+")

CONTAINMENT_SCORE = 0.9


def normalize(value: Any) -> str:
    """Lowercase, drop punctuation, and collapse whitespace."""
    text = _PUNCTUATION.sub("", str(value).lower())
    return _WHITESPACE.sub(" ", text).strip()


def fuzzy_match(a: Any, b: Any) -> float:
    """Similarity in ``[0, 1]`` between two values after normalization.

    Identical strings score 1.0 and containment of one in the other
    scores ``CONTAINMENT_SCORE``; otherwise the score is one minus the
    Levenshtein distance over the longer length. ``None`` on either side
    scores 0, and so does a value that normalizes to an empty string when
    the other side is non-empty; it is not treated as contained.

    Args:
        a: First value.
        b: Second value.

    Returns:
        Similarity score.
    """
    if a is None or b is None:
        return 0.0
    sa = normalize(a)
    sb = normalize(b)
    if sa == sb:
        return 1.0
    if not sa or not sb:
        return 0.0
    if sa in sb or sb in sa:
        return CONTAINMENT_SCORE
    distance = Levenshtein.distance(sa, sb)
    return 1.0 - distance / max(len(sa), len(sb))

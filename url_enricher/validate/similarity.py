"""Text similarity used to compare page identity with catalog identity."""

import re

from rapidfuzz.distance import Levenshtein


def normalize_text(text: str) -> str:
    """Lowercase, collapse internal whitespace and trim."""
    return re.sub(r"\s+", " ", (text or "").lower()).strip()


def similarity(a: str, b: str) -> float:
    """
    Normalized edit-distance similarity in [0, 1].

    1.0 means identical after normalization. Two empty strings (or one empty
    string) score 0.0.
    """
    a = normalize_text(a)
    b = normalize_text(b)
    if not a or not b:
        return 0.0
    distance = Levenshtein.distance(a, b)
    return 1.0 - distance / max(len(a), len(b))


def brand_token(text: str) -> str:
    """Normalized brand with whitespace removed, e.g. "Nature's Way" -> "nature'sway"."""
    return normalize_text(text).replace(" ", "")

"""Cheap lexical comparisons between risk texts.

Token-set Jaccard similarity, case-insensitive title containment and the
generic-title check. None of these call a backend.
"""

import logging

logger = logging.getLogger(__name__)

# Tokens of this length or shorter are ignored by jaccard_similarity
_MIN_TOKEN_LENGTH = 3

GENERIC_TITLE_TERMS = ("risk", "security", "threat", "vulnerability", "breach", "attack")
_GENERIC_TITLE_MAX_TOKENS = 3


def _token_set(text: str) -> set[str]:
    return {t for t in text.lower().split() if len(t) >= _MIN_TOKEN_LENGTH}


def jaccard_similarity(text_a: str, text_b: str) -> float:
    """Token-set Jaccard similarity (intersection over union).

    Args:
        text_a: First text.
        text_b: Second text.

    Returns:
        Similarity in [0, 1]; 0 if either text is empty, 1 if both are
        identical.
    """
    if not text_a or not text_b:
        return 0.0
    if text_a == text_b:
        return 1.0

    tokens_a = _token_set(text_a)
    tokens_b = _token_set(text_b)
    if not tokens_a or not tokens_b:
        return 0.0

    return len(tokens_a & tokens_b) / len(tokens_a | tokens_b)


def title_in_text(title: str, text: str) -> bool:
    """Case-insensitive substring check of a title inside a text."""
    if not title or not text:
        return False
    return title.lower() in text.lower()


def is_generic_title(title: str) -> bool:
    """True for short titles built around a generic term like "Security risk"."""
    title_lower = (title or "").strip().lower()
    if not title_lower:
        return False
    if len(title_lower.split()) > _GENERIC_TITLE_MAX_TOKENS:
        return False
    return any(term in title_lower for term in GENERIC_TITLE_TERMS)

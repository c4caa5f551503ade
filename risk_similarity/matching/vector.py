"""Vector similarity scoring.

Cosine similarity over stored embeddings, computed in memory with NumPy,
and its mapping to the 0-100 presentation score.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def cosine_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        vec_a: First embedding vector.
        vec_b: Second embedding vector.

    Returns:
        Cosine similarity between -1 and 1, or 0.0 if either vector is zero.

    Raises:
        ValueError: If the vectors have different lengths. This points at
            embeddings produced by different models.
    """
    if len(vec_a) != len(vec_b):
        raise ValueError(
            f"Vectors must have the same length ({len(vec_a)} != {len(vec_b)})"
        )

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    if np.isnan(similarity):
        return 0.0
    return similarity


def map_to_score(cosine: float) -> float:
    """Map a cosine similarity to a 0-100 score.

    Values outside [0, 1] are clamped first, so a backend returning slightly
    negative or >1 similarities still yields a score in range.
    """
    clamped = max(0.0, min(1.0, cosine))
    return clamped * 100


def to_percent(score: float) -> int:
    """Round a score half-up to an integer in [0, 100]."""
    if np.isnan(score):
        return 0
    return max(0, min(100, int(score + 0.5)))

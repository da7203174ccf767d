"""Cosine similarity and the duplicate rule."""

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from ..errors import DimensionMismatchError
from .models import SimilarityMatch, SimilarityResult

DEFAULT_SIMILARITY_THRESHOLD = 0.85


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vector dimensions do not match: {len(a)} != {len(b)}")

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    magnitude = np.linalg.norm(va) * np.linalg.norm(vb)
    if magnitude == 0:
        return 0.0
    # Rounding would otherwise leave v against itself a hair off 1.0
    if np.array_equal(va, vb):
        return 1.0

    return float(np.clip(np.dot(va, vb) / magnitude, -1.0, 1.0))


def check_similarity(
    a: Sequence[float],
    b: Sequence[float],
    threshold: Optional[float] = None,
) -> SimilarityResult:
    """Compare two vectors; an explicit threshold of 0.0 is honoured."""
    if threshold is None:
        threshold = DEFAULT_SIMILARITY_THRESHOLD
    return SimilarityResult.from_score(cosine_similarity(a, b), threshold)


def find_most_similar(
    vector: Sequence[float],
    candidates: Iterable[Tuple[str, Sequence[float]]],
    threshold: Optional[float] = None,
) -> Optional[SimilarityMatch]:
    """
    Find the closest stored vector.

    Args:
        vector: Vector of the new article
        candidates: (article id, vector) pairs
        threshold: Duplicate threshold

    Returns:
        Best match, or None when there are no comparable candidates.
        Candidates of another dimension are skipped.
    """
    best: Optional[SimilarityMatch] = None
    for article_id, candidate in candidates:
        if len(candidate) != len(vector):
            continue
        result = check_similarity(vector, candidate, threshold)
        if best is None or result.similarity > best.similarity.similarity:
            best = SimilarityMatch(article_id=article_id, similarity=result)
    return best

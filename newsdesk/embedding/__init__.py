"""Text embeddings and semantic duplicate detection."""

from .client import EmbeddingClient
from .models import EmbeddingResult, SimilarityMatch, SimilarityResult
from .similarity import check_similarity, cosine_similarity, find_most_similar

__all__ = [
    "EmbeddingClient",
    "EmbeddingResult",
    "SimilarityMatch",
    "SimilarityResult",
    "check_similarity",
    "cosine_similarity",
    "find_most_similar",
]

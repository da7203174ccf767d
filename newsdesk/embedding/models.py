"""Data models for embeddings."""

from typing import List, Optional

from pydantic import BaseModel, Field


class EmbeddingResult(BaseModel):
    """Result of embedding a single text. Always returned, never raised."""

    success: bool = Field(..., description="Whether a vector was produced")
    embedding: Optional[List[float]] = Field(None, description="Embedding vector")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[str] = Field(None, description="Error category if failed")
    processing_time_ms: int = Field(0, description="Elapsed time in ms")


class SimilarityResult(BaseModel):
    """Duplicate decision for a pair of vectors."""

    similarity: float = Field(..., description="Cosine similarity in [-1, 1]")
    is_duplicate: bool = Field(..., description="similarity >= threshold_used")
    threshold_used: float = Field(..., description="Threshold applied")

    @classmethod
    def from_score(cls, similarity: float, threshold: float) -> "SimilarityResult":
        """Apply the duplicate rule to a similarity score."""
        return cls(similarity=similarity, is_duplicate=similarity >= threshold, threshold_used=threshold)


class SimilarityMatch(BaseModel):
    """Best match of a vector among stored articles."""

    article_id: str = Field(..., description="Identifier of the stored article")
    similarity: SimilarityResult = Field(..., description="Similarity to the stored article")

"""Embedding client for a hosted feature-extraction endpoint."""

import asyncio
import logging
import re
import time
from typing import Any, List, Optional, Sequence

import httpx

from ..config import EmbeddingConfig
from ..errors import (
    NewsdeskError,
    ShapeMismatchError,
    TooShortError,
    UpstreamError,
    transport_error_from,
)
from .models import EmbeddingResult, SimilarityResult
from .similarity import check_similarity

logger = logging.getLogger(__name__)

DEFAULT_API_URL = (
    "https://api-inference.huggingface.co/pipeline/feature-extraction/"
    "sentence-transformers/all-MiniLM-L6-v2"
)
# Truncation backs up to a space only if that keeps most of the text
WORD_BOUNDARY_FRACTION = 0.8


class EmbeddingClient:
    """Turn article text into fixed-length vectors."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        api_key: Optional[str] = None,
        dimension: int = 384,
        similarity_threshold: float = 0.85,
        max_text_length: int = 512,
        min_text_length: int = 10,
        extended_alphabet: str = "À-ſ",
        timeout: float = 30.0,
        batch_size: int = 5,
        batch_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize embedding client.

        Args:
            api_url: Feature extraction endpoint
            api_key: Bearer token, if the endpoint needs one
            dimension: Vector length the model produces
            similarity_threshold: Default duplicate threshold
            max_text_length: Texts are truncated to this many characters
            min_text_length: Shorter texts are rejected
            extended_alphabet: Character ranges kept besides ASCII word characters
            timeout: Request timeout in seconds
            batch_size: Requests in flight per batch
            batch_delay: Pause between batches in seconds
            transport: Optional httpx transport (for testing)
        """
        self.api_url = api_url
        self.api_key = api_key
        self._dimension = dimension
        self._similarity_threshold = similarity_threshold
        self.max_text_length = max_text_length
        self.min_text_length = min_text_length
        self.timeout = timeout
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.transport = transport
        self._disallowed = re.compile(rf"[^A-Za-z0-9_\s{extended_alphabet}]")

    @classmethod
    def from_config(
        cls,
        embedding: EmbeddingConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "EmbeddingClient":
        """Create a client from a resolved embedding config."""
        if not embedding.api_key:
            logger.warning("No embedding API key configured, requests may be rejected")
        return cls(
            api_url=embedding.api_url,
            api_key=embedding.api_key,
            dimension=embedding.dimension,
            similarity_threshold=embedding.similarity_threshold,
            max_text_length=embedding.max_text_length,
            min_text_length=embedding.min_text_length,
            extended_alphabet=embedding.extended_alphabet,
            timeout=embedding.timeout,
            batch_size=embedding.batch_size,
            batch_delay=embedding.batch_delay,
            transport=transport,
        )

    @property
    def dimension(self) -> int:
        """Vector length produced by the model."""
        return self._dimension

    @property
    def similarity_threshold(self) -> float:
        """Default duplicate threshold."""
        return self._similarity_threshold

    def preprocess(self, text: str) -> str:
        """Normalize text before sending it to the model."""
        if not text:
            return ""

        cleaned = re.sub(r"\s+", " ", text)
        cleaned = self._disallowed.sub(" ", cleaned)
        cleaned = re.sub(r"\s+", " ", cleaned).strip()

        if len(cleaned) > self.max_text_length:
            cleaned = cleaned[: self.max_text_length]
            last_space = cleaned.rfind(" ")
            if last_space > self.max_text_length * WORD_BOUNDARY_FRACTION:
                cleaned = cleaned[:last_space]
            cleaned = cleaned.rstrip()

        return cleaned

    def _vector_from(self, payload: Any) -> List[float]:
        """Accept ``[[v0..vN]]`` or ``[v0..vN]`` of the configured dimension."""
        vector = payload
        if isinstance(payload, list) and payload and isinstance(payload[0], list):
            if len(payload) != 1:
                raise ShapeMismatchError(f"Expected one vector, got {len(payload)}")
            vector = payload[0]

        if not isinstance(vector, list) or not all(
            isinstance(x, (int, float)) and not isinstance(x, bool) for x in vector
        ):
            raise ShapeMismatchError("Invalid embedding format")

        if len(vector) != self._dimension:
            raise ShapeMismatchError(
                f"Expected {self._dimension} dimensions, got {len(vector)}"
            )

        return [float(x) for x in vector]

    async def embed_or_raise(self, text: str) -> List[float]:
        """
        Embed a text.

        Raises:
            TooShortError: If the text is too short after preprocessing
            TransportError: On network failure
            UpstreamError: If the endpoint answers with an error
            ShapeMismatchError: If the response is not a single vector
        """
        cleaned = self.preprocess(text)
        if len(cleaned) < self.min_text_length:
            raise TooShortError(
                f"Text too short to embed ({len(cleaned)} < {self.min_text_length} chars)"
            )

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {
            "inputs": [cleaned],
            "options": {"wait_for_model": True, "use_cache": True},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise transport_error_from(e, "Embedding request failed") from e

        if response.is_error:
            raise UpstreamError(
                f"Embedding API error: {response.status_code} - {response.text[:200]}",
                reason="http_status",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ShapeMismatchError(f"Embedding response is not JSON: {e}") from e

        return self._vector_from(data)

    async def embed(self, text: str) -> EmbeddingResult:
        """Embed a text, returning a tagged result instead of raising."""
        start = time.monotonic()
        try:
            vector = await self.embed_or_raise(text)
            return EmbeddingResult(
                success=True,
                embedding=vector,
                processing_time_ms=int((time.monotonic() - start) * 1000),
            )
        except NewsdeskError as e:
            logger.warning("Embedding failed: %s", e)
            return EmbeddingResult(
                success=False,
                error=str(e),
                error_kind=e.kind,
                processing_time_ms=int((time.monotonic() - start) * 1000),
            )

    async def embed_batch(
        self, texts: List[str], batch_size: Optional[int] = None
    ) -> List[EmbeddingResult]:
        """
        Embed texts batch by batch.

        Requests within a batch run concurrently; batches run one after
        another with ``batch_delay`` in between. One result per text, in order.
        """
        size = batch_size or self.batch_size
        results: List[EmbeddingResult] = []

        for i in range(0, len(texts), size):
            batch = texts[i : i + size]
            results.extend(await asyncio.gather(*(self.embed(text) for text in batch)))

            if i + size < len(texts) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        return results

    def check_similarity(
        self,
        a: Sequence[float],
        b: Sequence[float],
        threshold: Optional[float] = None,
    ) -> SimilarityResult:
        """Compare two vectors against this client's default threshold."""
        if threshold is None:
            threshold = self._similarity_threshold
        return check_similarity(a, b, threshold)

"""Data models for stored articles."""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StoredArticle(BaseModel):
    """Article accepted by the pipeline."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Article identifier")
    title: str = Field(..., description="Article title")
    body: str = Field(..., description="Article text")
    summary: str = Field("", description="Short summary")
    url: str = Field(..., description="Article URL")
    image_url: str = Field("", description="Hero image URL")
    author: str = Field("", description="Author name")
    published_at: Optional[datetime] = Field(None, description="Publication date")
    source_name: Optional[str] = Field(None, description="Source name")
    category: Optional[str] = Field(None, description="Category slug of the source")
    embedding: Optional[List[float]] = Field(None, description="Embedding vector")
    processing_time_ms: int = Field(0, description="Time spent processing the item")

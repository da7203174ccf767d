"""Data models for pipeline runs."""

from typing import List, Optional

from pydantic import BaseModel, Field


class SourceFetchResult(BaseModel):
    """Outcome of processing one source."""

    source_name: str = Field(..., description="Source name")
    source_url: str = Field(..., description="RSS feed URL")
    success: bool = Field(..., description="Whether the feed could be processed")
    items_count: int = Field(0, description="Items considered")
    new_items_count: int = Field(0, description="Items saved")
    duplicate_count: int = Field(0, description="Items rejected as near-duplicates")
    skipped_count: int = Field(0, description="Items already stored or not scrapable")
    error: Optional[str] = Field(None, description="Error message if failed")
    fetch_time_ms: int = Field(0, description="Time spent on the source")


class PipelineResult(BaseModel):
    """Outcome of a pipeline run."""

    total_sources: int = Field(0, description="Sources processed")
    successful_sources: int = Field(0, description="Sources processed without error")
    failed_sources: int = Field(0, description="Sources that failed")
    total_items: int = Field(0, description="Items considered")
    new_items: int = Field(0, description="Items saved")
    results: List[SourceFetchResult] = Field(default_factory=list, description="Per-source results")
    execution_time_ms: int = Field(0, description="Total run time")

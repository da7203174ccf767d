"""Data models for ingestion."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Enclosure(BaseModel):
    """Media attached to a feed item."""

    url: str = Field(..., description="Media URL")
    type: Optional[str] = Field(None, description="MIME type")
    length: Optional[str] = Field(None, description="Size in bytes, as published")


class FeedItem(BaseModel):
    """Parsed RSS feed item."""

    title: str = Field(..., description="Article title")
    link: str = Field(..., description="Article URL")
    description: str = Field("", description="Article description/summary, markup stripped")
    published_at: datetime = Field(..., description="Publication date (now when unknown)")
    author: str = Field("", description="Author name")
    guid: str = Field(..., description="Item identifier, unique only within its feed")
    enclosure: Optional[Enclosure] = Field(None, description="Attached media")
    source_name: Optional[str] = Field(None, description="Source name")


class FeedResult(BaseModel):
    """Result of fetching an RSS feed."""

    source_name: Optional[str] = Field(None, description="Source name")
    source_url: str = Field(..., description="RSS feed URL")
    success: bool = Field(..., description="Whether fetch was successful")
    title: Optional[str] = Field(None, description="Feed title")
    description: Optional[str] = Field(None, description="Feed description")
    link: Optional[str] = Field(None, description="Feed home page")
    last_build_date: Optional[datetime] = Field(None, description="Feed last build date")
    items: list[FeedItem] = Field(default_factory=list, description="Parsed feed items")
    item_count: int = Field(0, description="Number of items fetched")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[str] = Field(None, description="Error category if failed")
    status_code: Optional[int] = Field(None, description="HTTP status code")
    fetch_time_ms: int = Field(0, description="Fetch and parse duration in ms")
    used_fallback_parse: bool = Field(False, description="Whether the raw-content retry was used")


class ScrapedContent(BaseModel):
    """Content extracted from an article page."""

    title: str = Field(..., description="Article title")
    body: str = Field(..., description="Article text, paragraphs separated by blank lines")
    summary: str = Field("", description="Meta description")
    author: str = Field("", description="Author name")
    published_at: Optional[datetime] = Field(None, description="Publication date")
    published_raw: Optional[str] = Field(None, description="Publication date as found on the page")
    image_url: str = Field("", description="Absolute hero image URL")
    extraction_score: int = Field(0, description="Score of the winning body container", exclude=True)
    scrape_duration_ms: int = Field(0, description="Scrape duration in ms")


class ScrapingResult(BaseModel):
    """Result of scraping a single page. Always returned, never raised."""

    url: str = Field(..., description="Scraped URL")
    success: bool = Field(..., description="Whether extraction was successful")
    content: Optional[ScrapedContent] = Field(None, description="Extracted content")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[str] = Field(None, description="Error category if failed")
    status_code: Optional[int] = Field(None, description="HTTP status code")
    scrape_duration_ms: int = Field(0, description="Elapsed time in ms, success or not")

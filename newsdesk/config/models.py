"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class FeedsConfig(BaseModel):
    """RSS/Atom fetch configuration."""

    timeout: float = Field(10.0, description="Feed request timeout in seconds", gt=0)
    user_agent: str = Field("Newsdesk Bot/1.0", description="User-Agent sent to feed servers")
    accept: str = Field(
        "application/rss+xml, application/atom+xml, application/xml, text/xml",
        description="Accept header sent to feed servers",
    )
    max_concurrent: int = Field(5, description="Feeds fetched in parallel", ge=1, le=50)


class ScraperConfig(BaseModel):
    """Article scraper configuration."""

    timeout: float = Field(15.0, description="Page request timeout in seconds", gt=0)
    user_agent: str = Field(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="Browser-like User-Agent",
    )
    accept: str = Field(
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        description="Accept header",
    )
    accept_language: str = Field("tr-TR,tr;q=0.9,en;q=0.8", description="Accept-Language header")
    accept_encoding: str = Field("gzip, deflate, br", description="Accept-Encoding header")
    max_concurrent: int = Field(3, description="Pages scraped in parallel", ge=1, le=20)


class EmbeddingConfig(BaseModel):
    """Embedding inference endpoint configuration."""

    api_url: str = Field(
        "https://api-inference.huggingface.co/pipeline/feature-extraction/"
        "sentence-transformers/all-MiniLM-L6-v2",
        description="Feature extraction endpoint",
    )
    api_key_env: Optional[str] = Field(
        "HUGGING_FACE_API_KEY", description="Environment variable for API key"
    )
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    dimension: int = Field(384, description="Vector dimension of the model", ge=1)
    similarity_threshold: float = Field(
        0.85, description="Cosine similarity at which two articles are duplicates", ge=-1.0, le=1.0
    )
    max_text_length: int = Field(512, description="Max characters sent to the model", ge=16)
    min_text_length: int = Field(10, description="Shortest text worth embedding", ge=1)
    extended_alphabet: str = Field(
        "À-ſ", description="Extra character ranges kept during preprocessing"
    )
    timeout: float = Field(30.0, description="Request timeout in seconds", gt=0)
    batch_size: int = Field(5, description="Concurrent requests per batch", ge=1, le=50)
    batch_delay: float = Field(1.0, description="Pause between batches in seconds", ge=0.0)

    @field_validator("min_text_length")
    @classmethod
    def validate_min_length(cls, v: int, info) -> int:
        """Minimum length must leave room below the maximum."""
        max_length = info.data.get("max_text_length", 512)
        if v >= max_length:
            raise ValueError(f"min_text_length ({v}) must be below max_text_length ({max_length})")
        return v


class ResearchConfig(BaseModel):
    """Research agent service configuration."""

    base_url: str = Field("http://localhost:2024", description="Research agent base URL")
    timeout: float = Field(30.0, description="Timeout for thread/run requests in seconds", gt=0)
    stream_timeout: float = Field(
        300.0, description="Wall-clock deadline for consuming the run stream", gt=0
    )
    assistant_id: str = Field("agent", description="Assistant (graph) to run")
    max_research_loops: int = Field(3, ge=1, le=10)
    number_of_initial_queries: int = Field(3, ge=1, le=10)
    language: str = Field("Turkish", description="Language of the generated article")


class DatesConfig(BaseModel):
    """Date normalization configuration."""

    timezone: str = Field(
        "Europe/Istanbul", description="Timezone for dates without an explicit offset"
    )


class PipelineConfig(BaseModel):
    """Ingestion pipeline defaults."""

    max_items: int = Field(10, description="Max items processed per source", ge=1, le=100)
    full_text_min_length: int = Field(
        1000, description="Feed descriptions shorter than this are scraped", ge=0
    )
    recent_embeddings: int = Field(
        500, description="Stored vectors compared against each new article", ge=1
    )
    max_concurrent_sources: int = Field(3, ge=1, le=20)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class ConfigModel(BaseModel):
    """Main configuration model."""

    workspace_root: str = Field("~/Newsdesk", description="Root directory for outputs")
    feeds: FeedsConfig = Field(default_factory=FeedsConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    research: ResearchConfig = Field(default_factory=ResearchConfig)
    dates: DatesConfig = Field(default_factory=DatesConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class SourceConfig(BaseModel):
    """Source configuration from sources.yaml."""

    name: str = Field(..., description="Source name", min_length=3, max_length=255)
    url: str = Field(..., description="RSS feed URL", pattern=r"^https?://.+")
    category: Optional[str] = Field(None, description="Category slug for the source")
    description: Optional[str] = Field(None, description="Source description", max_length=1000)
    enabled: bool = Field(True, description="Whether source is enabled")

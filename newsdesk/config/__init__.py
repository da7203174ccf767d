"""Configuration management for newsdesk."""

from .loader import Config, load_config, load_sources, save_config, save_sources
from .models import (
    ConfigModel,
    DatesConfig,
    EmbeddingConfig,
    FeedsConfig,
    LoggingConfig,
    PipelineConfig,
    ResearchConfig,
    ScraperConfig,
    SourceConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "DatesConfig",
    "EmbeddingConfig",
    "FeedsConfig",
    "LoggingConfig",
    "PipelineConfig",
    "ResearchConfig",
    "ScraperConfig",
    "SourceConfig",
    "load_config",
    "load_sources",
    "save_config",
    "save_sources",
]

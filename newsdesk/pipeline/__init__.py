"""Ingestion pipeline."""

from .models import PipelineResult, SourceFetchResult
from .orchestrator import ItemOutcome, PipelineOrchestrator, print_pipeline_summary

__all__ = [
    "ItemOutcome",
    "PipelineOrchestrator",
    "PipelineResult",
    "SourceFetchResult",
    "print_pipeline_summary",
]

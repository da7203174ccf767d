"""Research agent client."""

from .models import (
    ResearchCategory,
    ResearchDepth,
    ResearchRequest,
    ResearchResponse,
    ResearchResult,
    ResearchSession,
    ResearchSource,
    ResearchStatus,
)
from .orchestrator import ResearchOrchestrator, validate_request

__all__ = [
    "ResearchCategory",
    "ResearchDepth",
    "ResearchOrchestrator",
    "ResearchRequest",
    "ResearchResponse",
    "ResearchResult",
    "ResearchSession",
    "ResearchSource",
    "ResearchStatus",
    "validate_request",
]

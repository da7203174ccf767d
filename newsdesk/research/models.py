"""Data models for research sessions."""

from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import AliasChoices, BaseModel, Field

from ..errors import InvalidTransitionError


class ResearchDepth(str, Enum):
    """How thorough the research agent should be."""

    QUICK = "quick"
    STANDARD = "standard"
    DEEP = "deep"


class ResearchRequest(BaseModel):
    """A topic to research."""

    query: str = Field(..., description="Research topic", min_length=10, max_length=2000)
    max_results: int = Field(5, description="Max sources to use", ge=1, le=20)
    research_depth: ResearchDepth = Field(ResearchDepth.STANDARD, description="Research depth")


class ResearchCategory(BaseModel):
    """Category the agent may assign the article to."""

    id: str = Field(..., description="Category identifier")
    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="Category slug")


class ResearchStatus(str, Enum):
    """Lifecycle of a research session."""

    PENDING = "pending"
    THREAD_OPENED = "thread_opened"
    RUN_SUBMITTED = "run_submitted"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


TRANSITIONS: Dict[ResearchStatus, Set[ResearchStatus]] = {
    ResearchStatus.PENDING: {ResearchStatus.THREAD_OPENED, ResearchStatus.FAILED},
    ResearchStatus.THREAD_OPENED: {ResearchStatus.RUN_SUBMITTED, ResearchStatus.FAILED},
    ResearchStatus.RUN_SUBMITTED: {ResearchStatus.STREAMING, ResearchStatus.FAILED},
    ResearchStatus.STREAMING: {
        ResearchStatus.COMPLETED,
        ResearchStatus.FAILED,
        ResearchStatus.TIMED_OUT,
    },
}


class ResearchSession(BaseModel):
    """In-memory state of one research invocation."""

    thread_id: Optional[str] = Field(None, description="Remote conversation id")
    run_id: Optional[str] = Field(None, description="Remote run id")
    status: ResearchStatus = Field(ResearchStatus.PENDING, description="Current state")

    @property
    def is_terminal(self) -> bool:
        """Whether the session can no longer change."""
        return self.status not in TRANSITIONS

    def transition(self, status: ResearchStatus) -> None:
        """
        Move to a new state.

        Raises:
            InvalidTransitionError: If the move is not allowed from the current state
        """
        if status not in TRANSITIONS.get(self.status, set()):
            raise InvalidTransitionError(
                f"Cannot move research session from {self.status.value} to {status.value}"
            )
        self.status = status

    def fail(self) -> None:
        """Mark the session failed unless it already ended."""
        if not self.is_terminal:
            self.transition(ResearchStatus.FAILED)


class ResearchSource(BaseModel):
    """A source cited by the research agent."""

    title: str = Field(
        "", description="Source title", validation_alias=AliasChoices("title", "name")
    )
    url: str = Field("", description="Source URL")
    snippet: str = Field("", description="Short quote")
    reliability_score: Optional[float] = Field(None, description="Agent's reliability estimate")


class ResearchDifference(BaseModel):
    """How the synthesized article differs from the original coverage."""

    title: str = Field("", description="Difference headline")
    description: str = Field("", description="Explanation")


class ResearchResult(BaseModel):
    """Article synthesized by the research agent."""

    title: str = Field(..., description="Article title")
    content: str = Field(..., description="Article text")
    summary: str = Field("", description="Short summary")
    category_hint: Optional[str] = Field(None, description="Suggested category slug")
    confidence_score: float = Field(0.8, description="Agent confidence", ge=0.0, le=1.0)
    sources: List[ResearchSource] = Field(default_factory=list, description="Cited sources")
    differences: List[ResearchDifference] = Field(
        default_factory=list, description="Differences from the original coverage"
    )
    raw_answer: str = Field("", description="Final answer as streamed", exclude=True)


class ResearchResponse(BaseModel):
    """Result of a research invocation. Always returned, never raised."""

    success: bool = Field(..., description="Whether an article was produced")
    partial: bool = Field(False, description="Stream deadline hit before the agent finished")
    status: ResearchStatus = Field(..., description="Final session state")
    thread_id: Optional[str] = Field(None, description="Remote conversation id")
    run_id: Optional[str] = Field(None, description="Remote run id")
    result: Optional[ResearchResult] = Field(None, description="Synthesized article")
    error: Optional[str] = Field(None, description="Error message if failed")
    error_kind: Optional[str] = Field(None, description="Error category if failed")
    processing_time_s: float = Field(0.0, description="Elapsed time in seconds")

"""Client that drives the external research agent."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Union

import httpx
import pendulum
from pydantic import ValidationError as PydanticValidationError

from ..config import ResearchConfig
from ..errors import (
    NewsdeskError,
    ShapeMismatchError,
    StreamError,
    ValidationError,
    transport_error_from,
)
from .models import (
    ResearchCategory,
    ResearchRequest,
    ResearchResponse,
    ResearchSession,
    ResearchStatus,
)
from .prompt import build_research_prompt
from .stream import LineBuffer, StreamAccumulator

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT = 5.0
THREAD_SOURCE = "newsdesk"

# What the session was doing when a failure happened
STAGES = {
    ResearchStatus.PENDING: "thread creation",
    ResearchStatus.THREAD_OPENED: "run submission",
    ResearchStatus.RUN_SUBMITTED: "stream",
    ResearchStatus.STREAMING: "stream",
}

TRANSPORT_HINTS = {
    "connection_refused": "is the research service running?",
    "connection_reset": "connection dropped, check the tunnel or proxy",
    "timeout": "service is slow or unreachable",
}


def validate_request(request: Union[ResearchRequest, Dict[str, Any]]) -> ResearchRequest:
    """
    Validate a research request before any network call.

    Raises:
        ValidationError: If the query or options are out of bounds
    """
    data = request.model_dump() if isinstance(request, ResearchRequest) else request
    try:
        return ResearchRequest.model_validate(data)
    except PydanticValidationError as e:
        messages = ", ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Validation error: {messages}") from e


def _json_field(response: httpx.Response, key: str) -> Any:
    try:
        data = response.json()
    except ValueError as e:
        raise ShapeMismatchError(f"Response is not JSON: {e}") from e
    return data.get(key) if isinstance(data, dict) else None


class ResearchOrchestrator:
    """Open a thread, submit a run and follow its stream to a finished article."""

    def __init__(
        self,
        base_url: str = "http://localhost:2024",
        timeout: float = 30.0,
        stream_timeout: float = 300.0,
        assistant_id: str = "agent",
        max_research_loops: int = 3,
        number_of_initial_queries: int = 3,
        language: str = "Turkish",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize research orchestrator.

        Args:
            base_url: Research agent base URL
            timeout: Timeout for the thread and run requests
            stream_timeout: Wall-clock deadline for reading the run stream
            assistant_id: Assistant (graph) to run
            max_research_loops: Agent setting passed with the run
            number_of_initial_queries: Agent setting passed with the run
            language: Language of the generated article
            transport: Optional httpx transport (for testing)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.stream_timeout = stream_timeout
        self.assistant_id = assistant_id
        self.max_research_loops = max_research_loops
        self.number_of_initial_queries = number_of_initial_queries
        self.language = language
        self.transport = transport

    @classmethod
    def from_config(
        cls,
        research: ResearchConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ResearchOrchestrator":
        """Create an orchestrator from the research section of the config."""
        return cls(
            base_url=research.base_url,
            timeout=research.timeout,
            stream_timeout=research.stream_timeout,
            assistant_id=research.assistant_id,
            max_research_loops=research.max_research_loops,
            number_of_initial_queries=research.number_of_initial_queries,
            language=research.language,
            transport=transport,
        )

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or self.timeout,
            headers={"Content-Type": "application/json"},
            transport=self.transport,
        )

    async def _open_thread(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            "/threads",
            json={"metadata": {"source": THREAD_SOURCE, "timestamp": pendulum.now("UTC").to_iso8601_string()}},
        )
        response.raise_for_status()
        thread_id = _json_field(response, "thread_id")
        if not thread_id:
            raise ShapeMismatchError("Thread response has no thread_id")
        return str(thread_id)

    async def _submit_run(self, client: httpx.AsyncClient, thread_id: str, prompt: str) -> str:
        response = await client.post(
            f"/threads/{thread_id}/runs",
            json={
                "assistant_id": self.assistant_id,
                "input": {"messages": [{"role": "human", "content": prompt}]},
                "config": {
                    "configurable": {
                        "max_research_loops": self.max_research_loops,
                        "number_of_initial_queries": self.number_of_initial_queries,
                    }
                },
            },
        )
        response.raise_for_status()
        run_id = _json_field(response, "run_id")
        if not run_id:
            raise ShapeMismatchError("Run response has no run_id")
        return str(run_id)

    async def _consume_stream(
        self,
        client: httpx.AsyncClient,
        session: ResearchSession,
        accumulator: StreamAccumulator,
    ) -> None:
        """Read the run stream into ``accumulator`` until [DONE] or close."""
        buffer = LineBuffer()
        async with client.stream(
            "GET",
            f"/threads/{session.thread_id}/runs/{session.run_id}/stream",
            headers={"Accept": "text/event-stream"},
            # The overall deadline is enforced by the caller
            timeout=httpx.Timeout(self.timeout, read=None),
        ) as response:
            response.raise_for_status()
            async for chunk in response.aiter_text():
                for line in buffer.feed(chunk):
                    accumulator.feed_line(line)
                    if accumulator.done:
                        logger.debug("Research stream finished")
                        return

        for line in buffer.flush():
            accumulator.feed_line(line)

    async def research_topic(
        self,
        request: Union[ResearchRequest, Dict[str, Any]],
        categories: Optional[List[ResearchCategory]] = None,
    ) -> ResearchResponse:
        """
        Research a topic and return a synthesized article.

        Args:
            request: Topic and options
            categories: Categories the agent may file the article under

        Returns:
            ResearchResponse, successful or not. A stream that hits the
            deadline after producing some answer is a partial success.
        """
        start = time.monotonic()
        session = ResearchSession()

        def respond(success: bool, **kwargs: Any) -> ResearchResponse:
            return ResearchResponse(
                success=success,
                status=session.status,
                thread_id=session.thread_id,
                run_id=session.run_id,
                processing_time_s=round(time.monotonic() - start, 2),
                **kwargs,
            )

        try:
            validated = validate_request(request)
        except ValidationError as e:
            session.fail()
            return respond(False, error=str(e), error_kind=e.kind)

        accumulator = StreamAccumulator()
        try:
            async with self._client() as client:
                session.thread_id = await self._open_thread(client)
                session.transition(ResearchStatus.THREAD_OPENED)
                logger.info("Research thread opened: %s", session.thread_id)

                prompt = build_research_prompt(validated, categories, self.language)
                session.run_id = await self._submit_run(client, session.thread_id, prompt)
                session.transition(ResearchStatus.RUN_SUBMITTED)
                logger.info("Research run submitted: %s", session.run_id)

                session.transition(ResearchStatus.STREAMING)
                try:
                    await asyncio.wait_for(
                        self._consume_stream(client, session, accumulator),
                        timeout=self.stream_timeout,
                    )
                except asyncio.TimeoutError:
                    session.transition(ResearchStatus.TIMED_OUT)
                    if accumulator.has_answer:
                        logger.warning(
                            "Research stream deadline (%ss) reached, returning partial answer",
                            self.stream_timeout,
                        )
                        return respond(True, partial=True, result=accumulator.result())
                    logger.error("Research stream deadline (%ss) reached with no answer", self.stream_timeout)
                    return respond(False, error="Research stream timed out", error_kind="timeout")

            if not accumulator.has_answer:
                raise StreamError("Research stream ended without an answer")

            session.transition(ResearchStatus.COMPLETED)
            return respond(True, result=accumulator.result())

        except httpx.HTTPError as e:
            error = transport_error_from(e, f"Research {STAGES.get(session.status, 'request')} failed")
            hint = TRANSPORT_HINTS.get(error.reason)
            logger.error("%s%s", error, f" ({hint})" if hint else "")
            session.fail()
            return respond(False, error=str(error), error_kind=error.reason)
        except NewsdeskError as e:
            logger.error("Research %s failed: %s", STAGES.get(session.status, "request"), e)
            session.fail()
            return respond(False, error=str(e), error_kind=e.kind)
        except Exception as e:
            logger.exception("Unexpected research error")
            session.fail()
            return respond(False, error=f"Unexpected error: {e}", error_kind="unexpected")

    def research_topic_sync(
        self,
        request: Union[ResearchRequest, Dict[str, Any]],
        categories: Optional[List[ResearchCategory]] = None,
    ) -> ResearchResponse:
        """Synchronous wrapper for research_topic."""
        return asyncio.run(self.research_topic(request, categories))

    async def health_check(self) -> bool:
        """Check that the research service answers its health endpoint."""
        try:
            async with self._client(timeout=HEALTH_TIMEOUT) as client:
                response = await client.get("/health")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning("Research service health check failed: %s", e)
            return False

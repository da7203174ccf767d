"""Tests for the research orchestrator."""

import asyncio
import json

import httpx
import pytest

from conftest import RecordingTransport
from newsdesk.config import ResearchConfig
from newsdesk.errors import InvalidTransitionError
from newsdesk.research import (
    ResearchCategory,
    ResearchOrchestrator,
    ResearchRequest,
    ResearchSession,
    ResearchStatus,
)
from newsdesk.research.prompt import NO_CATEGORY, build_research_prompt

BASE_URL = "http://agent.test"
QUERY = "Merkez Bankası faiz kararının piyasalara etkisi"

ANSWER = {
    "title": "Faiz kararı piyasaları nasıl etkiledi?",
    "content": "Merkez Bankası politika faizini sabit tuttu ve piyasalar olumlu tepki verdi.",
    "summary": "Faiz sabit kaldı.",
    "category_slug": "ekonomi",
    "confidence_score": 0.9,
    "sources": [{"title": "Örnek Haber", "url": "https://news.test/1"}],
}


def sse(*events) -> str:
    lines = [f"data: {json.dumps(event, ensure_ascii=False)}" for event in events]
    return "\n".join(lines + ["data: [DONE]", ""])


def agent_handler(stream_body="", stream_status=200, run_status=200):
    """Handler for the thread, run and stream endpoints."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if request.method == "POST" and path == "/threads":
            return httpx.Response(200, json={"thread_id": "t-1"})
        if request.method == "POST" and path == "/threads/t-1/runs":
            return httpx.Response(run_status, json={"run_id": "r-1"})
        if request.method == "GET" and path == "/threads/t-1/runs/r-1/stream":
            if isinstance(stream_body, str):
                return httpx.Response(stream_status, text=stream_body)
            return httpx.Response(stream_status, content=stream_body)
        if path == "/health":
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(404)

    return handler


def orchestrator_for(handler, **kwargs) -> ResearchOrchestrator:
    return ResearchOrchestrator(base_url=BASE_URL, transport=httpx.MockTransport(handler), **kwargs)


async def slow_stream(*chunks: bytes):
    for chunk in chunks:
        yield chunk
    await asyncio.sleep(10)


class TestResearchTopic:
    @pytest.mark.asyncio
    async def test_full_flow(self):
        body = sse(
            {"type": "progress", "content": "Kaynaklar taranıyor"},
            {"messages": [{"type": "ai", "content": "taslak"}]},
            {"messages": [{"type": "ai", "content": json.dumps(ANSWER, ensure_ascii=False)}]},
        )
        transport = RecordingTransport(agent_handler(body))
        orchestrator = ResearchOrchestrator(base_url=BASE_URL, assistant_id="deep-research", transport=transport)
        categories = [ResearchCategory(id="1", name="Ekonomi", slug="ekonomi")]

        response = await orchestrator.research_topic(
            {"query": QUERY, "max_results": 3, "research_depth": "deep"}, categories
        )

        assert response.success
        assert not response.partial
        assert response.status == ResearchStatus.COMPLETED
        assert response.thread_id == "t-1"
        assert response.run_id == "r-1"
        assert response.result.title == ANSWER["title"]
        assert response.result.category_hint == "ekonomi"
        assert response.result.sources[0].url == "https://news.test/1"

        thread_request, run_request, stream_request = transport.requests
        assert json.loads(thread_request.content)["metadata"]["source"] == "newsdesk"

        run_body = json.loads(run_request.content)
        assert run_body["assistant_id"] == "deep-research"
        prompt = run_body["input"]["messages"][0]["content"]
        assert QUERY in prompt
        assert "Ekonomi (ekonomi)" in prompt
        assert "RESEARCH DEPTH: deep" in prompt
        assert run_body["config"]["configurable"] == {"max_research_loops": 3, "number_of_initial_queries": 3}

        assert stream_request.headers["Accept"] == "text/event-stream"

    @pytest.mark.asyncio
    async def test_invalid_query_sends_nothing(self):
        transport = RecordingTransport(agent_handler())
        orchestrator = ResearchOrchestrator(base_url=BASE_URL, transport=transport)

        response = await orchestrator.research_topic({"query": "kısa"})

        assert not response.success
        assert response.error_kind == "validation"
        assert response.status == ResearchStatus.FAILED
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_invalid_depth(self):
        response = await orchestrator_for(agent_handler()).research_topic(
            {"query": QUERY, "research_depth": "extreme"}
        )

        assert response.error_kind == "validation"
        assert "research_depth" in response.error

    @pytest.mark.asyncio
    async def test_service_down(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        response = await orchestrator_for(handler).research_topic(ResearchRequest(query=QUERY))

        assert not response.success
        assert response.error_kind == "connection_refused"
        assert response.status == ResearchStatus.FAILED
        assert response.thread_id is None

    @pytest.mark.asyncio
    async def test_run_rejected(self):
        response = await orchestrator_for(agent_handler(run_status=500)).research_topic({"query": QUERY})

        assert response.error_kind == "http_status"
        assert "run submission" in response.error
        assert response.thread_id == "t-1"
        assert response.run_id is None

    @pytest.mark.asyncio
    async def test_stream_error_event(self):
        body = sse({"content": "başlangıç"}, {"error": "internal", "message": "graph crashed"})

        response = await orchestrator_for(agent_handler(body)).research_topic({"query": QUERY})

        assert not response.success
        assert response.error_kind == "stream"
        assert "graph crashed" in response.error
        assert response.status == ResearchStatus.FAILED

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        response = await orchestrator_for(agent_handler("data: [DONE]\n")).research_topic({"query": QUERY})

        assert response.error_kind == "stream"

    @pytest.mark.asyncio
    async def test_stream_without_done_marker(self):
        body = 'data: {"type": "final", "content": "Düz metin cevap"}'

        response = await orchestrator_for(agent_handler(body)).research_topic({"query": QUERY})

        assert response.success
        assert response.result.content == "Düz metin cevap"

    @pytest.mark.asyncio
    async def test_fenced_json_answer(self):
        fenced = "İşte makale:\n```json\n" + json.dumps(ANSWER, ensure_ascii=False, indent=2) + "\n```"
        body = sse(
            {"messages": [{"type": "ai", "content": "taslak"}]},
            {"messages": [{"type": "ai", "content": fenced}]},
        )

        response = await orchestrator_for(agent_handler(body)).research_topic({"query": QUERY})

        assert response.success
        assert response.status == ResearchStatus.COMPLETED
        result = response.result
        assert result.content == ANSWER["content"]
        assert result.summary == ANSWER["summary"]
        assert result.category_hint == "ekonomi"
        assert [(s.title, s.url) for s in result.sources] == [("Örnek Haber", "https://news.test/1")]

    @pytest.mark.asyncio
    async def test_stream_endpoint_error_status(self):
        response = await orchestrator_for(agent_handler(stream_status=500)).research_topic({"query": QUERY})

        assert not response.success
        assert response.status == ResearchStatus.FAILED
        assert response.error_kind == "http_status"
        assert "stream" in response.error
        assert response.run_id == "r-1"

    @pytest.mark.asyncio
    async def test_connection_dropped_mid_stream(self):
        async def dropped():
            yield b'data: {"content": "Yar\xc4\xb1m"}\n'
            yield b'data: {"content": "Yar\xc4\xb1m kalan"}\n'
            raise httpx.ReadError("Connection reset by peer")

        response = await orchestrator_for(agent_handler(dropped())).research_topic({"query": QUERY})

        assert not response.success
        assert response.status == ResearchStatus.FAILED
        assert response.error_kind == "connection_reset"
        assert response.result is None

    @pytest.mark.asyncio
    async def test_cancellation_closes_stream(self):
        opened = asyncio.Event()
        stream_finished = asyncio.Event()
        responses = []

        async def endless():
            try:
                yield b'data: {"content": "Devam ediyor"}\n'
                opened.set()
                await asyncio.sleep(10)
            finally:
                stream_finished.set()

        base = agent_handler()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/stream"):
                response = httpx.Response(200, content=endless())
                responses.append(response)
                return response
            return base(request)

        task = asyncio.create_task(orchestrator_for(handler).research_topic({"query": QUERY}))
        await asyncio.wait_for(opened.wait(), timeout=2)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert stream_finished.is_set()
        assert responses[0].is_closed

    @pytest.mark.asyncio
    async def test_deadline_with_partial_answer(self):
        stream = slow_stream(b'data: {"content": "Yar\xc4\xb1m kalan cevap"}\n')

        response = await orchestrator_for(agent_handler(stream), stream_timeout=0.2).research_topic(
            {"query": QUERY}
        )

        assert response.success
        assert response.partial
        assert response.status == ResearchStatus.TIMED_OUT
        assert response.result.content == "Yarım kalan cevap"

    @pytest.mark.asyncio
    async def test_deadline_without_answer(self):
        stream = slow_stream(b": keep-alive\n")

        response = await orchestrator_for(agent_handler(stream), stream_timeout=0.2).research_topic(
            {"query": QUERY}
        )

        assert not response.success
        assert response.error_kind == "timeout"
        assert response.status == ResearchStatus.TIMED_OUT

    def test_sync_wrapper(self):
        body = sse({"type": "final", "content": json.dumps(ANSWER)})

        response = orchestrator_for(agent_handler(body)).research_topic_sync({"query": QUERY})

        assert response.success

    def test_from_config(self):
        orchestrator = ResearchOrchestrator.from_config(
            ResearchConfig(base_url="http://agent.test/", stream_timeout=60, language="English")
        )

        assert orchestrator.base_url == "http://agent.test"
        assert orchestrator.stream_timeout == 60
        assert orchestrator.language == "English"


class TestHealthCheck:
    @pytest.mark.asyncio
    async def test_healthy(self):
        assert await orchestrator_for(agent_handler()).health_check()

    @pytest.mark.asyncio
    async def test_unhealthy(self):
        assert not await orchestrator_for(lambda request: httpx.Response(503)).health_check()

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        assert not await orchestrator_for(handler).health_check()


class TestSession:
    def test_happy_path(self):
        session = ResearchSession()
        for status in (
            ResearchStatus.THREAD_OPENED,
            ResearchStatus.RUN_SUBMITTED,
            ResearchStatus.STREAMING,
            ResearchStatus.COMPLETED,
        ):
            session.transition(status)

        assert session.is_terminal

    def test_cannot_skip_states(self):
        with pytest.raises(InvalidTransitionError):
            ResearchSession().transition(ResearchStatus.STREAMING)

    def test_terminal_states_are_final(self):
        session = ResearchSession()
        session.fail()
        session.fail()

        assert session.status == ResearchStatus.FAILED
        with pytest.raises(InvalidTransitionError):
            session.transition(ResearchStatus.THREAD_OPENED)


class TestPrompt:
    def test_without_categories(self):
        prompt = build_research_prompt(ResearchRequest(query=QUERY, max_results=7), language="English")

        assert "AVAILABLE CATEGORIES" not in prompt
        assert "at most 7 sources" in prompt
        assert "Write the content in English" in prompt

    def test_with_categories(self):
        categories = [ResearchCategory(id="1", name="Spor", slug="spor")]
        prompt = build_research_prompt(ResearchRequest(query=QUERY), categories)

        assert "- Spor (spor)" in prompt
        assert f'"{NO_CATEGORY}"' in prompt

"""Tests for research stream decoding."""

import json

import pytest

from newsdesk.errors import StreamError
from newsdesk.research.stream import (
    LineBuffer,
    StreamAccumulator,
    build_result,
    extract_json_object,
    last_assistant_message,
)


def data(event) -> str:
    return "data: " + json.dumps(event, ensure_ascii=False)


ARTICLE = {
    "title": "Faiz kararı ve piyasalar",
    "content": "Merkez Bankası politika faizini sabit tuttu. Piyasalar karara olumlu tepki verdi.",
    "summary": "Faiz sabit kaldı.",
    "category_slug": "ekonomi",
    "confidence_score": 0.92,
    "sources": [{"name": "Örnek Haber", "url": "https://news.test/1"}],
    "differences": [{"title": "Bağlam", "description": "Tarihsel faiz seviyeleri eklendi."}],
}


class TestLineBuffer:
    def test_holds_partial_lines(self):
        buffer = LineBuffer()

        assert buffer.feed('data: {"con') == []
        assert buffer.feed('tent": "a"}\r\ndata: [DO') == ['data: {"content": "a"}']
        assert buffer.feed("NE]\n") == ["data: [DONE]"]
        assert buffer.flush() == []

    def test_flush_returns_unterminated_line(self):
        buffer = LineBuffer()
        buffer.feed("data: son\r")
        assert buffer.flush() == ["data: son"]


class TestAccumulator:
    def test_messages_replace_and_content_appends(self):
        acc = StreamAccumulator()

        acc.feed_line(data({"content": "Merhaba "}))
        acc.feed_line(data({"content": "dünya"}))
        assert acc.answer == "Merhaba dünya"

        acc.feed_line(data({"messages": [{"type": "human", "content": "soru"}, {"type": "ai", "content": "ilk taslak"}]}))
        acc.feed_line(data({"messages": [{"type": "ai", "content": "son taslak"}]}))
        assert acc.answer == "son taslak"

    def test_final_content_replaces(self):
        acc = StreamAccumulator()
        acc.feed_line(data({"content": "parça"}))
        acc.feed_line(data({"type": "final", "content": "tam cevap"}))
        acc.feed_line(data({"type": "progress", "content": "yok sayılır"}))
        assert acc.answer == "tam cevap"

    def test_content_blocks_and_roles(self):
        messages = [
            {"role": "assistant", "content": [{"type": "text", "text": "Bir "}, "iki"]},
            {"type": "tool", "content": "araç çıktısı"},
        ]
        assert last_assistant_message(messages) == "Bir iki"

    def test_sources_and_confidence(self):
        acc = StreamAccumulator()
        acc.feed_line(data({"sources": [{"title": "A"}], "confidence_score": 0.7}))
        acc.feed_line(data({"confidence_score": True}))

        assert acc.sources == [{"title": "A"}]
        assert acc.confidence_score == 0.7

    def test_error_event_raises(self):
        acc = StreamAccumulator()
        with pytest.raises(StreamError, match="rate_limited"):
            acc.feed_line(data({"error": "rate_limited", "message": "slow down"}))

    def test_ignores_noise(self):
        acc = StreamAccumulator()
        for line in ["", ": keep-alive", "event: values", "data:", "data: {not json", "data: [1, 2]"]:
            acc.feed_line(line)

        assert acc.answer == ""
        assert not acc.has_answer
        assert not acc.done

    def test_done(self):
        acc = StreamAccumulator()
        acc.feed_line("data: [DONE]")
        assert acc.done


class TestExtractJson:
    def test_fenced_block(self):
        text = "İşte makale:\n```json\n" + json.dumps(ARTICLE, ensure_ascii=False) + "\n```\nKolay gelsin."
        assert extract_json_object(text)["title"] == ARTICLE["title"]

    def test_bare_object(self):
        assert extract_json_object(json.dumps({"content": "x"})) == {"content": "x"}

    def test_embedded_object(self):
        assert extract_json_object('Sonuç: {"content": "x", "meta": {"a": 1}} bitti') == {
            "content": "x",
            "meta": {"a": 1},
        }

    def test_no_object(self):
        assert extract_json_object("düz metin") is None
        assert extract_json_object("[1, 2]") is None


class TestBuildResult:
    def test_structured_answer(self):
        result = build_result(json.dumps(ARTICLE))

        assert result.title == ARTICLE["title"]
        assert result.content == ARTICLE["content"]
        assert result.summary == "Faiz sabit kaldı."
        assert result.category_hint == "ekonomi"
        assert result.confidence_score == 0.92
        assert result.sources[0].title == "Örnek Haber"
        assert result.differences[0].title == "Bağlam"
        assert "raw_answer" not in result.model_dump()

    def test_no_category_and_clamped_confidence(self):
        article = dict(ARTICLE, category_slug="NONE", confidence_score=1.7)
        result = build_result(json.dumps(article))

        assert result.category_hint is None
        assert result.confidence_score == 1.0

    def test_stream_sources_fill_in(self):
        article = {"content": "Metin burada."}
        result = build_result(json.dumps(article), [{"title": "Akış kaynağı", "url": "https://s.test"}], 0.6)

        assert result.sources[0].title == "Akış kaynağı"
        assert result.confidence_score == 0.6
        assert result.title == "Metin burada."

    def test_string_differences(self):
        article = dict(ARTICLE, differences=["Yeni veri eklendi"])
        assert build_result(json.dumps(article)).differences[0].description == "Yeni veri eklendi"

    def test_raw_text_fallback(self):
        answer = "## Faiz kararı **\n\n" + "Merkez Bankası faizi sabit tuttu. " * 10

        result = build_result(answer)

        assert result.title == "Faiz kararı"
        assert result.content == answer.strip()
        assert len(result.summary) == 200
        assert result.summary.startswith("## Faiz kararı ** Merkez")
        assert result.confidence_score == 0.8
        assert result.category_hint is None

    def test_json_without_content_falls_back(self):
        answer = '{"title": "Boş"}'
        result = build_result(answer)
        assert result.content == answer

    def test_long_first_line_truncated(self):
        result = build_result("a" * 300)
        assert result.title == "a" * 150

"""Decoding of the research agent's event stream.

The agent streams ``text/event-stream`` lines of the form ``data: {...}``
and ends with ``data: [DONE]`` or by closing the connection. Full assistant
messages are resent on every update, so they replace the answer collected so
far instead of being appended to it.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..errors import StreamError
from ..ingestion.text import UNTITLED, collapse_whitespace
from .models import ResearchDifference, ResearchResult, ResearchSource
from .prompt import NO_CATEGORY

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"
DEFAULT_CONFIDENCE = 0.8
TITLE_MAX_LENGTH = 150
SUMMARY_MAX_LENGTH = 200

ASSISTANT_TYPES = {"ai", "AIMessage", "AIMessageChunk"}

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_HEADING_MARKS = re.compile(r"^[#*\s]+|[*\s]+$")


class LineBuffer:
    """Split incoming chunks into lines, holding back the trailing partial line."""

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, chunk: str) -> List[str]:
        """Add a chunk and return the lines it completed."""
        *lines, self._pending = (self._pending + chunk).split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        """Return whatever is left once the stream has closed."""
        pending, self._pending = self._pending.rstrip("\r"), ""
        return [pending] if pending else []


def _message_text(content: Any) -> str:
    """Message content is either a string or a list of content blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and isinstance(block.get("text"), str):
                parts.append(block["text"])
        return "".join(parts)
    return ""


def last_assistant_message(messages: List[Any]) -> str:
    """Content of the last assistant message that has any."""
    for message in reversed(messages):
        if not isinstance(message, dict):
            continue
        if message.get("type") in ASSISTANT_TYPES or message.get("role") == "assistant":
            text = _message_text(message.get("content"))
            if text:
                return text
    return ""


class StreamAccumulator:
    """Running state of a research stream."""

    def __init__(self) -> None:
        self.answer = ""
        self.sources: List[Any] = []
        self.confidence_score: Optional[float] = None
        self.done = False

    def feed_line(self, line: str) -> None:
        """
        Apply one line of the stream.

        Raises:
            StreamError: If the agent reported an error
        """
        if not line.startswith(DATA_PREFIX):
            return

        payload = line[len(DATA_PREFIX):].strip()
        if not payload:
            return
        if payload == DONE_SENTINEL:
            self.done = True
            return

        try:
            event = json.loads(payload)
        except ValueError:
            logger.debug("Skipping non-JSON stream line: %.200s", payload)
            return

        if isinstance(event, dict):
            self.apply(event)

    def apply(self, event: Dict[str, Any]) -> None:
        """Apply a decoded event."""
        if event.get("error"):
            raise StreamError(f"Research agent error: {event['error']} - {event.get('message', '')}")

        messages = event.get("messages")
        if isinstance(messages, list):
            text = last_assistant_message(messages)
            if text:
                self.answer = text

        content = event.get("content")
        if isinstance(content, str) and content:
            if event.get("type") == "final":
                self.answer = content
            elif "type" not in event:
                self.answer += content

        sources = event.get("sources")
        if isinstance(sources, list):
            self.sources = sources

        confidence = event.get("confidence_score")
        if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
            self.confidence_score = float(confidence)

    @property
    def has_answer(self) -> bool:
        return bool(self.answer.strip())

    def result(self) -> ResearchResult:
        """Build the article from what has been received so far."""
        return build_result(self.answer, self.sources, self.confidence_score)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Find the article JSON: fenced block, then the whole text, then the outermost braces."""
    candidates = [match.group(1) for match in _FENCED_JSON.finditer(text)]
    candidates.append(text.strip())
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None


def _clamp(score: Any, default: float) -> float:
    if not isinstance(score, (int, float)) or isinstance(score, bool):
        return default
    return min(max(float(score), 0.0), 1.0)


def _parse_sources(raw: Any) -> List[ResearchSource]:
    sources = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        try:
            sources.append(ResearchSource.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed source: %s", item)
    return sources


def _parse_differences(raw: Any) -> List[ResearchDifference]:
    differences = []
    for item in raw if isinstance(raw, list) else []:
        if isinstance(item, str):
            differences.append(ResearchDifference(description=item))
        elif isinstance(item, dict):
            differences.append(
                ResearchDifference(
                    title=str(item.get("title") or ""),
                    description=str(item.get("description") or ""),
                )
            )
    return differences


def _category(slug: Any) -> Optional[str]:
    if not isinstance(slug, str) or not slug.strip():
        return None
    if slug.strip().upper() == NO_CATEGORY:
        return None
    return slug.strip()


def build_result(
    answer: str,
    stream_sources: Optional[List[Any]] = None,
    stream_confidence: Optional[float] = None,
) -> ResearchResult:
    """
    Turn the agent's final answer into a ResearchResult.

    Structured JSON in the answer wins over the raw text; sources and
    confidence seen on the stream fill in what the JSON lacks.
    """
    confidence = _clamp(stream_confidence, DEFAULT_CONFIDENCE)
    data = extract_json_object(answer)

    if data is not None and isinstance(data.get("content"), str) and data["content"].strip():
        content = data["content"].strip()
        sources = _parse_sources(data.get("sources")) or _parse_sources(stream_sources)
        return ResearchResult(
            title=str(data.get("title") or "").strip() or _title_from(content),
            content=content,
            summary=str(data.get("summary") or "").strip() or _summary_from(content),
            category_hint=_category(data.get("category_slug")),
            confidence_score=_clamp(data.get("confidence_score"), confidence),
            sources=sources,
            differences=_parse_differences(data.get("differences")),
            raw_answer=answer,
        )

    content = answer.strip()
    return ResearchResult(
        title=_title_from(content),
        content=content,
        summary=_summary_from(content),
        confidence_score=confidence,
        sources=_parse_sources(stream_sources),
        raw_answer=answer,
    )


def _title_from(content: str) -> str:
    for line in content.splitlines():
        line = _HEADING_MARKS.sub("", line)
        if line:
            return line[:TITLE_MAX_LENGTH]
    return UNTITLED


def _summary_from(content: str) -> str:
    return collapse_whitespace(content)[:SUMMARY_MAX_LENGTH]

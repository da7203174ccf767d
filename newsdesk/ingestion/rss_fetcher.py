"""RSS feed fetcher with malformed-XML recovery."""

import asyncio
import logging
import re
import time
from typing import Any, List, Optional, Tuple

import feedparser
import httpx
from rich.console import Console

from ..config import DatesConfig, FeedsConfig, SourceConfig
from ..errors import ParseError, transport_error_from
from .dates import DEFAULT_TIMEZONE, first_valid_date, normalize_date_or_now
from .models import Enclosure, FeedItem, FeedResult
from .text import UNTITLED, clean_text, sanitize_url, sanitize_xml

console = Console()
logger = logging.getLogger(__name__)

DATE_FIELDS = ("published", "pubDate", "updated", "created", "issued", "modified", "date")

_XML_ENCODING = re.compile(rb"""<\?xml[^>]*?encoding=["']([A-Za-z0-9._-]+)["']""")


def _decode(content: bytes, charset: Optional[str]) -> str:
    """Decode feed bytes using the HTTP charset, then the XML declaration, then UTF-8."""
    encoding = charset
    if not encoding:
        match = _XML_ENCODING.search(content[:512])
        if match:
            encoding = match.group(1).decode("ascii")
    try:
        return content.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return content.decode("utf-8", errors="replace")


def _parse_failed(feed: Any) -> bool:
    if feed.get("entries"):
        return False
    return bool(feed.get("bozo")) or not feed.get("version")


class RSSFetcher:
    """Fetch and parse RSS/Atom feeds."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_concurrent: int = 5,
        user_agent: str = "Newsdesk Bot/1.0",
        accept: str = "application/rss+xml, application/atom+xml, application/xml, text/xml",
        timezone: str = DEFAULT_TIMEZONE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize RSS fetcher."""
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.user_agent = user_agent
        self.accept = accept
        self.timezone = timezone
        self.transport = transport

    @classmethod
    def from_config(
        cls,
        feeds: FeedsConfig,
        dates: Optional[DatesConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "RSSFetcher":
        """Create a fetcher from the feeds section of the config."""
        return cls(
            timeout=feeds.timeout,
            max_concurrent=feeds.max_concurrent,
            user_agent=feeds.user_agent,
            accept=feeds.accept,
            timezone=(dates or DatesConfig()).timezone,
            transport=transport,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent, "Accept": self.accept},
            transport=self.transport,
        )

    def _parse(self, raw: bytes, charset: Optional[str]) -> Tuple[Any, bool]:
        """
        Parse feed bytes, sanitized first and raw as a fallback.

        Returns:
            Tuple of (parsed feed, whether the fallback was used)
        """
        primary_error: Optional[str] = None
        try:
            sanitized = sanitize_xml(_decode(raw, charset)).encode("utf-8")
            feed = feedparser.parse(sanitized)
            if not _parse_failed(feed):
                return feed, False
            primary_error = str(feed.get("bozo_exception") or "no feed entries found")
        except Exception as e:
            primary_error = str(e)

        # Some feeds only parse untouched
        logger.warning("Sanitized feed did not parse (%s), retrying with raw content", primary_error)
        try:
            feed = feedparser.parse(raw)
        except Exception as e:
            raise ParseError(f"Invalid RSS feed: {primary_error}; raw parse failed: {e}")
        if _parse_failed(feed):
            raise ParseError(f"Invalid RSS feed: {primary_error}")
        return feed, True

    def _build_item(self, entry: Any, source_name: Optional[str]) -> FeedItem:
        """Map a feedparser entry onto a FeedItem."""
        link = (entry.get("link") or "").strip()

        description = entry.get("summary") or ""
        if not description and entry.get("content"):
            description = entry["content"][0].get("value", "")
        if not description:
            description = entry.get("description") or ""

        enclosure = None
        for candidate in entry.get("enclosures") or []:
            if candidate.get("href"):
                enclosure = Enclosure(
                    url=candidate["href"],
                    type=candidate.get("type"),
                    length=str(candidate["length"]) if candidate.get("length") else None,
                )
                break

        return FeedItem(
            title=clean_text(entry.get("title") or "") or UNTITLED,
            link=link,
            description=clean_text(description),
            published_at=normalize_date_or_now(
                (entry.get(field) for field in DATE_FIELDS), self.timezone
            ),
            author=clean_text(entry.get("author") or ""),
            guid=entry.get("id") or entry.get("guid") or link,
            enclosure=enclosure,
            source_name=source_name,
        )

    async def fetch(self, url: str, source_name: Optional[str] = None) -> FeedResult:
        """Fetch and parse a single RSS feed."""
        start = time.monotonic()
        url = sanitize_url(url)

        def failure(error: str, kind: str, status_code: Optional[int] = None) -> FeedResult:
            return FeedResult(
                source_name=source_name,
                source_url=url,
                success=False,
                error=error,
                error_kind=kind,
                status_code=status_code,
                fetch_time_ms=int((time.monotonic() - start) * 1000),
            )

        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                raw = response.content
                charset = response.charset_encoding

            feed, used_fallback = self._parse(raw, charset)

            items = [self._build_item(entry, source_name) for entry in feed.entries]
            meta = feed.get("feed", {})

            return FeedResult(
                source_name=source_name,
                source_url=url,
                success=True,
                title=clean_text(meta.get("title") or "") or "Unknown feed",
                description=clean_text(meta.get("subtitle") or meta.get("description") or "") or None,
                link=meta.get("link"),
                last_build_date=first_valid_date([meta.get("updated"), meta.get("published")], self.timezone),
                items=items,
                item_count=len(items),
                status_code=response.status_code,
                fetch_time_ms=int((time.monotonic() - start) * 1000),
                used_fallback_parse=used_fallback,
            )

        except httpx.HTTPError as e:
            error = transport_error_from(e, "Feed request failed")
            logger.error("Feed %s: %s", url, error)
            return failure(str(error), error.kind, error.status_code)
        except ParseError as e:
            logger.error("Feed %s: %s", url, e)
            return failure(str(e), e.kind)
        except Exception as e:
            logger.exception("Unexpected error fetching feed %s", url)
            return failure(f"Unexpected error: {e}", "unexpected")

    async def fetch_feed(self, source: SourceConfig) -> FeedResult:
        """Fetch and parse the feed of a configured source."""
        return await self.fetch(source.url, source_name=source.name)

    async def fetch_all_feeds(self, sources: List[SourceConfig]) -> List[FeedResult]:
        """Fetch all RSS feeds concurrently."""
        # Filter enabled sources
        enabled_sources = [s for s in sources if s.enabled]

        if not enabled_sources:
            return []

        # Create semaphore for concurrency control
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def fetch_with_semaphore(source: SourceConfig) -> FeedResult:
            async with semaphore:
                return await self.fetch_feed(source)

        tasks = [fetch_with_semaphore(source) for source in enabled_sources]
        return list(await asyncio.gather(*tasks))

    async def validate_feed_url(self, url: str) -> bool:
        """Check that a URL serves a feed with at least one item."""
        result = await self.fetch(url)
        return result.success and result.item_count > 0

    def fetch_feeds_sync(self, sources: List[SourceConfig]) -> List[FeedResult]:
        """Synchronous wrapper for fetch_all_feeds."""
        return asyncio.run(self.fetch_all_feeds(sources))


def print_feed_summary(results: List[FeedResult]) -> None:
    """Print summary of feed fetch results."""
    total_items = sum(r.item_count for r in results)
    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful

    console.print("\n[bold]RSS Feed Summary:[/bold]")
    console.print(f"  Sources fetched: {len(results)}")
    console.print(f"  Successful: [green]{successful}[/green]")
    console.print(f"  Failed: [red]{failed}[/red]")
    console.print(f"  Total items: {total_items}")

    if failed > 0:
        console.print("\n[bold red]Failed feeds:[/bold red]")
        for result in results:
            if not result.success:
                console.print(f"  - {result.source_name or result.source_url}: {result.error}")

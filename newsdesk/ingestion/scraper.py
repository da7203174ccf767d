"""Article scraper: fetch a page and extract its content."""

import asyncio
import logging
import time
from typing import Dict, List, Optional

import httpx
from rich.console import Console

from ..config import DatesConfig, ScraperConfig
from ..errors import ParseError, transport_error_from
from .dates import DEFAULT_TIMEZONE, first_valid_date
from .extraction import (
    extract_author,
    extract_body,
    extract_image_url,
    extract_published_raw,
    extract_summary,
    extract_title,
    parse_html,
)
from .models import ScrapedContent, ScrapingResult
from .text import UNTITLED, sanitize_url

console = Console()
logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class ContentScraper:
    """Fetch HTML and extract article content with scored heuristics."""

    def __init__(
        self,
        timeout: float = 15.0,
        max_concurrent: int = 3,
        headers: Optional[Dict[str, str]] = None,
        timezone: str = DEFAULT_TIMEZONE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize content scraper."""
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.headers = headers or dict(_headers_from(ScraperConfig()))
        self.timezone = timezone
        self.transport = transport

    @classmethod
    def from_config(
        cls,
        scraper: ScraperConfig,
        dates: Optional[DatesConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ContentScraper":
        """Create a scraper from the scraper section of the config."""
        return cls(
            timeout=scraper.timeout,
            max_concurrent=scraper.max_concurrent,
            headers=_headers_from(scraper),
            timezone=(dates or DatesConfig()).timezone,
            transport=transport,
        )

    def extract(self, html: str, url: str) -> ScrapedContent:
        """
        Extract article content from an HTML document.

        Raises:
            ParseError: If no article body could be found
        """
        soup = parse_html(html)

        # Body extraction strips boilerplate from the tree, so it runs last
        title = extract_title(soup)
        summary = extract_summary(soup)
        author = extract_author(soup)
        published_raw = extract_published_raw(soup)
        image_url = extract_image_url(soup, url)
        body, score = extract_body(soup, html)

        if not body:
            raise ParseError("Failed to extract article content")

        return ScrapedContent(
            title=title or UNTITLED,
            body=body,
            summary=summary,
            author=author,
            published_at=first_valid_date([published_raw], self.timezone),
            published_raw=published_raw or None,
            image_url=image_url,
            extraction_score=score,
        )

    async def scrape(self, url: str, timeout_ms: Optional[int] = None) -> ScrapingResult:
        """
        Scrape a single article page.

        Args:
            url: Page URL
            timeout_ms: Per-call timeout override in milliseconds

        Returns:
            ScrapingResult, successful or not
        """
        start = time.monotonic()
        url = sanitize_url(url)
        timeout = timeout_ms / 1000 if timeout_ms is not None else self.timeout

        def elapsed() -> int:
            return int((time.monotonic() - start) * 1000)

        def failure(error: str, kind: str, status_code: Optional[int] = None) -> ScrapingResult:
            return ScrapingResult(
                url=url,
                success=False,
                error=error,
                error_kind=kind,
                status_code=status_code,
                scrape_duration_ms=elapsed(),
            )

        if timeout <= 0:
            return failure(f"Timeout must be positive, got {timeout_ms} ms", "validation")

        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers=self.headers,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                html = response.text

            content = self.extract(html, str(response.url))
            duration = elapsed()
            content.scrape_duration_ms = duration

            return ScrapingResult(
                url=url,
                success=True,
                content=content,
                status_code=response.status_code,
                scrape_duration_ms=duration,
            )

        except httpx.HTTPError as e:
            error = transport_error_from(e, "Page request failed")
            logger.warning("Scrape %s: %s", url, error)
            return failure(str(error), error.kind, error.status_code)
        except ParseError as e:
            logger.warning("Scrape %s: %s", url, e)
            return failure(str(e), e.kind, response.status_code)
        except Exception as e:
            logger.exception("Unexpected error scraping %s", url)
            return failure(f"Unexpected error: {e}", "unexpected")

    async def scrape_all(self, urls: List[str]) -> List[ScrapingResult]:
        """Scrape pages concurrently."""
        if not urls:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def scrape_with_semaphore(url: str) -> ScrapingResult:
            async with semaphore:
                return await self.scrape(url)

        tasks = [scrape_with_semaphore(url) for url in urls]
        return list(await asyncio.gather(*tasks))


def _headers_from(scraper: ScraperConfig) -> Dict[str, str]:
    return {
        "User-Agent": scraper.user_agent,
        "Accept": scraper.accept,
        "Accept-Language": scraper.accept_language,
        "Accept-Encoding": scraper.accept_encoding,
        **BROWSER_HEADERS,
    }


def print_scrape_summary(results: List[ScrapingResult]) -> None:
    """Print summary of scrape results."""
    successful = sum(1 for r in results if r.success)
    failed = len(results) - successful

    console.print("\n[bold]Scrape Summary:[/bold]")
    console.print(f"  Total pages: {len(results)}")
    console.print(f"  Successful: [green]{successful}[/green]")
    console.print(f"  Failed: [red]{failed}[/red]")

    if failed > 0:
        console.print("\n[bold red]Failed pages:[/bold red]")
        error_counts: Dict[str, int] = {}
        for result in results:
            if not result.success:
                error = result.error or "Unknown error"
                error_counts[error] = error_counts.get(error, 0) + 1

        for error, count in sorted(error_counts.items()):
            console.print(f"  - {error}: {count}")

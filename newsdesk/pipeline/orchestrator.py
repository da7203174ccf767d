"""Pipeline orchestrator: feeds in, deduplicated articles out."""

import asyncio
import logging
import time
from enum import Enum
from typing import List, Optional

import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import Config, SourceConfig
from ..embedding import EmbeddingClient, find_most_similar
from ..ingestion import ContentScraper, FeedItem, RSSFetcher
from ..ingestion.text import UNTITLED
from ..storage import ArticleStore, JsonlArticleStore, StoredArticle
from .models import PipelineResult, SourceFetchResult

console = Console()
logger = logging.getLogger(__name__)

ARTICLES_FILE = "articles.jsonl"


class ItemOutcome(str, Enum):
    """What happened to a feed item."""

    NEW = "new"
    DUPLICATE = "duplicate"
    SKIPPED = "skipped"


class PipelineOrchestrator:
    """Run sources through fetch, scrape, embed, dedupe and store."""

    def __init__(
        self,
        fetcher: RSSFetcher,
        scraper: ContentScraper,
        embedder: EmbeddingClient,
        store: ArticleStore,
        max_items: int = 10,
        full_text_min_length: int = 1000,
        recent_embeddings: int = 500,
        max_concurrent_sources: int = 3,
    ) -> None:
        """Initialize pipeline orchestrator."""
        self.fetcher = fetcher
        self.scraper = scraper
        self.embedder = embedder
        self.store = store
        self.max_items = max_items
        self.full_text_min_length = full_text_min_length
        self.recent_embeddings = recent_embeddings
        self.max_concurrent_sources = max_concurrent_sources

    @classmethod
    def from_config(
        cls,
        config: Config,
        store: Optional[ArticleStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PipelineOrchestrator":
        """Build the pipeline and its collaborators from configuration."""
        model = config.config
        if store is None:
            store = JsonlArticleStore(config.workspace_root / ARTICLES_FILE)

        return cls(
            fetcher=RSSFetcher.from_config(model.feeds, model.dates, transport=transport),
            scraper=ContentScraper.from_config(model.scraper, model.dates, transport=transport),
            embedder=EmbeddingClient.from_config(config.get_embedding_config(), transport=transport),
            store=store,
            max_items=model.pipeline.max_items,
            full_text_min_length=model.pipeline.full_text_min_length,
            recent_embeddings=model.pipeline.recent_embeddings,
            max_concurrent_sources=model.pipeline.max_concurrent_sources,
        )

    async def process_item(self, item: FeedItem, source: SourceConfig) -> ItemOutcome:
        """Scrape, embed and store a single feed item unless it is known or a duplicate."""
        start = time.monotonic()

        if not item.link or self.store.url_exists(item.link):
            return ItemOutcome.SKIPPED

        title = item.title
        body = item.description
        summary = ""
        author = item.author
        image_url = item.enclosure.url if item.enclosure else ""
        published_at = item.published_at

        # Short feed descriptions are teasers, fetch the full article
        if len(item.description) < self.full_text_min_length:
            scraped = await self.scraper.scrape(item.link)
            if not scraped.success or scraped.content is None:
                logger.info("Skipping %s: %s", item.link, scraped.error)
                return ItemOutcome.SKIPPED

            content = scraped.content
            if content.title and content.title != UNTITLED:
                title = content.title
            body = content.body
            summary = content.summary
            author = content.author or author
            image_url = content.image_url or image_url
            published_at = content.published_at or published_at

        embedding = await self.embedder.embed(f"{title} {body}")
        vector = embedding.embedding if embedding.success else None

        if vector is not None:
            match = find_most_similar(
                vector,
                self.store.recent_embeddings(self.recent_embeddings),
                self.embedder.similarity_threshold,
            )
            if match is not None and match.similarity.is_duplicate:
                logger.info(
                    "Duplicate of %s (similarity %.3f): %s",
                    match.article_id,
                    match.similarity.similarity,
                    item.link,
                )
                return ItemOutcome.DUPLICATE

        article = StoredArticle(
            title=title,
            body=body,
            summary=summary or item.description[:300],
            url=item.link,
            image_url=image_url,
            author=author,
            published_at=published_at,
            source_name=source.name,
            category=source.category,
            embedding=vector,
            processing_time_ms=int((time.monotonic() - start) * 1000),
        )
        self.store.save(article)
        return ItemOutcome.NEW

    async def process_source(
        self, source: SourceConfig, max_items: Optional[int] = None
    ) -> SourceFetchResult:
        """Fetch one source's feed and process its newest items."""
        start = time.monotonic()
        limit = max_items or self.max_items

        feed = await self.fetcher.fetch_feed(source)
        if not feed.success or not feed.items:
            return SourceFetchResult(
                source_name=source.name,
                source_url=source.url,
                success=False,
                error=feed.error or "No items in feed",
                fetch_time_ms=int((time.monotonic() - start) * 1000),
            )

        items = feed.items[:limit]
        result = SourceFetchResult(
            source_name=source.name,
            source_url=source.url,
            success=True,
            items_count=len(items),
        )

        # Sequential so items of the same feed are deduplicated against each other
        for item in items:
            try:
                outcome = await self.process_item(item, source)
            except Exception:
                logger.exception("Failed to process %s", item.link)
                outcome = ItemOutcome.SKIPPED

            if outcome is ItemOutcome.NEW:
                result.new_items_count += 1
            elif outcome is ItemOutcome.DUPLICATE:
                result.duplicate_count += 1
            else:
                result.skipped_count += 1

        result.fetch_time_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "%s: %s new, %s duplicates, %s skipped",
            source.name,
            result.new_items_count,
            result.duplicate_count,
            result.skipped_count,
        )
        return result

    async def run(
        self, sources: List[SourceConfig], max_items: Optional[int] = None
    ) -> PipelineResult:
        """Process all enabled sources concurrently."""
        start = time.monotonic()
        enabled_sources = [s for s in sources if s.enabled]

        semaphore = asyncio.Semaphore(self.max_concurrent_sources)

        async def process_with_semaphore(source: SourceConfig) -> SourceFetchResult:
            async with semaphore:
                return await self.process_source(source, max_items)

        results = list(await asyncio.gather(*(process_with_semaphore(s) for s in enabled_sources)))
        successful = sum(1 for r in results if r.success)

        return PipelineResult(
            total_sources=len(results),
            successful_sources=successful,
            failed_sources=len(results) - successful,
            total_items=sum(r.items_count for r in results),
            new_items=sum(r.new_items_count for r in results),
            results=results,
            execution_time_ms=int((time.monotonic() - start) * 1000),
        )

    def run_sync(
        self, sources: List[SourceConfig], max_items: Optional[int] = None
    ) -> PipelineResult:
        """Synchronous wrapper for run."""
        return asyncio.run(self.run(sources, max_items))


def print_pipeline_summary(result: PipelineResult) -> None:
    """Print pipeline execution summary."""
    table = Table(title="Pipeline Summary")
    table.add_column("Source", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Items", justify="right")
    table.add_column("New", justify="right", style="green")
    table.add_column("Duplicates", justify="right", style="yellow")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Duration", style="yellow")

    for source in result.results:
        status = "[green]✓[/green]" if source.success else "[red]✗[/red]"
        table.add_row(
            source.source_name,
            status,
            str(source.items_count),
            str(source.new_items_count),
            str(source.duplicate_count),
            str(source.skipped_count) if source.success else (source.error or "Failed"),
            f"{source.fetch_time_ms / 1000:.1f}s",
        )

    console.print("\n")
    console.print(table)

    duration = result.execution_time_ms / 1000
    if result.failed_sources == 0:
        console.print(Panel(
            f"[green]Pipeline completed successfully![/green]\n\n"
            f"Sources: {result.total_sources}\n"
            f"New articles: {result.new_items} of {result.total_items} items\n"
            f"Duration: {duration:.1f} seconds",
            style="green",
        ))
    else:
        failed = [s.source_name for s in result.results if not s.success]
        console.print(Panel(
            f"[yellow]Pipeline finished with failures[/yellow]\n\n"
            f"Failed sources: {', '.join(failed)}\n"
            f"New articles: {result.new_items} of {result.total_items} items\n"
            f"Duration: {duration:.1f} seconds\n"
            f"Check logs for details.",
            style="yellow",
        ))

"""Scrape command implementation."""

import asyncio
from typing import List, Optional

import typer
from rich.panel import Panel

from ..config import Config, ConfigModel
from ..ingestion import ContentScraper, ScrapingResult
from ..ingestion.scraper import print_scrape_summary
from ..log import console


def print_scraped(result: ScrapingResult) -> None:
    """Print one extracted article."""
    if not (result.success and result.content):
        console.print(f"[red]❌ {result.url}: {result.error}[/red]")
        return

    content = result.content
    published = content.published_at.isoformat() if content.published_at else (content.published_raw or "-")
    console.print(
        Panel(
            f"[bold]{content.title}[/bold]\n\n"
            f"[dim]Author:[/dim] {content.author or '-'}\n"
            f"[dim]Published:[/dim] {published}\n"
            f"[dim]Image:[/dim] {content.image_url or '-'}\n"
            f"[dim]Summary:[/dim] {content.summary or '-'}\n\n"
            f"{content.body}",
            title=result.url,
            subtitle=f"{len(content.body)} chars in {result.scrape_duration_ms} ms",
        )
    )


def scrape_command(
    urls: List[str] = typer.Argument(..., help="Article URL(s)"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Request timeout in ms"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw results as JSON"),
) -> None:
    """Extract articles from web pages."""
    try:
        model = Config().config
    except FileNotFoundError:
        model = ConfigModel()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    scraper = ContentScraper.from_config(model.scraper, model.dates)

    if len(urls) == 1:
        results = [asyncio.run(scraper.scrape(urls[0], timeout_ms=timeout_ms))]
    else:
        results = asyncio.run(scraper.scrape_all(urls))

    for result in results:
        if as_json:
            console.print_json(result.model_dump_json())
        else:
            print_scraped(result)

    if len(results) > 1:
        print_scrape_summary(results)

    if not any(r.success for r in results):
        raise typer.Exit(1)

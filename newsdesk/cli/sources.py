"""Sources management commands."""

import asyncio
from typing import List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..config import Config, ConfigModel, SourceConfig, load_sources, save_sources
from ..ingestion import RSSFetcher
from ..ingestion.rss_fetcher import print_feed_summary
from ..log import console

sources_app = typer.Typer(help="Manage RSS sources")


def _load_or_exit(config: Config) -> List[SourceConfig]:
    try:
        return load_sources(config.sources_path)
    except FileNotFoundError:
        console.print("[red]Sources file not found. Run 'newsdesk init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


def _settings_or_exit(config: Config) -> ConfigModel:
    try:
        return config.config
    except FileNotFoundError:
        console.print("[red]Config not found. Run 'newsdesk init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)


@sources_app.command("list")
def sources_list() -> None:
    """List all configured sources."""
    sources = _load_or_exit(Config())

    if not sources:
        console.print("[yellow]No sources configured.[/yellow]")
        return

    table = Table(title="Configured Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Enabled", style="yellow")
    table.add_column("URL", style="blue")

    for source in sources:
        table.add_row(
            source.name,
            source.category or "-",
            "✓" if source.enabled else "✗",
            source.url,
        )

    console.print(table)


@sources_app.command("add")
def sources_add(
    name: str = typer.Option(..., "--name", "-n", help="Source name"),
    url: str = typer.Option(..., "--url", "-u", help="RSS feed URL"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category slug"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Source description"),
    validate: bool = typer.Option(
        True, "--validate/--no-validate", help="Check that the URL serves a feed first"
    ),
) -> None:
    """Add a new RSS source."""
    config = Config()

    try:
        sources = load_sources(config.sources_path)
    except FileNotFoundError:
        sources = []
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    # Check if source already exists
    if any(s.name == name or s.url == url for s in sources):
        console.print(f"[red]Source '{name}' or URL already exists.[/red]")
        raise typer.Exit(1)

    try:
        new_source = SourceConfig(
            name=name,
            url=url,
            category=category,
            description=description,
            enabled=True,
        )
    except ValueError as e:
        console.print(f"[red]Invalid source: {e}[/red]")
        raise typer.Exit(1)

    if validate:
        settings = _settings_or_exit(config)
        fetcher = RSSFetcher.from_config(settings.feeds, settings.dates)
        if not asyncio.run(fetcher.validate_feed_url(url)):
            console.print(f"[red]❌ {url} does not serve a readable feed (use --no-validate to add anyway).[/red]")
            raise typer.Exit(1)

    sources.append(new_source)
    save_sources(sources, config.sources_path)

    console.print(f"[green]✅ Added source: {name}[/green]")


@sources_app.command("remove")
def sources_remove(
    name: str = typer.Argument(..., help="Source name to remove"),
) -> None:
    """Remove a source."""
    config = Config()
    sources = _load_or_exit(config)

    # Find and remove source
    original_count = len(sources)
    sources = [s for s in sources if s.name != name]

    if len(sources) == original_count:
        console.print(f"[red]Source '{name}' not found.[/red]")
        raise typer.Exit(1)

    save_sources(sources, config.sources_path)
    console.print(f"[green]✅ Removed source: {name}[/green]")


@sources_app.command("test")
def sources_test(
    name: Optional[str] = typer.Argument(None, help="Source name to test (or test all)"),
) -> None:
    """Fetch and parse feeds to check they work."""
    config = Config()
    sources = _load_or_exit(config)

    # Filter sources if name provided
    if name:
        sources = [s for s in sources if s.name == name]
        if not sources:
            console.print(f"[red]Source '{name}' not found.[/red]")
            raise typer.Exit(1)

    for source in sources:
        if not source.enabled:
            console.print(f"[yellow]⚠️  {source.name}: Disabled[/yellow]")

    settings = _settings_or_exit(config)
    fetcher = RSSFetcher.from_config(settings.feeds, settings.dates)
    results = fetcher.fetch_feeds_sync(sources)

    for result in results:
        if result.success:
            note = " (recovered with raw parse)" if result.used_fallback_parse else ""
            console.print(
                f"[green]✅ {result.source_name}: {result.item_count} items "
                f"in {result.fetch_time_ms} ms{note}[/green]"
            )
        else:
            console.print(f"[red]❌ {result.source_name}: Failed - {result.error}[/red]")

    print_feed_summary(results)

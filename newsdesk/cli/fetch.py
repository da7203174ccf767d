"""Fetch command implementation."""

from typing import Optional

import typer

from ..config import Config, load_sources
from ..log import console
from ..pipeline import PipelineOrchestrator, print_pipeline_summary


def fetch_command(
    max_items: Optional[int] = typer.Option(
        None,
        "--max-items",
        "-m",
        help="Maximum RSS items to process per source",
    ),
    source: Optional[str] = typer.Option(
        None,
        "--source",
        "-s",
        help="Only process the source with this name",
    ),
) -> None:
    """Fetch feeds, scrape, drop near-duplicates and store new articles."""
    try:
        config = Config()
        sources = load_sources(config.sources_path)
    except FileNotFoundError as e:
        console.print(f"[red]{e}. Run 'newsdesk init' first.[/red]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if source:
        sources = [s for s in sources if s.name == source]
        if not sources:
            console.print(f"[red]Source '{source}' not found.[/red]")
            raise typer.Exit(1)

    if not any(s.enabled for s in sources):
        console.print("[yellow]No enabled sources.[/yellow]")
        return

    try:
        orchestrator = PipelineOrchestrator.from_config(config)
        result = orchestrator.run_sync(sources, max_items)
    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline interrupted by user[/yellow]")
        raise typer.Exit(1)

    print_pipeline_summary(result)

    if result.successful_sources == 0:
        raise typer.Exit(1)

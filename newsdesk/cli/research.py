"""Research command implementation."""

from typing import List, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..config import Config, ConfigModel
from ..log import console
from ..research import ResearchCategory, ResearchOrchestrator, ResearchResponse


def _parse_categories(values: Optional[List[str]]) -> Optional[List[ResearchCategory]]:
    """Categories are given as ``slug=Name``."""
    if not values:
        return None
    categories = []
    for value in values:
        slug, _, name = value.partition("=")
        categories.append(ResearchCategory(id=slug, slug=slug, name=name or slug))
    return categories


def print_research_result(response: ResearchResponse) -> None:
    """Print a synthesized article and its sources."""
    result = response.result
    if result is None:
        return

    header = f"[bold]{result.title}[/bold]"
    if response.partial:
        header += "\n[yellow](partial: stream deadline reached before the agent finished)[/yellow]"

    console.print(
        Panel(
            f"{header}\n\n"
            f"[dim]Summary:[/dim] {result.summary}\n"
            f"[dim]Category:[/dim] {result.category_hint or '-'}\n"
            f"[dim]Confidence:[/dim] {result.confidence_score:.2f}\n\n"
            f"{result.content}",
            title=f"Research ({response.processing_time_s:.1f}s)",
            style="green" if not response.partial else "yellow",
        )
    )

    if result.sources:
        table = Table(title="Sources")
        table.add_column("Title", style="cyan")
        table.add_column("URL", style="blue")
        table.add_column("Reliability", style="green")
        for source in result.sources:
            reliability = f"{source.reliability_score:.2f}" if source.reliability_score is not None else "-"
            table.add_row(source.title or "-", source.url, reliability)
        console.print(table)


def research_command(
    query: str = typer.Argument(..., help="Topic to research (10-2000 characters)"),
    depth: str = typer.Option("standard", "--depth", "-d", help="quick, standard or deep"),
    max_results: int = typer.Option(5, "--max-results", "-n", help="Max sources (1-20)"),
    category: Optional[List[str]] = typer.Option(
        None, "--category", "-c", help="Available category as slug=Name (repeatable)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw response as JSON"),
) -> None:
    """Have the research agent write an article about a topic."""
    try:
        model = Config().config
    except FileNotFoundError:
        model = ConfigModel()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    orchestrator = ResearchOrchestrator.from_config(model.research)
    request = {"query": query, "max_results": max_results, "research_depth": depth}

    with console.status("Researching..."):
        response = orchestrator.research_topic_sync(request, _parse_categories(category))

    if as_json:
        console.print_json(response.model_dump_json())
    elif response.success:
        print_research_result(response)
    else:
        console.print(f"[red]❌ Research failed ({response.status.value}): {response.error}[/red]")

    if not response.success:
        raise typer.Exit(1)

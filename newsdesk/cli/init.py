"""Init command implementation."""

from pathlib import Path
from typing import List

import typer
from rich.panel import Panel

from ..config import ConfigModel, SourceConfig, save_config, save_sources
from ..config.loader import DEFAULT_CONFIG_DIR
from ..log import console


def create_default_sources() -> List[SourceConfig]:
    """Create default Turkish news sources."""
    return [
        SourceConfig(
            name="BBC Türkçe",
            url="https://feeds.bbci.co.uk/turkce/rss.xml",
            category="gundem",
            enabled=True,
        ),
        SourceConfig(
            name="NTV Son Dakika",
            url="https://www.ntv.com.tr/son-dakika.rss",
            category="gundem",
            enabled=True,
        ),
        SourceConfig(
            name="Hürriyet Gündem",
            url="https://www.hurriyet.com.tr/rss/gundem",
            category="gundem",
            enabled=True,
        ),
        SourceConfig(
            name="Anadolu Ajansı Ekonomi",
            url="https://www.aa.com.tr/tr/rss/default?cat=ekonomi",
            category="ekonomi",
            enabled=True,
        ),
        SourceConfig(
            name="Webtekno",
            url="https://www.webtekno.com/rss.xml",
            category="teknoloji",
            enabled=True,
        ),
    ]


def init_command(
    config_dir: Path = typer.Option(
        DEFAULT_CONFIG_DIR,
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    workspace: Path = typer.Option(
        Path.home() / "Newsdesk",
        "--workspace",
        "-w",
        help="Workspace root directory",
    ),
    research_url: str = typer.Option(
        "http://localhost:2024", "--research-url", help="Research agent base URL"
    ),
    seed_sources: bool = typer.Option(
        True,
        "--seed-sources/--no-seed-sources",
        help="Seed default news sources",
    ),
) -> None:
    """Initialize newsdesk configuration and workspace."""
    console.print(Panel.fit("Newsdesk - Initialization", style="bold blue"))

    # Create configuration directory
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    sources_path = config_dir / "sources.yaml"

    # Create default configuration
    config = ConfigModel(
        workspace_root=str(workspace),
        research={"base_url": research_url},
    )

    # Save configuration
    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    # Create sources file
    if seed_sources:
        sources = create_default_sources()
        save_sources(sources, sources_path)
        console.print(f"✅ Created sources: {sources_path} (seeded with {len(sources)} sources)")
    else:
        save_sources([], sources_path)
        console.print(f"✅ Created sources: {sources_path} (empty)")

    # Create workspace directory
    workspace.expanduser().mkdir(parents=True, exist_ok=True)
    console.print(f"✅ Created workspace: {workspace}")

    console.print(
        Panel(
            f"[green]✅ Newsdesk initialized successfully![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Sources: {sources_path}\n"
            f"Workspace: {workspace}\n\n"
            f"Next steps:\n"
            f"1. Set embedding API key: [bold]export {config.embedding.api_key_env}=your_key[/bold]\n"
            f"2. Check feeds: [bold]newsdesk sources test[/bold]\n"
            f"3. Run: [bold]newsdesk fetch[/bold]",
            style="green",
        )
    )

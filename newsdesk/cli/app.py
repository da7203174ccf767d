"""Main CLI application."""

from typing import Optional

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from ..config import Config
from ..log import setup_logging
from .fetch import fetch_command
from .init import init_command
from .research import research_command
from .scrape import scrape_command
from .sources import sources_app

app = typer.Typer(
    name="newsdesk",
    help="Newsdesk - news ingestion, duplicate detection and topic research",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (default: from config, else INFO)",
    ),
) -> None:
    """Configure logging before any command runs."""
    if log_level is None:
        try:
            log_level = Config().config.logging.level
        except (FileNotFoundError, ValueError):
            log_level = "INFO"
    setup_logging(log_level.upper())


# Register commands
app.command("init")(init_command)
app.command("fetch")(fetch_command)
app.command("scrape")(scrape_command)
app.command("research")(research_command)
app.add_typer(sources_app, name="sources", help="Manage RSS sources")


if __name__ == "__main__":
    app()

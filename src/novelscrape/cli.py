"""Command-line interface for novelscrape."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from novelscrape import __version__
from novelscrape.config.config import Config, load_config
from novelscrape.errors import ScrapeError
from novelscrape.observability.logging import configure_logging
from novelscrape.pipeline import ScrapePipeline, ScrapeResult
from novelscrape.web.main import create_app

console = Console()
err_console = Console(stderr=True)


def _load(ctx: click.Context) -> Config:
    config = load_config(ctx.obj["config_path"])
    if ctx.obj["log_level"]:
        config.monitoring.log_level = ctx.obj["log_level"]
    configure_logging(config.monitoring)
    return config


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level (overrides the configuration file)",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: Optional[str]) -> None:
    """novelscrape - chapter text extraction for Chinese web-novel sites."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None
    ctx.obj["log_level"] = log_level


async def _scrape_once(config: Config, url: str) -> ScrapeResult:
    async with ScrapePipeline(config) as pipeline:
        return await pipeline.scrape(url)


def _print_result(result: ScrapeResult) -> None:
    document = result.document
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("URL", document.url)
    table.add_row("Encoding", result.encoding)
    table.add_row("Strategy", result.strategy)
    table.add_row("Attempts", str(result.attempts))
    table.add_row("Words", str(document.word_count))
    table.add_row("Characters", str(len(document.content)))
    table.add_row("Time", f"{result.processing_time_ms:.0f} ms")
    console.print(table)
    console.print(Panel(document.content, title=document.title, expand=False))


def _print_error(error: ScrapeError, as_json: bool) -> None:
    body: Dict[str, Any] = error.to_response()
    if as_json:
        click.echo(json.dumps(body, ensure_ascii=False, indent=2))
        return
    err_console.print(f"[red]{error.status_code} {body['error']}[/red]")
    err_console.print(body["message"])
    for key, value in body.get("details", {}).items():
        err_console.print(f"  [dim]{key}:[/dim] {value}")


@cli.command()
@click.argument("url")
@click.option("--json", "as_json", is_flag=True, help="Print the response body as JSON")
@click.pass_context
def scrape(ctx: click.Context, url: str, as_json: bool) -> None:
    """Scrape a single chapter URL."""
    config = _load(ctx)
    try:
        result = asyncio.run(_scrape_once(config, url))
    except ScrapeError as e:
        _print_error(e, as_json)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        _print_result(result)


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Start the HTTP API."""
    config = _load(ctx)
    host = host or config.web.host
    port = port or config.web.port
    console.print(f"[green]Starting novelscrape API at http://{host}:{port}[/green]")
    uvicorn.run(create_app(config), host=host, port=port, log_level=config.monitoring.log_level.lower())


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()

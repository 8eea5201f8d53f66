"""CLI: python -m vfx_pulse"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import load_config
from .pipeline import build_pipeline
from .sources import UnknownSourceError

app = typer.Typer(help="VFX Market Pulse: production postings by VFX workload and budget tier")
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", help="Path to YAML config override")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )


@app.command()
def scrape(
    source: str = typer.Argument(..., help="Source id, e.g. backstage"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Run one scrape cycle for a source."""
    _setup_logging(verbose)
    pipeline = build_pipeline(load_config(config))

    try:
        outcome = pipeline.scrape(source)
    except UnknownSourceError as exc:
        console.print(f"[red]{exc}[/red] (known: {', '.join(pipeline.registry)})")
        raise typer.Exit(2)
    except Exception as exc:
        console.print(f"[red]Scrape failed:[/red] {exc}")
        raise typer.Exit(1)

    table = Table(title=f"Scrape {outcome.source}")
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Retrieved", str(pipeline.tracker.get(source).posting_count))
    table.add_row("Added", str(outcome.projects_added))
    table.add_row("Total in catalog", str(outcome.total_projects))
    console.print(table)


@app.command()
def sources(config: Optional[Path] = ConfigOption):
    """Show scrape status per source."""
    pipeline = build_pipeline(load_config(config))

    table = Table(title="Sources")
    table.add_column("Source", style="bold")
    table.add_column("State")
    table.add_column("Postings", justify="right")
    table.add_column("Last scrape")
    for source_id, status in pipeline.statuses().items():
        table.add_row(
            source_id,
            status.state.value,
            str(status.posting_count),
            status.last_scrape_at.isoformat(timespec="seconds") if status.last_scrape_at else "never",
        )
    console.print(table)


@app.command()
def stats(config: Optional[Path] = ConfigOption):
    """Show catalog counts by tier and VFX needs."""
    catalog = build_pipeline(load_config(config)).catalog

    table = Table(title=f"Catalog ({len(catalog)} projects)")
    table.add_column("Group", style="bold")
    table.add_column("Value")
    table.add_column("Count", justify="right")
    for tier, count in catalog.tier_counts().items():
        table.add_row("tier", tier, str(count))
    table.add_row("───────", "───────", "─────")
    for level, count in catalog.vfx_needs_counts().items():
        table.add_row("vfx needs", level, str(count))
    console.print(table)


@app.command()
def projects(
    tier: Optional[str] = typer.Option(None, "--tier", "-t", help="Only show one tier, e.g. tier1"),
    config: Optional[Path] = ConfigOption,
):
    """List catalog postings."""
    catalog = build_pipeline(load_config(config)).catalog
    rows = catalog.by_tier(tier) if tier else catalog.snapshot()

    if not rows:
        console.print("No projects yet.")
        return

    table = Table(title=f"{len(rows)} Projects")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Tier")
    table.add_column("Budget", justify="right")
    table.add_column("VFX")
    table.add_column("Source", style="cyan")
    for i, p in enumerate(rows, 1):
        table.add_row(str(i), p.title[:60], p.tier.value, p.budget, p.vfx_needs.value, p.source)
    console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from config)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from config / $PORT)"),
    config: Optional[Path] = ConfigOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Serve the HTTP API."""
    import uvicorn

    from .server import create_app

    _setup_logging(verbose)
    cfg = load_config(config)
    api = create_app(build_pipeline(cfg), environment=cfg.environment)
    uvicorn.run(api, host=host or cfg.server.host, port=port or cfg.server.port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

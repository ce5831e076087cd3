"""Barcode Lookup CLI using Typer."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from barcode_lookup import __version__
from barcode_lookup.cli.sources import load_registry, sources_app
from barcode_lookup.core.schema import BatchReport, ProductInfo
from barcode_lookup.lookup.batch import BatchCoordinator, parse_barcodes
from barcode_lookup.lookup.errors import InvalidInput, UnknownSourceError
from barcode_lookup.lookup.health import HealthStatus, check_all_sources
from barcode_lookup.lookup.registry import SourceRegistry
from barcode_lookup.lookup.resolver import ProductResolver

# Load .env file from current directory or project root
_env_paths = [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent / ".env",
]
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(_env_path)
        break

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="barcode-lookup",
    help="Barcode Lookup - resolve scanned barcodes into product metadata",
    add_completion=False,
)
app.add_typer(sources_app, name="sources")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def build_resolver(registry: SourceRegistry) -> ProductResolver:
    """Create the resolver used by the commands."""
    return ProductResolver(registry)


def _display_product(product: ProductInfo, source_name: Optional[str], from_cache: bool) -> None:
    rprint(f"\n[bold green]Found:[/bold green] [bold]{product.name}[/bold]")
    rprint(f"  Barcode: {product.barcode}")
    rprint(f"  Price: {product.price or '-'}")
    if product.quantity:
        rprint(f"  Quantity: {product.quantity}")
    rprint(f"  Category: {product.category or '-'}")
    stock = "[green]in stock[/green]" if product.in_stock else "[yellow]out of stock[/yellow]"
    rprint(f"  Stock: {stock}")
    rprint(f"  Image: {product.image}")
    origin = product.source or source_name or "-"
    if from_cache:
        origin += " [dim](cached)[/dim]"
    rprint(f"  Source: {origin}")


def _display_report(report: BatchReport) -> None:
    table = Table(title="Batch Results")
    table.add_column("#", justify="right")
    table.add_column("Barcode", style="bold")
    table.add_column("Status")
    table.add_column("Name")
    table.add_column("Price")
    table.add_column("Source")

    for index, item in enumerate(report.results, start=1):
        if item.success and item.product is not None:
            table.add_row(
                str(index),
                item.barcode,
                "[green]found[/green]",
                item.product.name,
                item.product.price or "-",
                item.product.source,
            )
        else:
            table.add_row(str(index), item.barcode, "[yellow]not found[/yellow]", item.error or "", "", "")

    console.print(table)
    rprint(
        f"\nTotal: {report.total}  Found: [green]{report.found}[/green]  "
        f"Not found: [yellow]{report.not_found}[/yellow]"
    )


@app.command()
def lookup(
    barcode: str = typer.Argument(..., help="Barcode to look up"),
    source: Optional[List[str]] = typer.Option(
        None, "--source", "-s", help="Source to query (repeat for a priority list)"
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass cached results"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sources.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Look up one barcode across the configured sources.

    Examples:
        barcode-lookup lookup 6111245591063
        barcode-lookup lookup 3017620422003 -s openfoodfacts --json
    """
    _configure_logging(verbose)
    registry = load_registry(config)

    async def _run():
        async with build_resolver(registry) as resolver:
            return await resolver.resolve(barcode, source or None, use_cache=not no_cache)

    try:
        result = asyncio.run(_run())
    except (InvalidInput, UnknownSourceError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    elif result.product is not None:
        _display_product(result.product, result.source, result.from_cache)
    else:
        rprint(f"[yellow]Product not found[/yellow] for barcode {result.barcode}")
        rprint(f"  Sources tried: {', '.join(result.sources_tried) or 'none'}")

    if not result.found:
        raise typer.Exit(1)


@app.command()
def batch(
    input_file: Optional[Path] = typer.Argument(
        None, help="File with barcodes separated by newlines or commas ('-' for stdin)"
    ),
    source: Optional[List[str]] = typer.Option(
        None, "--source", "-s", help="Source to query (repeat for a priority list)"
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", min=1, help="Barcodes resolved at the same time"
    ),
    delay: Optional[float] = typer.Option(None, "--delay", min=0, help="Seconds between chunks"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass cached results"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sources.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Look up many barcodes under a concurrency limit.

    Examples:
        barcode-lookup batch barcodes.txt
        cat barcodes.txt | barcode-lookup batch - --concurrency 3
    """
    _configure_logging(verbose)
    registry = load_registry(config)

    if input_file is None or str(input_file) == "-":
        text = sys.stdin.read()
    else:
        if not input_file.exists():
            rprint(f"[red]Error:[/red] File not found: {input_file}")
            raise typer.Exit(2)
        text = input_file.read_text()
    barcodes = parse_barcodes(text)

    async def _run():
        async with build_resolver(registry) as resolver:
            coordinator = BatchCoordinator(
                resolver, concurrency=concurrency, inter_chunk_delay=delay
            )
            return await coordinator.resolve_batch(
                barcodes, source or None, use_cache=not no_cache
            )

    try:
        report = asyncio.run(_run())
    except (InvalidInput, UnknownSourceError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    else:
        _display_report(report)


@app.command()
def health(
    all_sources: bool = typer.Option(False, "--all", "-a", help="Include disabled sources"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sources.yaml"),
) -> None:
    """Check that the configured sources are reachable."""
    registry = load_registry(config)

    with console.status("[bold blue]Checking sources...[/bold blue]"):
        status = asyncio.run(check_all_sources(registry, include_disabled=all_sources))

    table = Table(title="Source Health")
    table.add_column("Source", style="bold")
    table.add_column("Status")
    table.add_column("Message")
    table.add_column("Response Time")

    colors = {
        HealthStatus.HEALTHY: "green",
        HealthStatus.DEGRADED: "yellow",
        HealthStatus.ERROR: "red",
    }
    for check in status.checks:
        color = colors[check.status]
        elapsed = f"{check.response_time_ms} ms" if check.response_time_ms is not None else "-"
        table.add_row(check.name, f"[{color}]{check.status.value}[/{color}]", check.message, elapsed)

    console.print(table)
    rprint(f"\nOverall: [{colors[status.overall]}]{status.overall.value}[/{colors[status.overall]}]")

    if status.overall == HealthStatus.ERROR:
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show the Barcode Lookup version."""
    typer.echo(f"Barcode Lookup v{__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

"""
Source CLI Commands
===================

CLI commands for inspecting the configured product sources.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from barcode_lookup.lookup.adapters import get_adapter_info, list_adapters
from barcode_lookup.lookup.registry import SourceRegistry, get_default_registry

console = Console()
sources_app = typer.Typer(help="Source management commands")


def load_registry(config: Optional[Path]) -> SourceRegistry:
    """Registry from an explicit config file, or the default one."""
    if config is None:
        return get_default_registry()
    registry = SourceRegistry()
    try:
        registry.load_config(config)
    except (FileNotFoundError, ValueError) as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)
    return registry


@sources_app.command("list")
def list_sources(
    all_sources: bool = typer.Option(False, "--all", "-a", help="Show all sources including disabled"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sources.yaml"),
) -> None:
    """
    List configured sources in priority order.

    Examples:
        barcode-lookup sources list
        barcode-lookup sources list --all
        barcode-lookup sources list --config my-sources.yaml
    """
    registry = load_registry(config)
    sources = registry.list_sources() if all_sources else registry.list_enabled_sources()

    if not sources:
        rprint("[yellow]No sources configured[/yellow]")
        rprint("\nAdd sources to sources.yaml and point SOURCES_CONFIG_PATH at it")
        return

    table = Table(title="Product Sources")
    table.add_column("Priority", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Label")
    table.add_column("Adapter")
    table.add_column("Status")
    table.add_column("URL Variants", justify="right")

    for priority, source in enumerate(sources, start=1):
        status = "[green]enabled[/green]" if source.enabled else "[yellow]disabled[/yellow]"
        table.add_row(
            str(priority),
            source.name,
            source.label,
            source.adapter,
            status,
            str(len(source.url_variants)),
        )

    console.print(table)


@sources_app.command("show")
def show_source(
    name: str = typer.Argument(..., help="Source name"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to sources.yaml"),
) -> None:
    """
    Show detailed information about a source.

    Examples:
        barcode-lookup sources show openfoodfacts
    """
    registry = load_registry(config)
    source = registry.get_source(name)

    if source is None:
        rprint(f"[red]Error:[/red] Source '{name}' not found")
        rprint("\nAvailable sources:")
        for s in registry.list_sources():
            rprint(f"  • {s.name}")
        raise typer.Exit(1)

    status = "[green]enabled[/green]" if source.enabled else "[yellow]disabled[/yellow]"

    rprint(f"\n[bold]Source: {source.name}[/bold]")
    rprint(f"  Label: {source.label}")
    rprint(f"  Status: {status}")
    rprint(f"  Domain: {source.domain or '-'}")
    rprint(f"  Adapter: {source.adapter}")
    threshold = source.miss_threshold if source.miss_threshold is not None else "none (try every combination)"
    rprint(f"  Miss threshold: {threshold}")

    rprint("\n[bold]URL Variants:[/bold]")
    for url in source.url_variants:
        rprint(f"  • {url}")

    rprint(f"\n[bold]User Agents:[/bold] {len(source.user_agents)}")
    for agent in source.user_agents:
        rprint(f"  • {agent[:60]}")

    adapter_info = get_adapter_info(source.adapter)
    if adapter_info:
        rprint("\n[bold]Adapter Info:[/bold]")
        rprint(f"  Name: {adapter_info['name']}")
        rprint(f"  Version: {adapter_info['version']}")
        rprint(f"  Class: {adapter_info['class']}")


@sources_app.command("adapters")
def list_source_adapters() -> None:
    """
    List available adapters.

    Examples:
        barcode-lookup sources adapters
    """
    table = Table(title="Available Adapters")
    table.add_column("Name", style="bold")
    table.add_column("Version")
    table.add_column("Class")

    for adapter_name in list_adapters():
        info = get_adapter_info(adapter_name)
        if info:
            table.add_row(info["name"], info["version"], info["class"])

    console.print(table)

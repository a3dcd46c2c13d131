#!/usr/bin/env python3
"""
Chorus CLI - BDD Run Reporting Adapter

Usage:
    chorus replay <events.ndjson> --config <chorus.yaml> [OPTIONS]
    chorus validate <chorus.yaml>
    chorus outline <file.feature>
    chorus --version
"""

import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from . import __version__
from .config import HierarchyType, LaunchConfig, ReporterConfig, load_config
from .correlation import FeatureParseError, HierarchyCorrelator, parse_feature
from .events import EventDecodeError, load_events
from .transport import RecordingClient, create_client

app = typer.Typer(
    name="chorus",
    help="🎶 Chorus - BDD Run Reporting Adapter",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    "PASSED": "green",
    "FAILED": "red",
    "SKIPPED": "yellow",
}


def version_callback(value: bool):
    if value:
        console.print(f"🎶 Chorus v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
):
    """
    🎶 Chorus - BDD Run Reporting Adapter

    Report BDD engine runs to a reporting service as a launch item tree.
    """
    pass


def setup_logging(level: str) -> None:
    """Route library logging to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def build_item_tree(items: list[dict[str, Any]], title: str = "🚀 Launch") -> Tree:
    """Render recorded items as a rich tree."""
    tree = Tree(f"[bold]{escape(title)}[/bold]")
    for item in items:
        _add_item(tree, item)
    return tree


def _add_item(branch: Tree, item: dict[str, Any]) -> None:
    status = item["status"]
    style = STATUS_STYLES.get(status, "dim")
    label = (
        f"[{style}]{status or '-'}[/{style}] {escape(item['name'])} "
        f"[dim]({item['type']})[/dim]"
    )
    node = branch.add(label)
    for log in item["logs"]:
        first_line = log["message"].splitlines()[0] if log["message"] else ""
        node.add(f"[dim]{log['level']}: {escape(first_line)}[/dim]")
    for child in item["children"]:
        _add_item(node, child)


@app.command()
def replay(
    events_file: Path = typer.Argument(
        ...,
        help="Path to a recorded event stream (NDJSON)",
        exists=True,
        readable=True,
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Path to the reporter config YAML file",
        exists=True,
        readable=True,
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run",
        help="Record calls in memory instead of contacting the service"
    ),
    hierarchy: Optional[HierarchyType] = typer.Option(
        None, "--hierarchy",
        help="Override the configured item hierarchy"
    ),
    output: str = typer.Option(
        "text", "--output", "-o",
        help="Dry run output format: text or json"
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level", "-l",
        help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
):
    """
    Replay a recorded engine run against the reporting service.

    Feed every event of the stream through the correlator. With --dry-run
    the reported item tree is printed instead of being sent.
    """
    setup_logging(log_level)

    if config_file is not None:
        config, validation = load_config(config_file)
        if not validation.is_valid:
            console.print(f"\n[red]❌ Invalid config:[/red]")
            console.print(str(validation))
            raise typer.Exit(code=1)
    elif dry_run:
        config = ReporterConfig(version=1, launch=LaunchConfig(name=events_file.stem))
    else:
        console.print("[red]❌ --config is required unless --dry-run is given[/red]")
        raise typer.Exit(code=1)

    if hierarchy is not None:
        config.hierarchy = hierarchy

    try:
        client = create_client(config, dry_run=dry_run)
    except ValueError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)

    correlator = HierarchyCorrelator(client, config)
    count = 0
    try:
        with client:
            for event in load_events(events_file):
                correlator.handle(event)
                count += 1
    except EventDecodeError as e:
        console.print(f"[red]❌ Invalid event stream:[/red] {e}")
        raise typer.Exit(code=1)
    except FeatureParseError as e:
        console.print(f"[red]❌ Invalid feature file:[/red] {e}")
        raise typer.Exit(code=1)

    if isinstance(client, RecordingClient):
        if output == "json":
            console.print_json(client.to_json())
        else:
            console.print(build_item_tree(client.tree(), title=f"🚀 {config.launch.name}"))
            console.print(f"\n[green]✅ Replayed {count} events[/green] (dry run)")
    else:
        console.print(
            f"[green]✅ Reported {count} events[/green] to {config.endpoint} "
            f"(project {config.project})"
        )


@app.command()
def validate(
    config_file: Path = typer.Argument(
        ...,
        help="Path to the reporter config YAML file",
        exists=True,
        readable=True,
    ),
):
    """
    Validate a reporter config file.

    Check the schema and report any errors without contacting the service.
    """
    console.print(f"\n📄 Validating: {config_file}")

    config, validation = load_config(config_file)

    if validation.is_valid:
        console.print(f"\n[green]✅ Valid config:[/green] {config.launch.name}")
        console.print(f"   Endpoint: {config.endpoint or '-'}")
        console.print(f"   Project: {config.project or '-'}")
        console.print(f"   Hierarchy: {config.hierarchy.value}")
        raise typer.Exit(code=0)
    else:
        console.print(f"\n[red]❌ Validation failed:[/red]")
        console.print(str(validation))
        raise typer.Exit(code=1)


@app.command()
def outline(
    feature_file: Path = typer.Argument(
        ...,
        help="Path to a Gherkin feature file",
        exists=True,
        readable=True,
    ),
):
    """
    Show the scenarios of a feature file.

    Lists each scenario with its line, step count and, for outlines, the
    number of example rows.
    """
    try:
        feature = parse_feature(feature_file.read_text(), uri=str(feature_file))
    except FeatureParseError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"\n📄 {escape(feature.keyword)}: [bold]{escape(feature.name)}[/bold]")
    if feature.background is not None:
        console.print(f"   Background: {len(feature.background.steps)} step(s)")

    table = Table(title="Scenarios")
    table.add_column("Line", style="cyan", justify="right")
    table.add_column("Keyword", style="magenta")
    table.add_column("Name")
    table.add_column("Steps", justify="right")
    table.add_column("Iterations", justify="right")

    for scenario in feature.scenarios:
        iterations = str(len(scenario.example_row_positions)) if scenario.is_outline else "-"
        table.add_row(
            str(scenario.line),
            scenario.keyword,
            escape(scenario.name),
            str(len(scenario.steps)),
            iterations,
        )

    console.print()
    console.print(table)


@app.command()
def info():
    """
    Show information about Chorus.
    """
    console.print(f"""
🎶 [bold]Chorus[/bold] v{__version__}

BDD Run Reporting Adapter

[bold]Features:[/bold]
  • Feature / scenario / step item hierarchy (or scenario-level with a root suite)
  • Scenario outlines, backgrounds and hooks
  • Attachments with content type detection
  • YAML config with environment interpolation
  • Dry runs against an in-memory recorder

[bold]Quick Start:[/bold]
  chorus replay run.ndjson --config chorus.yaml
  chorus replay run.ndjson --dry-run
  chorus validate chorus.yaml
  chorus outline features/login.feature
""")


if __name__ == "__main__":
    app()

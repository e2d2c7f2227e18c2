"""
Command-line interface for SupplyGuard.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

from ..api.models import ScanReport
from ..config import ScanConfig
from ..core.registry import ConfigurationError, KnownBadRegistry, load_registry_file, resolve_registry_path
from ..core.scanner import SupplyGuardScanner, ScanOutcome, load_registry_for, outcome_to_dict

app = typer.Typer(
    name="supplyguard",
    help="Detect installed npm packages whose exact version is known to be compromised",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

EXIT_CLEAN = 0
EXIT_COMPROMISED = 1
EXIT_CONFIG_ERROR = 2

def _fail(message: str) -> None:
    err_console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(EXIT_CONFIG_ERROR)

@app.command()
def scan(
    project_path: str = typer.Argument(".", help="Path to the project to scan"),
    registry: Optional[str] = typer.Option(None, "--registry", "-r", help="Known-bad list (default: ./compromised.json, $SUPPLYGUARD_REGISTRY, bundled list)"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Also write the JSON report to a file"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth", min=0, help="Deepest nested node_modules level to read"),
    lockfile: bool = typer.Option(True, "--lockfile/--no-lockfile", help="Read package-lock.json"),
    node_modules: bool = typer.Option(True, "--node-modules/--no-node-modules", help="Walk the installed node_modules tree"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Scan a project for compromised package versions."""
    if verbose:
        logging.basicConfig(level=logging.INFO)

    project_root = Path(project_path)
    if not os.path.isdir(project_root):
        _fail(f"Project path '{project_root}' does not exist")

    try:
        config = ScanConfig.from_env(
            project_root,
            registry_path=registry,
            max_depth=max_depth,
            include_lockfile=lockfile,
            include_node_modules=node_modules
        )
        known_bad = load_registry_for(config)
    except ConfigurationError as e:
        _fail(escape(str(e)))

    outcome = SupplyGuardScanner(config).scan(known_bad)
    report = ScanReport(**outcome_to_dict(outcome))

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(report.model_dump_json(indent=2))
        if not as_json:
            console.print(f"[green]Report saved to {escape(output)}[/green]")

    if as_json:
        console.print_json(report.model_dump_json())
    else:
        display_findings(outcome, verbose=verbose)

    raise typer.Exit(EXIT_COMPROMISED if outcome.compromised else EXIT_CLEAN)

@app.command("list")
def list_known_bad(
    project_path: str = typer.Argument(".", help="Project whose compromised.json takes precedence"),
    registry: Optional[str] = typer.Option(None, "--registry", "-r", help="Known-bad list to print"),
    as_json: bool = typer.Option(False, "--json", help="Print the list as JSON")
):
    """Print the known-bad package list."""
    try:
        known_bad = load_registry_file(resolve_registry_path(project_path, registry))
    except ConfigurationError as e:
        _fail(escape(str(e)))

    if as_json:
        console.print_json(json.dumps(known_bad.to_dict()))
    else:
        display_known_bad(known_bad)

@app.command()
def version():
    """Show version information."""
    from .. import __version__
    console.print(f"[bold blue]SupplyGuard[/bold blue] v{__version__}")
    console.print("Known-Compromised Version Detector for npm Dependencies")

def display_known_bad(known_bad: KnownBadRegistry):
    """Display the known-bad list in its source order."""
    table = Table(title="Known compromised packages and versions")
    table.add_column("Package", style="cyan")
    table.add_column("Bad Versions", style="red")

    for entry in known_bad:
        table.add_row(escape(entry.name), escape(", ".join(entry.bad_versions)) or "-")

    console.print(table)
    if known_bad.source:
        console.print(f"[dim]Source: {known_bad.source}[/dim]")

def display_findings(outcome: ScanOutcome, verbose: bool = False):
    """Display scan findings; compromised packages go to stderr."""
    if not outcome.findings:
        console.print("[green]✅ No compromised packages found.[/green]")
    else:
        table = Table(title="Compromised packages found")
        table.add_column("Package", style="cyan")
        table.add_column("Version", style="red")
        for finding in outcome.findings:
            table.add_row(escape(finding.name), escape(finding.version))
        err_console.print(Panel(
            f"🚨 {len(outcome.findings)} compromised package version(s) installed in {escape(outcome.project_path)}",
            border_style="red"
        ))
        err_console.print(table)

    if verbose:
        console.print()
        console.print(
            f"Packages: {len(outcome.inventory)} "
            f"(lockfile: {outcome.lockfile_packages}, node_modules: {outcome.node_modules_packages}), "
            f"monitored: {outcome.monitored_packages}"
        )
        if outcome.diagnostics:
            console.print("[yellow]Skipped reads:[/yellow]")
            for path, reason in outcome.diagnostics:
                console.print(f"  • {escape(path)}: {escape(reason)}")

if __name__ == "__main__":
    app()

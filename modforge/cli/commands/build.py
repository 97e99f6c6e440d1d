"""``modforge build``: one-shot tiered build of every target.

Runs the structural check, then builds the foundation, every module, and
the shared front-end in tier order.  Exits with code 1 if anything fails.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from modforge.config import load_config
from modforge.core.orchestrator import Orchestrator
from modforge.core.structure_checker import check_all
from modforge.errors import StructuralError
from modforge.models.results import BuildResult

console = Console()


def render_results(results: list[BuildResult]) -> Table:
    table = Table(title="Build results")
    table.add_column("Target", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Phase")
    table.add_column("Artifacts", justify="right")
    table.add_column("Time", justify="right")
    for r in results:
        status = "[green]OK[/green]" if r.succeeded else "[red]FAILED[/red]"
        table.add_row(
            r.target_key,
            status,
            r.phase.value,
            str(len(r.artifact_paths)),
            f"{r.duration_seconds:.2f}s",
        )
    return table


def build_cmd(
    project_root: Path = typer.Option(
        None,
        "--project-root",
        "-C",
        help="Project directory (defaults to MODFORGE_PROJECT_ROOT or '.').",
    ),
    check: bool = typer.Option(
        True,
        "--check/--no-check",
        help="Run the structural check before building.",
    ),
    sync: bool = typer.Option(
        False,
        "--sync/--no-sync",
        help="Start or restart each built resource on the host.",
    ),
) -> None:
    """Build every target once, in tier order."""
    config = load_config(project_root=project_root, sync_lifecycle=sync)

    if check:
        try:
            check_all(config.modules_dir, config.required_dirs, [config.staging_dirname])
        except StructuralError as exc:
            console.print(f"[bold red]{exc}[/bold red]")
            raise typer.Exit(code=1)

    orchestrator = Orchestrator(config)
    if not orchestrator.targets():
        console.print("[yellow]Nothing to build.[/yellow]")
        return

    results = asyncio.run(orchestrator.initial_build())
    console.print(render_results(results))

    failed = [r for r in results if not r.succeeded]
    for r in failed:
        console.print(f"[red]{r.target_key}:[/red] {r.error}")
    if failed:
        raise typer.Exit(code=1)

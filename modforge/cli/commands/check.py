"""``modforge check``: validate every module's layout and manifest.

Every violation in every module is reported in one table.  Exits with
code 1 if any module is invalid.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from modforge.config import load_config
from modforge.core.discovery import list_namespaced_dirs
from modforge.core.structure_checker import collect_errors

console = Console()


def check_cmd(
    project_root: Path = typer.Option(
        None,
        "--project-root",
        "-C",
        help="Project directory (defaults to MODFORGE_PROJECT_ROOT or '.').",
    ),
) -> None:
    """Check that every ``<namespace>/<module>`` is structurally valid."""
    config = load_config(project_root=project_root)
    base = config.modules_dir
    if not base.is_dir():
        console.print(f"[bold red]Modules directory not found:[/bold red] {base}")
        raise typer.Exit(code=1)

    excluded = [config.staging_dirname]
    failures = collect_errors(base, config.required_dirs, excluded)
    checked = len(list_namespaced_dirs(base, excluded))
    if not failures:
        console.print(f"[green]All {checked} module(s) passed validation.[/green]")
        return

    table = Table(title="Plugin validation failed")
    table.add_column("Module", style="cyan")
    table.add_column("Error", style="red")
    for module, errors in failures.items():
        for index, error in enumerate(errors):
            table.add_row(module if index == 0 else "", error)
    console.print(table)
    console.print(f"[bold red]{len(failures)} of {checked} module(s) invalid.[/bold red]")
    raise typer.Exit(code=1)

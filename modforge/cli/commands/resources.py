"""``modforge resources`` and ``modforge restart``: host lifecycle control."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from modforge.bridge.lifecycle_client import LifecycleClient
from modforge.config import DevConfig, load_config
from modforge.errors import HttpStatusError, LifecycleApiError
from modforge.models.results import LifecycleResult

console = Console()


def _client(config: DevConfig) -> LifecycleClient:
    return LifecycleClient(config.api_base_url, config.api_key)


def _report_error(exc: LifecycleApiError) -> None:
    if isinstance(exc, HttpStatusError):
        console.print(f"[bold red]Host returned HTTP {exc.status}:[/bold red] {exc.body}")
    else:
        console.print(f"[bold red]Lifecycle API error:[/bold red] {exc}")


def resources_cmd(
    project_root: Path = typer.Option(
        None,
        "--project-root",
        "-C",
        help="Project directory (defaults to MODFORGE_PROJECT_ROOT or '.').",
    ),
) -> None:
    """List the resources the host currently knows about."""
    config = load_config(project_root=project_root)

    async def _list() -> list[str]:
        async with _client(config) as client:
            return await client.list_resources()

    try:
        names = asyncio.run(_list())
    except LifecycleApiError as exc:
        _report_error(exc)
        raise typer.Exit(code=1)

    if not names:
        console.print("[dim]No resources reported by host.[/dim]")
        return
    table = Table(title=f"Host resources ({len(names)})")
    table.add_column("Name", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)


def restart_cmd(
    name: str = typer.Argument(
        None,
        help="Resource to restart. Restarts every resource if omitted.",
    ),
    project_root: Path = typer.Option(
        None,
        "--project-root",
        "-C",
        help="Project directory (defaults to MODFORGE_PROJECT_ROOT or '.').",
    ),
) -> None:
    """Restart one resource on the host, or all of them."""
    config = load_config(project_root=project_root)

    async def _restart() -> LifecycleResult:
        async with _client(config) as client:
            if name:
                return await client.restart(name)
            return await client.restart_all()

    try:
        result = asyncio.run(_restart())
    except LifecycleApiError as exc:
        _report_error(exc)
        raise typer.Exit(code=1)

    if result.results:
        table = Table(title="Restart results")
        table.add_column("Resource", style="cyan")
        table.add_column("Restarted", justify="center")
        for resource, ok in sorted(result.results.items()):
            table.add_row(resource, "[green]Yes[/green]" if ok else "[red]No[/red]")
        console.print(table)

    if result.success:
        console.print(f"[green]{result.message or 'Restarted.'}[/green]")
    else:
        console.print(f"[bold red]{result.message or 'Restart failed.'}[/bold red]")
        raise typer.Exit(code=1)
